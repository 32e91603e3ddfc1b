"""Operations for /pets, backed by an in-memory pet store."""

import json

INITIAL_PETS = [
    {"id": 10, "name": "Pig", "tag": "Looking for mud"},
    {"id": 11, "name": "Cat"},
]

PETS = []


def reset_pets():
    PETS[:] = [dict(pet) for pet in INITIAL_PETS]


def corrupt_pets():
    """Store a pet whose id is a string, which breaks the response contract."""
    PETS[:] = [{"id": "10", "name": "Pig"}]


def find_pet(pet_id):
    for pet in PETS:
        if str(pet["id"]) == str(pet_id):
            return pet
    return None


def listPets(request, response, next):
    limit = (request.query_params or {}).get("limit")
    if limit is not None and not limit.isdigit():
        return response.status(400).send({"code": 400, "message": "limit must be an integer"})

    pets = [dict(pet) for pet in PETS]
    if limit is not None:
        pets = pets[:int(limit)]
    response.status(200).send(pets)


def createpets(request, response, next):
    pet = json.loads(request.body or "{}")
    PETS.append(pet)
    response.status(201).send()


reset_pets()
