"""Operations for /pets and, through x-router-controller, /pets/{petId}."""

import json

PETS = [
    {"id": 1, "name": "Rex", "tag": "dog"},
    {"id": 2, "name": "Tom"},
]


def listPets(request, response, next):
    limit = (request.query_params or {}).get("limit")
    pets = PETS[:int(limit)] if limit and limit.isdigit() else PETS
    response.status(200).send(pets)


def createpets(request, response, next):
    try:
        pet = json.loads(request.body or "")
    except ValueError:
        return response.status(400).send({"code": 400, "message": "Body must be a JSON pet"})
    PETS.append(pet)
    response.status(201).send()


def showPetById(request, response, next):
    pet_id = request.path_params["petId"]
    for pet in PETS:
        if str(pet["id"]) == pet_id:
            return response.status(200).send(pet)
    response.status(404).send({"code": 404, "message": f"Pet {pet_id} not found"})
