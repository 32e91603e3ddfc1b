"""
Pytest configuration: multi-driver parametrization and shared OpenAPI fixtures.
"""

import copy

import pytest

from oasrouter import Specification
from tests.framework.multi_driver_base import MultiDriverTestBase


def pytest_generate_tests(metafunc):
    """
    Pytest hook to automatically parametrize the 'api' fixture for MultiDriverTestBase subclasses.

    This ensures every test method in classes that inherit from MultiDriverTestBase
    gets run against all enabled drivers.
    """
    if (hasattr(metafunc, 'cls') and
        metafunc.cls is not None and
        issubclass(metafunc.cls, MultiDriverTestBase) and
        'api' in metafunc.fixturenames):

        drivers = metafunc.cls.get_available_drivers()
        metafunc.parametrize(
            'api',
            drivers,
            indirect=True,
            ids=[f"driver-{d}" for d in drivers]
        )


ERROR_SCHEMA = {
    "type": "object",
    "required": ["code", "message"],
    "properties": {
        "code": {"type": "integer", "format": "int32"},
        "message": {"type": "string"},
    },
}


def _json(schema):
    return {"application/json": {"schema": schema}}


PETSTORE_DOCUMENT = {
    "openapi": "3.0.3",
    "info": {"title": "Swagger Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "responses": {
                    "200": {
                        "description": "An array of pets",
                        "content": _json({"$ref": "#/components/schemas/Pets"}),
                    },
                    "400": {"description": "Bad request", "content": _json(ERROR_SCHEMA)},
                    "404": {"description": "Not found", "content": _json(ERROR_SCHEMA)},
                },
            },
            "post": {
                "responses": {
                    "201": {"description": "Null response"},
                    "default": {"description": "Unexpected error", "content": _json(ERROR_SCHEMA)},
                },
            },
        },
        "/pets/{petId}": {
            "parameters": [
                {"name": "petId", "in": "path", "required": True, "schema": {"type": "string"}},
            ],
            "get": {
                "operationId": "showPetById",
                "x-router-controller": "petController",
                "responses": {
                    "200": {
                        "description": "The requested pet",
                        "content": _json({"$ref": "#/components/schemas/Pet"}),
                    },
                    "404": {"description": "Not found", "content": _json(ERROR_SCHEMA)},
                },
            },
            "delete": {
                "operationId": "deletePet",
                "responses": {"204": {"description": "Deleted"}},
            },
        },
        "/owners": {
            "get": {
                "operationId": "owners.list",
                "responses": {
                    "200": {
                        "description": "Owner names",
                        "content": _json({"type": "array", "items": {"type": "string"}}),
                    },
                },
            },
        },
        "/health": {
            "get": {
                "responses": {
                    "200": {
                        "description": "Service health",
                        "content": _json({
                            "type": "object",
                            "required": ["status"],
                            "properties": {"status": {"type": "string", "enum": ["ok"]}},
                        }),
                    },
                },
            },
        },
        "/brew": {
            "get": {
                "operationId": "brewCoffee",
                "responses": {
                    "200": {"description": "Coffee", "content": _json({"type": "object"})},
                    "400": {"description": "Bad request", "content": _json(ERROR_SCHEMA)},
                    "404": {"description": "Not found", "content": _json(ERROR_SCHEMA)},
                },
            },
        },
        "/echo": {
            "post": {
                "operationId": "echoText",
                "responses": {
                    "200": {
                        "description": "The request body",
                        "content": {"text/plain": {"schema": {"type": "string"}}},
                    },
                },
            },
        },
        "/broken": {
            "get": {
                "operationId": "listBroken",
                "responses": {"200": {"description": "Never reached"}},
            },
        },
        "/missing": {
            "get": {
                "operationId": "notImplementedAnywhere",
                "responses": {"200": {"description": "Never reached"}},
            },
        },
        "/failing": {
            "get": {
                "operationId": "failingOperation",
                "responses": {"200": {"description": "Never reached"}},
            },
        },
        "/passthrough": {
            "get": {
                "operationId": "passThrough",
                "responses": {"200": {"description": "Answered by later middleware"}},
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string"},
                    "tag": {"type": "string"},
                },
            },
            "Pets": {
                "type": "array",
                "items": {"$ref": "#/components/schemas/Pet"},
            },
        },
    },
}

CONTROLLERS_PACKAGE = "tests.controllers"


def petstore_document():
    """Return a fresh copy of the pet store OpenAPI document."""
    return copy.deepcopy(PETSTORE_DOCUMENT)


@pytest.fixture
def petstore_spec():
    return Specification.from_dict(petstore_document())


@pytest.fixture(autouse=True)
def reset_pet_store():
    """Restore the in-memory pet store used by the test controllers."""
    from tests.controllers import petsController

    petsController.reset_pets()
    yield
    petsController.reset_pets()
