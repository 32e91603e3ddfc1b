"""
Example: Serving an OpenAPI document with oasrouter over ASGI.

Handler modules live in examples/petstore/controllers and are looked up by
the conventions the router follows:

- ``GET /pets`` declares ``operationId: listPets`` and is served by
  ``petsController.listPets``
- ``POST /pets`` declares no operationId, so the router calls
  ``petsController.createpets``
- ``GET /health`` has no ``healthController`` module and falls back to
  ``Default.listhealth``

Run with:
    uvicorn examples.asgi_example:app --reload
"""

import logging
from pathlib import Path

from oasrouter import OASApplication, Specification, create_asgi_app

HERE = Path(__file__).parent / "petstore"

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

spec = Specification.from_file(HERE / "openapi.yaml", validate=True)
oas_app = OASApplication(spec, controllers=str(HERE / "controllers"))


@oas_app.use
def log_matched_operation(request, response, next):
    """Middleware runs after path matching and before the handler."""
    logging.getLogger("examples.asgi").debug(
        f"{request.method.value} {request.path} matched {request.context['requested_path']}"
    )
    return next()


app = create_asgi_app(oas_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
