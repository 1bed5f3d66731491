"""
API v1 routes.

Defines the registration resource as a method-keyed handler mapping and
mounts it on a router at the configured path.
"""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_registration_service, get_request_context
from src.api.models import ErrorResponse
from src.domain.config import RegistrationConfig
from src.domain.exceptions import BadRequest
from src.domain.ports import RequestContext
from src.domain.registration import RegistrationService

# Route metadata per method, for OpenAPI
_ROUTE_OPTIONS: dict[str, dict[str, Any]] = {
    "GET": {
        "responses": {200: {"description": "Link to the registration resource"}},
        "summary": "Registration resource link",
        "description": "Returns a hyperlink to the registration resource.",
    },
    "POST": {
        "status_code": status.HTTP_201_CREATED,
        "responses": {
            400: {"model": ErrorResponse, "description": "Malformed request body"},
            409: {"model": ErrorResponse, "description": "Unique field already registered"},
            422: {"model": ErrorResponse, "description": "Required field missing"},
        },
        "summary": "Register a new user",
        "description": "Submit the configured user fields as a JSON object. "
        "Returns the new user's profile view with a $ref to the profile resource.",
    },
}


async def read_body(request: Request) -> Any:
    """Parse the request body as JSON."""
    try:
        return await request.json()
    except ValueError as e:
        raise BadRequest("Request body must be valid JSON") from e


def registration_routes(config: RegistrationConfig) -> dict[str, Callable[..., Any]]:
    """Build the GET and POST handlers of the registration resource."""

    async def get_registration(
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, str]:
        """Return a link to this resource; never touches the store."""
        return {"$ref": context.ref(config.path)}

    async def post_registration(
        request: Request,
        service: RegistrationService = Depends(get_registration_service),
        context: RequestContext = Depends(get_request_context),
    ) -> Any:
        """
        Register a new user.

        Only the configured user fields are read from the body. The secret
        field is stored hashed and never returned.
        """
        body = await read_body(request)
        return await service.register(body, context)

    return {"GET": get_registration, "POST": post_registration}


def build_router(config: RegistrationConfig) -> APIRouter:
    """Mount the registration handlers at ``/<config.path>``."""
    router = APIRouter(tags=["registration"])
    path = "/" + config.path.strip("/")
    for method, handler in registration_routes(config).items():
        router.add_api_route(path, handler, methods=[method], **_ROUTE_OPTIONS[method])
    return router
