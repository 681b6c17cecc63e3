"""HTTP mapping for storefront exceptions.

Protean's integration covers validation failures (400). Missing resources
(404) and ownership or role failures (403) are registered here, with the
same ``{"error": ...}`` body shape.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers

from storefront.shared.errors import Forbidden


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": getattr(exc, "messages", None) or str(exc)})


async def _forbidden(request: Request, exc: Forbidden) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.messages})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(Forbidden, _forbidden)
