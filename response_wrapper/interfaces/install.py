"""
Installation of the response wrapper on a FastAPI application.

Wires the two entry points of the core into the application:
- Success path: ResponseWrapperRoute becomes the router's route class.
- Failure path: ErrorEnvelopeMiddleware and the HTTPException /
  RequestValidationError handlers.

Must be called before routes are declared and before the application
starts serving.
"""

import logging
from typing import Any

from fastapi import FastAPI

from response_wrapper.interfaces.middleware import (
    ErrorEnvelopeMiddleware,
    register_error_handlers,
)
from response_wrapper.interfaces.route import ResponseWrapperRoute
from response_wrapper.interfaces.wrapper import STATE_ATTR, ResponseWrapper

logger = logging.getLogger(__name__)


def install_response_wrapper(
    app: FastAPI, wrapper: ResponseWrapper | None = None, **options: Any
) -> ResponseWrapper:
    """Install envelope wrapping on an application.

    Routers included later must be created with
    ``APIRouter(route_class=ResponseWrapperRoute)`` to be wrapped.

    Args:
        app: The FastAPI application instance.
        wrapper: A configured wrapper; built from ``options`` if omitted.
        **options: Keyword arguments for ResponseWrapper.

    Returns:
        The installed wrapper.
    """
    if wrapper is None:
        wrapper = ResponseWrapper(**options)

    setattr(app.state, STATE_ATTR, wrapper)
    app.router.route_class = ResponseWrapperRoute
    register_error_handlers(app)
    app.add_middleware(ErrorEnvelopeMiddleware)

    logger.info(
        "Response wrapper installed (success=%s, errors=%s)",
        wrapper.settings.wrap_success_responses,
        wrapper.settings.wrap_error_responses,
    )
    return wrapper
