"""
Sample application entry point.

Creates a FastAPI application and wires together:
- The response wrapper (route class, error middleware, handlers)
- Routers (health)
- Security (secure headers enricher, rate limiting)
- Logging configuration

No business logic belongs here. Run with
``uvicorn response_wrapper.main:app``.
"""

from collections.abc import Iterable

from fastapi import FastAPI

from response_wrapper.core.config import Settings, settings
from response_wrapper.domain.ports import (
    MetadataProvider,
    ResponseEnricher,
    ResponseTransformer,
)
from response_wrapper.interfaces.health import router as health_router
from response_wrapper.interfaces.install import install_response_wrapper
from response_wrapper.interfaces.wrapper import ResponseWrapper
from response_wrapper.shared.logging import configure_logging
from response_wrapper.shared.security.headers import SecurityHeadersEnricher
from response_wrapper.shared.security.rate_limiting import limiter


def create_app(
    app_settings: Settings | None = None,
    *,
    transformers: Iterable[ResponseTransformer] = (),
    enrichers: Iterable[ResponseEnricher] = (),
    providers: Iterable[MetadataProvider] = (),
) -> FastAPI:
    """Create and configure the FastAPI application.

    Installs the response wrapper, rate limiting, the secure headers
    enricher and the health router. This is the composition root of
    the sample application.

    Args:
        app_settings: Settings to use; defaults to the environment settings.
        transformers: Extra payload transformers.
        enrichers: Extra envelope enrichers.
        providers: Extra metadata providers.

    Returns:
        A fully configured FastAPI application instance.
    """
    app_settings = app_settings or settings
    configure_logging(
        level=app_settings.log_level,
        log_expected_errors=app_settings.log_expected_errors,
    )

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
    )

    # --- Rate Limiting ---
    # RateLimitExceeded is an HTTPException; the wrapper's handler answers it.
    app.state.limiter = limiter

    # --- Response Wrapper ---
    wrapper = ResponseWrapper(
        app_settings,
        transformers=transformers,
        enrichers=[SecurityHeadersEnricher(), *enrichers],
        providers=providers,
    )
    install_response_wrapper(app, wrapper)

    # --- Routers ---
    app.include_router(health_router)

    return app


app = create_app()
