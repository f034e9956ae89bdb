from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatdesk.api.errors import register_error_handlers
from chatdesk.api.routes import health, search, tickets, users, webhooks
from chatdesk.core.config import Settings, get_settings
from chatdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from chatdesk.services import build_services


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings: Settings = app.state.settings
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    services = build_services(settings)
    app.state.logger = logger
    app.state.services = services
    logger.info(
        "%s started (helpdesk: %s, unified search: %s)",
        settings.app_name,
        settings.zendesk_subdomain or settings.zendesk_base_url or "NOT_CONFIGURED",
        "configured" if settings.federated_search_configured else "NOT_CONFIGURED",
    )
    try:
        yield
    finally:
        await services.close()
        shutdown_tracer(tracer_provider)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    # The chat widget is embedded on arbitrary customer pages.
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    register_error_handlers(app)

    app.include_router(health.root_router)
    app.include_router(health.router)
    app.include_router(health.router, prefix=settings.api_prefix, include_in_schema=False)
    app.include_router(tickets.router, prefix=settings.api_prefix)
    app.include_router(search.router, prefix=settings.api_prefix)
    app.include_router(users.router, prefix=settings.api_prefix)
    app.include_router(webhooks.router, prefix=settings.api_prefix)
    return app


app = create_app()
