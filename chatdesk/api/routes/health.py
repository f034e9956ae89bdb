from fastapi import APIRouter

from chatdesk.api.errors import timestamp
from chatdesk.dependencies.services import SettingsDep

router = APIRouter(tags=["health"])
root_router = APIRouter(tags=["health"])

ENDPOINTS = (
    "POST {prefix}/ticket - Create ticket with optional search",
    "POST {prefix}/search-help-center - Search Help Center articles",
    "POST {prefix}/search/federated - Unified search with help center fallback",
    "POST {prefix}/ticket/:id/comment - Add comment to ticket",
    "POST {prefix}/ticket/:id/private-comment - Add private comment to ticket",
    "GET {prefix}/ticket/:id - Get ticket details and status",
    "GET {prefix}/ticket/:id/comments - Get ticket comments",
    "POST {prefix}/ticket/:id/solve - Close/solve ticket",
    "GET {prefix}/user/:id - Get user information",
    "POST {prefix}/webhook/zendesk - Ticket status-change webhook",
    "GET /health - Health check",
)


@router.get("/health", summary="Liveness probe")
async def health(settings: SettingsDep) -> dict[str, str]:
    return {
        "status": "OK",
        "timestamp": timestamp(),
        "service": settings.app_name,
        "version": settings.app_version,
    }


@root_router.get("/", summary="Service banner")
async def root(settings: SettingsDep) -> dict[str, object]:
    endpoints = [item.format(prefix=settings.api_prefix) for item in ENDPOINTS]
    return {"message": f"{settings.app_name} API", "status": "Running", "endpoints": endpoints}
