from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from chatdesk.api.errors import error_response, forwarded_status
from chatdesk.dependencies.services import ZendeskDep
from chatdesk.upstream import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["users"])


class UserResponse(BaseModel):
    id: Any
    name: str | None = None
    email: str | None = None
    role: str | None = None


@router.get("/{user_id}", response_model=UserResponse, summary="Get basic user identity")
async def get_user(user_id: int, zendesk: ZendeskDep) -> Any:
    try:
        user = await zendesk.get_user(user_id)
    except UpstreamError as exc:
        logger.error("Error fetching user %s: %s", user_id, exc)
        return error_response(forwarded_status(exc), "Failed to fetch user information", message=exc.message)
    return UserResponse(
        id=user.get("id", user_id),
        name=user.get("name"),
        email=user.get("email"),
        role=user.get("role"),
    )
