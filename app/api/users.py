"""
app/api/users.py

Purpose: Users endpoints

- Routes HTTP requests to the UserHandler
- Query/path/body parsing only; no business logic here
- Self-scoped routes ignore the {mid} path parameter and act on the
  authenticated principal
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.api.deps import get_principal, get_storeless_handler, get_user_handler
from app.core.config import settings
from app.core.logging import get_logger
from app.models.principal import Principal
from app.schemas.response import ProblemDetail
from app.schemas.user import UserListPage, UserUpdate
from app.services.user_handler import UserHandler

logger = get_logger(__name__)
router = APIRouter(prefix="/users")

PROBLEM_RESPONSES = {
    400: {"model": ProblemDetail, "description": "Bad request"},
    401: {"model": ProblemDetail, "description": "Not authenticated"},
    500: {"model": ProblemDetail, "description": "Unexpected problem"},
}


@router.post("", status_code=405, responses={405: {"model": ProblemDetail}})
async def create_user(handler: UserHandler = Depends(get_storeless_handler)) -> Response:
    """Always rejected: users are created through Facebook authentication."""
    return await handler.create()


@router.get("", responses={200: {"model": UserListPage}, 204: {"description": "No users"}, **PROBLEM_RESPONSES})
async def list_users(
    skip: int = Query(0, ge=0, description="Number of users to skip"),
    take: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Number of users to return"
    ),
    handler: UserHandler = Depends(get_user_handler),
) -> Response:
    return await handler.list(skip, take)


@router.get("/{mid}", responses=PROBLEM_RESPONSES)
async def get_user(mid: str, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.get_by_id(mid)


@router.put("/{mid}", responses=PROBLEM_RESPONSES)
async def update_user(
    mid: str,
    body: UserUpdate,
    principal: Principal = Depends(get_principal),
    handler: UserHandler = Depends(get_user_handler),
) -> Response:
    """
    Updates the authenticated user's profile.
    
    The path id is accepted for URL compatibility but never selects the
    record; the principal does.
    """
    logger.debug(f"Profile update via /users/{mid}", extra={"external_id": principal.external_id})
    return await handler.update(body, principal)


@router.delete("/{mid}", responses=PROBLEM_RESPONSES)
async def delete_user(
    mid: str,
    principal: Principal = Depends(get_principal),
    handler: UserHandler = Depends(get_user_handler),
) -> Response:
    """Deletes the authenticated user; the path id is ignored."""
    logger.debug(f"Account deletion via /users/{mid}", extra={"external_id": principal.external_id})
    return await handler.delete(principal)


@router.get("/{mid}/cohorts", dependencies=[Depends(get_principal)], responses=PROBLEM_RESPONSES)
async def get_user_cohorts(mid: str, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.get_cohorts_by_id(mid)


@router.put("/{mid}/cohorts/{cid}", dependencies=[Depends(get_principal)], responses=PROBLEM_RESPONSES)
async def add_user_cohort(mid: str, cid: str, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.add_cohort_for_user(mid, cid)


@router.delete("/{mid}/cohorts/{cid}", dependencies=[Depends(get_principal)], responses=PROBLEM_RESPONSES)
async def remove_user_cohort(mid: str, cid: str, handler: UserHandler = Depends(get_user_handler)) -> Response:
    return await handler.remove_cohort_from_user(mid, cid)


@router.get("/{mid}/messages", responses=PROBLEM_RESPONSES)
async def get_user_messages(
    mid: str,
    principal: Principal = Depends(get_principal),
    handler: UserHandler = Depends(get_user_handler),
) -> Response:
    """
    Returns the caller's undelivered messages once; they are cleared by
    this read. Another user's id gets 204 and leaves that inbox untouched.
    """
    return await handler.get_messages(mid, principal)
