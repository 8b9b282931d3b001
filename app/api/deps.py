"""
app/api/deps.py

Purpose: Request dependencies

- Authenticated principal from the auth gateway header
- User store bound to the live MongoDB collections
- User handler configured from settings
"""

from fastapi import Depends, Request

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.db.mongo import get_cohorts_collection, get_users_collection
from app.models.principal import Principal
from app.services.user_handler import UserHandler
from app.services.user_store import UserStore


def get_principal(request: Request) -> Principal:
    """
    Reads the caller's third-party id forwarded by the authentication gateway.
    
    Raises:
        AuthenticationError: If the header is missing or blank
    """
    external_id = request.headers.get(settings.AUTH_HEADER, "").strip()
    if not external_id:
        raise AuthenticationError()
    return Principal(external_id=external_id)


def get_user_store() -> UserStore:
    return UserStore(get_users_collection(), get_cohorts_collection())


def get_user_handler(store: UserStore = Depends(get_user_store)) -> UserHandler:
    return UserHandler(
        store,
        messages_error_as_no_content=settings.MESSAGES_ERROR_AS_NO_CONTENT
    )


def get_storeless_handler() -> UserHandler:
    """Handler for operations that never reach the database."""
    return UserHandler(store=None)
