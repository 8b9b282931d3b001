"""
app/services/user_handler.py

Purpose: User request handling

- Validates requests against the user store
- Scopes profile updates and deletion to the authenticated principal
- Maps store failures and empty results onto fixed status codes
- Emits every response through a Responder
"""

from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import Response

from app.api.responses import Responder
from app.core.exceptions import DuplicateKeyStoreError, StoreError
from app.core.logging import get_logger, LogContext
from app.models.principal import Principal
from app.models.user import UserState
from app.schemas.user import ListMeta, UserListPage, UserUpdate
from app.services.user_store import UserStore
from utils import constants
from utils.validation_utils import merge_field, validate_username

logger = get_logger(__name__)


def _is_empty(result: Any) -> bool:
    return result is None or (isinstance(result, (list, tuple)) and len(result) == 0)


class UserHandler:
    """
    Request handlers for the users API.

    Empty results are reported as 204 No Content rather than 404 so that
    lookups do not reveal whether a user exists.
    """

    def __init__(
        self,
        store: Optional[UserStore],
        responder: Optional[Responder] = None,
        messages_error_as_no_content: bool = True
    ):
        self.store = store
        self.responder = responder or Responder()
        self.messages_error_as_no_content = messages_error_as_no_content

    def _unexpected(self, detail: str) -> Response:
        return self.responder.problem(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            constants.UNEXPECTED_PROBLEM_TITLE,
            detail
        )

    def _ok_or_no_content(self, result: Any) -> Response:
        if _is_empty(result):
            return self.responder.json(status.HTTP_204_NO_CONTENT)
        return self.responder.json(status.HTTP_200_OK, result)

    async def create(self) -> Response:
        """Users are only ever created by third-party authentication."""
        return self.responder.problem(
            status.HTTP_405_METHOD_NOT_ALLOWED,
            constants.CREATE_NOT_ALLOWED_TITLE,
            constants.CREATE_NOT_ALLOWED_DETAIL
        )

    async def list(self, skip: int, take: int) -> Response:
        """
        Lists users, then counts them for the paging metadata.

        A failed count does not fail the request; the total falls back to 0.
        """
        try:
            results = await self.store.list(skip, take)
        except StoreError:
            logger.error("Could not list users", exc_info=True)
            return self._unexpected(constants.LIST_USERS_FAILED)

        if _is_empty(results):
            return self.responder.json(status.HTTP_204_NO_CONTENT)

        try:
            total = await self.store.count()
        except StoreError:
            logger.warning("Could not count users, reporting total as 0", exc_info=True)
            total = None

        page = UserListPage(meta=ListMeta(total=total or 0), results=results)
        return self.responder.json(status.HTTP_200_OK, page.model_dump())

    async def get_by_id(self, user_id: str) -> Response:
        try:
            user = await self.store.get_by_id(user_id)
        except StoreError:
            logger.error("Could not retrieve user", extra={"user_id": user_id}, exc_info=True)
            return self._unexpected(constants.GET_USER_FAILED)

        return self._ok_or_no_content(user)

    async def get_cohorts_by_id(self, user_id: str) -> Response:
        try:
            cohorts = await self.store.get_cohorts_by_id(user_id)
        except StoreError:
            logger.error("Could not retrieve cohorts", extra={"user_id": user_id}, exc_info=True)
            return self._unexpected(constants.GET_COHORTS_FAILED)

        return self._ok_or_no_content(cohorts)

    async def add_cohort_for_user(self, user_id: str, cohort_id: str) -> Response:
        try:
            cohorts = await self.store.add_cohort(user_id, cohort_id)
        except StoreError:
            logger.error(
                f"Could not add cohort {cohort_id}",
                extra={"user_id": user_id},
                exc_info=True
            )
            return self._unexpected(constants.ADD_COHORT_FAILED)

        return self._ok_or_no_content(cohorts)

    async def remove_cohort_from_user(self, user_id: str, cohort_id: str) -> Response:
        try:
            cohorts = await self.store.remove_cohort(user_id, cohort_id)
        except StoreError:
            logger.error(
                f"Could not remove cohort {cohort_id}",
                extra={"user_id": user_id},
                exc_info=True
            )
            return self._unexpected(constants.REMOVE_COHORT_FAILED)

        return self._ok_or_no_content(cohorts)

    async def _resolve(self, principal: Principal) -> Optional[Dict[str, Any]]:
        """Finds the caller's own user document, or None if that fails."""
        try:
            return await self.store.find_by_external_id(principal.external_id)
        except StoreError:
            logger.error("Could not resolve authenticated user", exc_info=True)
            return None

    async def update(self, body: UserUpdate, principal: Principal) -> Response:
        """
        Updates the caller's profile.

        The username can only be chosen while registration is incomplete;
        the first successful update completes registration. Falsy names and
        email keep their stored values, the avatar is always replaced.
        """
        with LogContext(external_id=principal.external_id, operation="update"):
            user = await self._resolve(principal)
            if user is None:
                return self.responder.problem(
                    status.HTTP_400_BAD_REQUEST,
                    constants.SAVE_USER_TITLE,
                    constants.RESOLVE_USER_DETAIL
                )

            if not user.get("registrationDone"):
                if not validate_username(body.username):
                    logger.info("Rejected invalid username")
                    return self.responder.problem(
                        status.HTTP_400_BAD_REQUEST,
                        constants.INVALID_USERNAME_TITLE,
                        constants.INVALID_USERNAME_DETAIL
                    )
                user["username"] = body.username

            user["registrationDone"] = True
            user["firstName"] = merge_field(body.firstName, user.get("firstName"))
            user["lastName"] = merge_field(body.lastName, user.get("lastName"))
            user["email"] = merge_field(body.email, user.get("email"))
            user["state"] = UserState.ONLINE.value
            user["avatar"] = body.avatar

            try:
                saved = await self.store.save(user)
            except DuplicateKeyStoreError:
                logger.info(f"Username {user.get('username')} is already taken")
                return self.responder.problem(
                    status.HTTP_400_BAD_REQUEST,
                    constants.INVALID_USERNAME_TITLE,
                    constants.USERNAME_TAKEN_DETAIL
                )
            except StoreError:
                logger.error("Could not save user", exc_info=True)
                return self._unexpected(constants.SAVE_USER_FAILED)

            logger.info("User profile saved", extra={"user_id": str(saved.get("_id"))})
            return self.responder.json(status.HTTP_200_OK, saved)

    async def delete(self, principal: Principal) -> Response:
        """Deletes the caller's own user document."""
        with LogContext(external_id=principal.external_id, operation="delete"):
            user = await self._resolve(principal)
            if user is None:
                return self.responder.problem(
                    status.HTTP_400_BAD_REQUEST,
                    constants.DELETE_USER_TITLE,
                    constants.RESOLVE_USER_DETAIL
                )

            try:
                removed = await self.store.remove(user)
            except StoreError:
                logger.error("Could not delete user", exc_info=True)
                return self._unexpected(constants.DELETE_USER_FAILED)

            logger.info("User deleted", extra={"user_id": str(user.get("_id"))})
            return self.responder.json(status.HTTP_200_OK, removed)

    async def get_messages(self, user_id: str, principal: Optional[Principal] = None) -> Response:
        """
        Returns the user's undelivered messages.

        Reading clears the inbox, so when a principal is given only its own
        inbox is read; any other id is answered like an empty inbox.

        A store error, a missing user and a null inbox all produce the same
        204 unless messages_error_as_no_content is disabled, in which case
        store errors become 500.
        """
        if principal is not None:
            with LogContext(external_id=principal.external_id, operation="get_messages"):
                owner = await self._resolve(principal)
                if owner is None or str(owner.get("_id")) != user_id:
                    logger.info("Refused to read another user's messages", extra={"user_id": user_id})
                    return self.responder.json(status.HTTP_204_NO_CONTENT)

        try:
            doc = await self.store.get_messages(user_id)
        except StoreError:
            logger.error("Could not retrieve messages", extra={"user_id": user_id}, exc_info=True)
            if not self.messages_error_as_no_content:
                return self._unexpected(constants.GET_MESSAGES_FAILED)
            doc = None

        if doc is None or doc.get("messages") is None:
            return self.responder.json(status.HTTP_204_NO_CONTENT)

        return self.responder.json(status.HTTP_200_OK, doc)
