"""
app/models/user.py

Purpose: User document model

- Third-party (Facebook) identity
- Profile fields and registration flag
- Presence state
- Cohort references and undelivered messages
"""

from enum import Enum
from typing import Any, Dict


class UserState(str, Enum):
    """
    Presence state stored on the user document.
    """
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


# Fields served by the public listing; never externalId, email or messages
PUBLIC_FIELDS: Dict[str, int] = {
    "username": 1,
    "firstName": 1,
    "lastName": 1,
    "avatar": 1,
    "state": 1,
    "cohorts": 1,
}


def new_user_document(external_id: str, **profile: Any) -> Dict[str, Any]:
    """
    Builds the document the authentication collaborator inserts on first login.

    Args:
        external_id: Third-party identity
        **profile: Optional firstName, lastName, email, avatar

    Returns:
        User document ready to insert
    """
    return {
        "externalId": external_id,
        "username": None,
        "firstName": profile.get("firstName"),
        "lastName": profile.get("lastName"),
        "email": profile.get("email"),
        "avatar": profile.get("avatar"),
        "state": UserState.OFFLINE.value,
        "registrationDone": False,
        "cohorts": [],
        "messages": [],
    }
