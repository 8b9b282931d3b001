from typing import Optional


class YfaError(Exception):
    """
    Base exception for the YFA users API.

    Carries everything needed to render a problem document.
    """
    def __init__(self, title: str, detail: Optional[str] = None, status_code: int = 500):
        self.title = title
        self.detail = detail
        self.status_code = status_code
        super().__init__(self.title)


class AuthenticationError(YfaError):
    """
    Raised when a request carries no authenticated principal.
    """
    def __init__(self, title: str = "Authentication required", detail: Optional[str] = None):
        super().__init__(
            title,
            detail or "This operation requires an authenticated user",
            status_code=401,
        )


class StoreError(YfaError):
    """
    Raised by the user store when the document database fails.
    """
    def __init__(self, title: str = "Store error", detail: Optional[str] = None):
        super().__init__(title, detail, status_code=500)


class DuplicateKeyStoreError(StoreError):
    """
    Raised when a write violates a unique index (username, externalId).
    """
    def __init__(self, title: str = "Duplicate key", detail: Optional[str] = None):
        super().__init__(title, detail)
