from pydantic import BaseModel
from typing import Optional, Any

class ProblemDetail(BaseModel):
    """
    Problem document returned for every failed request.
    """
    status: int
    title: str
    detail: Optional[str] = None
    errors: Optional[Any] = None
