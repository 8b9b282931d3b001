"""
app/schemas/user.py

Pydantic models for the users API request and response bodies.
Field names are camelCase to match the stored documents.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class UserUpdate(BaseModel):
    """Request body for a profile update. Unknown keys are ignored."""
    
    model_config = ConfigDict(extra="ignore")
    
    username: Optional[str] = Field(default=None, description="Only applied before registration completes")
    firstName: Optional[str] = Field(default=None, description="First name")
    lastName: Optional[str] = Field(default=None, description="Last name")
    email: Optional[str] = Field(default=None, description="Contact email")
    avatar: Optional[str] = Field(default=None, description="Avatar URL; omitting it clears the avatar")


class ListMeta(BaseModel):
    """Paging metadata for list responses."""
    
    total: int = Field(default=0, description="Total number of users in the store")


class UserListPage(BaseModel):
    """Response body for the user listing endpoint."""
    
    meta: ListMeta
    results: List[Dict[str, Any]]
