"""
app/services/user_store.py

Purpose: User document store

- Thin async wrapper over the users and cohorts collections
- Public listing and counting
- Cohort membership add/remove
- Lookup by third-party identity
- Read-once retrieval of undelivered messages
- Converts driver failures into StoreError
"""

from functools import wraps
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import DuplicateKeyStoreError, StoreError
from app.core.logging import get_logger
from app.models.user import PUBLIC_FIELDS

logger = get_logger(__name__)


def _store_operation(func):
    """Re-raises driver and id errors from a store method as StoreError."""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key in {func.__name__}: {e}")
            raise DuplicateKeyStoreError(detail=str(e)) from e
        except (PyMongoError, InvalidId) as e:
            logger.error(f"Store operation {func.__name__} failed: {e}")
            raise StoreError(detail=str(e)) from e
    return wrapper


class UserStore:
    """
    Document store for user profiles.
    
    Every method raises StoreError when the database fails or an id is
    malformed; "not found" is reported as None, never as an exception.
    """
    
    def __init__(self, users: AsyncIOMotorCollection, cohorts: AsyncIOMotorCollection):
        self.users = users
        self.cohorts = cohorts
    
    @_store_operation
    async def list(self, skip: int, take: int) -> List[Dict[str, Any]]:
        cursor = (
            self.users.find({}, PUBLIC_FIELDS)
            .sort("_id", ASCENDING)
            .skip(skip)
            .limit(take)
        )
        return await cursor.to_list(length=take)
    
    @_store_operation
    async def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        return await self.users.count_documents(filter or {})
    
    @_store_operation
    async def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.users.find_one({"_id": ObjectId(user_id)})
    
    @_store_operation
    async def get_cohorts_by_id(self, user_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Resolves the user's cohort references into cohort documents.
        
        Returns:
            Cohort documents, or None if the user does not exist
        """
        user = await self.users.find_one({"_id": ObjectId(user_id)}, {"cohorts": 1})
        if user is None:
            return None
        
        cohort_ids = user.get("cohorts") or []
        if not cohort_ids:
            return []
        
        cursor = self.cohorts.find({"_id": {"$in": cohort_ids}})
        return await cursor.to_list(length=len(cohort_ids))
    
    @_store_operation
    async def add_cohort(self, user_id: str, cohort_id: str) -> Optional[List[ObjectId]]:
        """
        Adds a cohort reference to the user (no duplicates).
        
        Returns:
            The user's updated cohort ids, or None if the user does not exist
        """
        user = await self.users.find_one_and_update(
            {"_id": ObjectId(user_id)},
            {"$addToSet": {"cohorts": ObjectId(cohort_id)}},
            projection={"cohorts": 1},
            return_document=ReturnDocument.AFTER
        )
        return user.get("cohorts", []) if user else None
    
    @_store_operation
    async def remove_cohort(self, user_id: str, cohort_id: str) -> Optional[List[ObjectId]]:
        """
        Removes a cohort reference from the user.
        
        Returns:
            The user's updated cohort ids, or None if the user does not exist
        """
        user = await self.users.find_one_and_update(
            {"_id": ObjectId(user_id)},
            {"$pull": {"cohorts": ObjectId(cohort_id)}},
            projection={"cohorts": 1},
            return_document=ReturnDocument.AFTER
        )
        return user.get("cohorts", []) if user else None
    
    @_store_operation
    async def find_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        return await self.users.find_one({"externalId": external_id})
    
    @_store_operation
    async def save(self, user: Dict[str, Any]) -> Dict[str, Any]:
        await self.users.replace_one({"_id": user["_id"]}, user)
        return user
    
    @_store_operation
    async def remove(self, user: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.users.delete_one({"_id": user["_id"]})
        if result.deleted_count == 0:
            logger.warning(f"User {user['_id']} was already removed")
        return user
    
    @_store_operation
    async def get_messages(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns the user's undelivered messages and marks them delivered.
        
        The returned document is the pre-image, so it holds the messages
        as they were before being cleared.
        """
        return await self.users.find_one_and_update(
            {"_id": ObjectId(user_id)},
            {"$set": {"messages": []}},
            projection={"messages": 1},
            return_document=ReturnDocument.BEFORE
        )
