"""
app/db/indexes.py

Purpose: Database index management

- Unique identity indexes (externalId, username)
- Lookup indexes for cohort membership and presence
"""

from pymongo import ASCENDING
from app.db.mongo import get_users_collection, get_cohorts_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        cohorts = get_cohorts_collection()
        
        # Users are resolved by the authenticated principal's external id
        await users.create_index(
            [("externalId", ASCENDING)], unique=True, name="external_id_unique"
        )
        logger.debug("Created unique index on users.externalId")
        
        # Unregistered users carry a null username
        await users.create_index(
            [("username", ASCENDING)],
            unique=True,
            partialFilterExpression={"username": {"$type": "string"}},
            name="username_unique"
        )
        logger.debug("Created partial unique index on users.username")
        
        await users.create_index([("cohorts", ASCENDING)], name="cohorts_idx")
        logger.debug("Created multikey index on users.cohorts")
        
        await users.create_index([("state", ASCENDING)], name="state_idx")
        logger.debug("Created index on users.state")
        
        await cohorts.create_index([("name", ASCENDING)], name="cohort_name_idx")
        logger.debug("Created index on cohorts.name")
        
        user_indexes = await users.index_information()
        cohort_indexes = await cohorts.index_information()
        logger.info(
            f"Index summary: Users={len(user_indexes)}, Cohorts={len(cohort_indexes)}"
        )
        
    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


async def drop_all_indexes():
    """
    Drops all custom indexes (keeps _id index).
    Use with caution! Only for maintenance/migration.
    """
    try:
        logger.warning("Dropping all database indexes...")
        await get_users_collection().drop_indexes()
        await get_cohorts_collection().drop_indexes()
        logger.info("All indexes dropped")
        
    except Exception as e:
        logger.error(f"Failed to drop indexes: {str(e)}", exc_info=True)
        raise
