"""
Database initialization script

Creates (or drops) the users/cohorts indexes and can insert a user the way
the Facebook login flow does, for local development:

    python scripts/init_db.py
    python scripts/init_db.py --check
    python scripts/init_db.py --drop
    python scripts/init_db.py --seed-user 10152748 --first-name Ada
"""

import argparse
import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.db.indexes import create_indexes, drop_all_indexes
from app.db.mongo import close_mongo_connection, connect_to_mongo, get_users_collection
from app.models.user import new_user_document

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def check_indexes():
    indexes = await get_users_collection().index_information()
    logger.info(f"users indexes: {sorted(indexes.keys())}")


async def seed_user(external_id: str, first_name: str = None, last_name: str = None):
    users = get_users_collection()
    if await users.find_one({"externalId": external_id}):
        logger.info(f"User with externalId {external_id} already exists")
        return
    
    document = new_user_document(external_id, firstName=first_name, lastName=last_name)
    result = await users.insert_one(document)
    logger.info(f"Inserted user {result.inserted_id} for externalId {external_id}")


async def main(args: argparse.Namespace):
    await connect_to_mongo()
    try:
        if args.drop:
            await drop_all_indexes()
        elif args.check:
            await check_indexes()
        else:
            await create_indexes()
        
        if args.seed_user:
            await seed_user(args.seed_user, args.first_name, args.last_name)
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the YFA users database")
    parser.add_argument("--check", action="store_true", help="List existing indexes")
    parser.add_argument("--drop", action="store_true", help="Drop all custom indexes")
    parser.add_argument("--seed-user", metavar="EXTERNAL_ID", help="Insert an unregistered user")
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    asyncio.run(main(parser.parse_args()))
