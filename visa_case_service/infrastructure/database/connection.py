from visa_case_service.app.config import settings
import functools
import logging
from typing import Any, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from visa_case_service.app.service.exceptions import PersistenceError

logger = logging.getLogger(__name__)

VISA_CASES_COLLECTION = "visa_cases"
DOCUMENTS_COLLECTION = "documents"
DOCUMENT_ALERTS_COLLECTION = "document_alerts"


async def connect_to_mongo(state: Any, mongo_details: Optional[str] = None, db_name: Optional[str] = None) -> AsyncIOMotorDatabase:
    """
    Creates the Motor client once and stores it, together with the database handle,
    on the given state object (FastAPI's app.state or the scheduler's namespace).
    """
    if getattr(state, "db", None) is not None:
        logger.info("MongoDB connection already established.")
        return state.db

    mongo_details = mongo_details or settings.MONGO_DETAILS
    db_name = db_name or settings.DB_NAME
    try:
        logger.info(f"Attempting to connect to MongoDB at {mongo_details}...")
        client = AsyncIOMotorClient(mongo_details, tz_aware=True)
        await client.admin.command('ping')
    except PyMongoError as e:
        logger.error(f"Failed to connect to MongoDB: {e}", exc_info=True)
        raise ConnectionError(f"Failed to connect to MongoDB: {e}") from e

    state.mongo_client = client
    state.db = client[db_name]
    logger.info(f"Successfully connected to MongoDB and database '{db_name}' is set.")
    return state.db


def close_mongo_connection(state: Any) -> None:
    client = getattr(state, "mongo_client", None)
    if client:
        client.close()
        logger.info("MongoDB connection closed.")
    state.mongo_client = None
    state.db = None


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the database handle created at startup."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        logger.error("Database not initialized on application state.")
        raise ConnectionError("Database client is not available. Connection might have failed or was not established.")
    return db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[VISA_CASES_COLLECTION].create_index([("case_id", ASCENDING)], unique=True)
    await db[VISA_CASES_COLLECTION].create_index([("client_id", ASCENDING)])
    await db[VISA_CASES_COLLECTION].create_index([("status", ASCENDING)])
    await db[VISA_CASES_COLLECTION].create_index([("created_at", DESCENDING)])
    await db[DOCUMENTS_COLLECTION].create_index([("document_id", ASCENDING)], unique=True)
    await db[DOCUMENTS_COLLECTION].create_index([("visa_case_id", ASCENDING)])
    await db[DOCUMENT_ALERTS_COLLECTION].create_index(
        [("document_id", ASCENDING), ("alert_type", ASCENDING), ("status", ASCENDING)]
    )
    logger.info("MongoDB indexes ensured.")


def translate_pymongo_errors(func):
    """Re-raises driver failures as PersistenceError. Duplicate keys pass through for callers that retry."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error(f"MongoDB operation {func.__name__} failed: {e}", exc_info=True)
            raise PersistenceError(f"{func.__name__} failed: {e}") from e
    return wrapper
