"""
MongoDB Connection Management

Centralized connection handling for MongoDB.
Repositories get their collections through get_collection().
"""
import logging
from typing import Optional
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
import certifi

from app.config import settings

logger = logging.getLogger(__name__)

# Global connection instance
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def connect(
    connection_string: str = None,
    db_name: str = None
) -> Database:
    """
    Establish MongoDB connection, with TLS when MONGODB_TLS is enabled.

    Args:
        connection_string: MongoDB URI (defaults to settings)
        db_name: Database name (defaults to settings)

    Returns:
        MongoDB Database instance

    Raises:
        ConnectionFailure: If connection fails
    """
    global _client, _database

    if _database is not None:
        return _database

    conn_str = connection_string or settings.MONGODB_URI
    database_name = db_name or settings.MONGODB_DB_NAME

    tls_options = {"tls": True, "tlsCAFile": certifi.where()} if settings.MONGODB_TLS else {}

    try:
        _client = MongoClient(
            conn_str,
            serverSelectionTimeoutMS=10000,
            connectTimeoutMS=15000,
            socketTimeoutMS=15000,
            retryWrites=True,
            maxPoolSize=50,
            minPoolSize=10,
            **tls_options
        )

        # Test connection
        _client.admin.command('ping')
        _database = _client[database_name]

        logger.info(f"Connected to MongoDB: {database_name}")
        return _database

    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error(f"Failed to connect to MongoDB: {str(e)}")
        raise


def ensure_indexes(db: Database = None):
    """Create the indexes the repositories rely on. Idempotent."""
    db = db if db is not None else get_database()

    db["users"].create_index("user_id", unique=True)
    db["users"].create_index("email", unique=True)
    db["users"].create_index("api_key_hash")
    db["clients"].create_index("client_id", unique=True)
    db["clients"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db["briefs"].create_index("brief_id", unique=True)
    db["briefs"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db["proposals"].create_index("proposal_id", unique=True)
    db["proposals"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db["subscriptions"].create_index("user_id", unique=True)
    db["proposal_templates"].create_index("template_id", unique=True)
    db["proposal_templates"].create_index([("is_system_template", ASCENDING), ("usage_count", DESCENDING)])
    db["llm_cache"].create_index("cache_key", unique=True)
    # TTL: documents are removed once expires_at passes
    db["llm_cache"].create_index("expires_at", expireAfterSeconds=0)

    logger.info("MongoDB indexes ensured")


def get_database() -> Database:
    """
    Get the database instance, connecting if necessary.

    Returns:
        MongoDB Database instance
    """
    global _database
    if _database is None:
        return connect()
    return _database


def close_database():
    """Close the database connection."""
    global _client, _database
    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("Disconnected from MongoDB")


def get_collection(collection_name: str):
    """
    Get a collection from the database.

    Args:
        collection_name: Name of the collection

    Returns:
        MongoDB Collection
    """
    db = get_database()
    return db[collection_name]
