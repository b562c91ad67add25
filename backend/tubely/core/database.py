"""
Tubely MongoDB Database Client Module

Async MongoDB connection management using Motor:
- Connection pooling sized from settings
- Startup ping with retry and exponential backoff
- Collection accessors for ``videos`` and ``users``
- Index creation for the owner listing and unique email lookups
- init/close hooks for the FastAPI lifespan
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from tubely.config import Settings, get_settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"
USERS_COLLECTION = "users"

CONNECT_MAX_RETRIES = 3
CONNECT_INITIAL_DELAY_SECONDS = 1.0


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()
        videos = db_client.get_videos_collection()
        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._mongodb_uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._min_pool_size = settings.mongodb_min_pool_size
        self._max_pool_size = settings.mongodb_max_pool_size

        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Open the Motor client and verify it with a ping.

        Retries up to three times with exponential backoff (1s, 2s, 4s).

        Returns:
            bool: True when connected, False after every attempt failed.
        """
        retry_delay = CONNECT_INITIAL_DELAY_SECONDS

        for attempt in range(1, CONNECT_MAX_RETRIES + 1):
            try:
                logger.info(
                    f"Attempting MongoDB connection (attempt {attempt}/{CONNECT_MAX_RETRIES}) "
                    f"to {self._db_name}..."
                )
                self._client = AsyncIOMotorClient(
                    self._mongodb_uri,
                    minPoolSize=self._min_pool_size,
                    maxPoolSize=self._max_pool_size,
                    serverSelectionTimeoutMS=5000,
                    uuidRepresentation="standard",
                    tz_aware=True,
                )
                self._database = self._client[self._db_name]
                await self._client.admin.command("ping")

                logger.info(
                    f"Connected to MongoDB database: {self._db_name} "
                    f"with pool size {self._min_pool_size}-{self._max_pool_size}"
                )
                return True

            except (ServerSelectionTimeoutError, ConnectionFailure):
                logger.exception(f"MongoDB connection failure (attempt {attempt}/{CONNECT_MAX_RETRIES})")
                if attempt < CONNECT_MAX_RETRIES:
                    logger.warning(f"Retrying in {retry_delay} seconds...")
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2

        logger.error(
            f"Failed to connect to MongoDB after {CONNECT_MAX_RETRIES} attempts. "
            "Check connection URI and server availability."
        )
        return False

    async def close(self) -> None:
        """Close the Motor client. Safe to call when not connected."""
        if self._client is None:
            logger.warning("MongoDB close called but no active connection exists")
            return

        self._client.close()
        self._client = None
        self._database = None
        logger.info(f"MongoDB connection closed for database: {self._db_name}")

    async def ping(self) -> bool:
        """Health check using the admin ping command."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.exception("MongoDB ping failed")
            return False
        return True

    def get_database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """Collection of video metadata records, keyed by UUID ``_id``."""
        return self.get_database()[VIDEOS_COLLECTION]

    def get_users_collection(self) -> AsyncIOMotorCollection:
        """Collection of user accounts, unique on ``email``."""
        return self.get_database()[USERS_COLLECTION]

    async def create_indexes(self) -> None:
        """
        Create the indexes the read paths rely on.

        - videos: user_id, (user_id, created_at desc) for the owner listing
        - users: email (unique)
        """
        database = self.get_database()

        logger.info("Creating MongoDB indexes...")
        videos = database[VIDEOS_COLLECTION]
        await videos.create_index("user_id")
        await videos.create_index([("user_id", 1), ("created_at", DESCENDING)])

        users = database[USERS_COLLECTION]
        await users.create_index("email", unique=True)
        logger.info("All MongoDB indexes created successfully")


class _DatabaseClientContainer:
    """Holds the process-wide DatabaseClient without a global statement."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Connect the shared database client and create indexes.

    Called from the FastAPI lifespan.

    Raises:
        RuntimeError: If MongoDB is unreachable after all retries.
    """
    if _container.client is not None:
        logger.warning("Database client already initialized, returning existing instance")
        return _container.client

    client = DatabaseClient(settings or get_settings())
    if not await client.connect():
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )

    await client.create_indexes()
    _container.client = client
    logger.info("MongoDB database client initialization complete")
    return client


async def close_db() -> None:
    """Close the shared database client during shutdown."""
    if _container.client is None:
        logger.warning("close_db called but no database client exists")
        return

    await _container.client.close()
    _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Return the shared database client.

    Raises:
        RuntimeError: If ``init_db()`` has not run.
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client


__all__ = [
    "USERS_COLLECTION",
    "VIDEOS_COLLECTION",
    "DatabaseClient",
    "close_db",
    "get_db_client",
    "init_db",
]
