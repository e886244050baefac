import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from ..core.config import Settings

logger = logging.getLogger(__name__)

CONTENT_COLLECTION = "contents"
PREFERENCE_COLLECTION = "userpreferences"
CATEGORY_COLLECTION = "categories"


class MongoDBConnection:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    def __init__(self, settings: Settings):
        self.settings = settings

    async def connect(self) -> AsyncIOMotorDatabase:
        """Connect to MongoDB and return the discovery database"""
        try:
            self.client = AsyncIOMotorClient(
                self.settings.MONGODB_URI,
                connectTimeoutMS=self.settings.MONGODB_CONNECT_TIMEOUT_MS,
                retryWrites=True,
                retryReads=True,
                appname="discovery-service",
            )
            self.db = self.client[self.settings.MONGODB_DB_NAME]
            await self.db.command("ping")
            logger.info(f"Successfully connected to MongoDB database: {self.settings.MONGODB_DB_NAME}")
            return self.db
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {str(e)}")
            raise

    async def close(self):
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the replica and preference queries rely on."""
    contents = db[CONTENT_COLLECTION]
    await contents.create_index([("contentId", ASCENDING)], unique=True)
    await contents.create_index([("publishDate", DESCENDING), ("category", ASCENDING)])
    await contents.create_index([("category", ASCENDING), ("type", ASCENDING)])
    await contents.create_index([("tags", ASCENDING), ("publishDate", DESCENDING)])

    await db[PREFERENCE_COLLECTION].create_index([("userId", ASCENDING)], unique=True)
    await db[CATEGORY_COLLECTION].create_index([("name", ASCENDING)], unique=True)
    logger.info("MongoDB indexes ensured")
