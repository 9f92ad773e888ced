from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging

from database.fleet_store import FleetStore, MongoFleetStore
from models.component import COMPONENTS_INDEXES
from models.propagation import USAGE_UPDATE_EVENTS_INDEXES

logger = logging.getLogger(__name__)

COLLECTION_INDEXES = {
    "components": COMPONENTS_INDEXES,
    "usage_update_events": USAGE_UPDATE_EVENTS_INDEXES,
}

class Database:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, mongo_url: str, db_name: str):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(mongo_url)
            self.db = self.client[db_name]
            # Verify connection
            await self.client.admin.command('ping')
            logger.info(f"Connected to MongoDB database: {db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def ensure_indexes(self):
        """Create collection indexes (idempotent)"""
        database = self.get_db()
        for collection, indexes in COLLECTION_INDEXES.items():
            for index in indexes:
                await database[collection].create_index(index["keys"], name=index["name"])
        logger.info("MongoDB indexes ensured")

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def get_db(self) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if self.db is None:
            raise Exception("Database not connected")
        return self.db

db = Database()

async def get_database() -> AsyncIOMotorDatabase:
    return db.get_db()

async def get_fleet_store() -> FleetStore:
    return MongoFleetStore(db.get_db())
