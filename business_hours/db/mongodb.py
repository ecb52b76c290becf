from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from business_hours.core.config import settings
import logging

logger = logging.getLogger(__name__)

WEEKLY_HOURS = "business_hours"
EXCEPTIONS = "business_availability_exceptions"
BOOKINGS = "bookings"
BUSINESSES = "businesses"

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(
            settings.MONGO_URI,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS
        )
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")

        # Create indexes for collections
        await create_indexes()

    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        logger.info("MongoDB connection closed.")

async def get_database():
    """Get MongoDB database instance."""
    return db.db

async def create_indexes():
    """
    Create indexes for collections.

    The two unique indexes carry the schedule invariants: one weekly row per
    (business, day) and one exception per (business, date).
    """
    # Weekly hours: one row per business per day
    await db.db[WEEKLY_HOURS].create_index(
        [("businessId", ASCENDING), ("dayOfWeek", ASCENDING)],
        unique=True
    )

    # Exceptions: one per business per date, listed by date
    await db.db[EXCEPTIONS].create_index(
        [("businessId", ASCENDING), ("exceptionDate", ASCENDING)],
        unique=True
    )

    # Bookings lookups used by conflict checks and slot listing
    await db.db[BOOKINGS].create_index([("businessId", ASCENDING), ("startTime", ASCENDING)])
    await db.db[BOOKINGS].create_index([("businessId", ASCENDING), ("status", ASCENDING)])

    logger.info("MongoDB indexes created successfully.")
