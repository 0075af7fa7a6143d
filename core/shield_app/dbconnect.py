"""MongoDB access for posts and comments.

The Motor client is opened once in the application lifespan and shared by
every request through the `get_database` dependency. Two collections are used:

- `posts`: `{_id, content, created_at, ip_address, user_agent}`
- `comments`: `{_id, post_id, content, created_at, ip_address, user_agent}`

Only masked and sanitized text is ever written to either collection.
"""

import logging
from motor.motor_asyncio import AsyncIOMotorClient
from shield_app.config import settings

logger = logging.getLogger("shield.db")


class MongoState:
    """Holds the process-wide Motor client between startup and shutdown."""
    client: AsyncIOMotorClient = None


mongo = MongoState()


async def get_database():
    """FastAPI dependency returning the configured forum database.

    Raises:
        ConnectionError: If requests arrive before `connect_to_mongo()` ran
            or after `close_mongo_connection()`.
    """
    if mongo.client is None:
        logger.error("⚠️ Database requested while no MongoDB client is open")
        raise ConnectionError("MongoDB client is not open.")

    return mongo.client[settings.MONGO_DB_NAME]


async def ensure_indexes(database):
    """Creates the indexes behind the list endpoints' sort orders."""
    await database["posts"].create_index([("created_at", -1)])
    await database["comments"].create_index([("post_id", 1), ("created_at", 1)])


async def connect_to_mongo():
    """Opens the Motor client, pings the server and prepares the indexes.

    Any failure is logged and re-raised so the lifespan aborts startup
    instead of serving requests without storage.
    """
    try:
        logger.info(f"🔌 Opening MongoDB client for '{settings.MONGO_DB_NAME}'...")
        mongo.client = AsyncIOMotorClient(settings.MONGO_URI.get_secret_value(), maxPoolSize=20)

        await mongo.client.admin.command("ping")
        await ensure_indexes(mongo.client[settings.MONGO_DB_NAME])
        logger.info("✅ MongoDB ready (posts, comments)")

    except Exception as e:
        logger.critical(f"❌ MongoDB unavailable: {e}")
        raise


async def close_mongo_connection():
    """Closes the Motor client opened by `connect_to_mongo()`."""
    if mongo.client:
        mongo.client.close()
        mongo.client = None
        logger.info("🛑 MongoDB client closed")
