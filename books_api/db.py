import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

_settings: Optional[Settings] = None
_client: Optional[AsyncIOMotorClient] = None


def _get_db_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def get_client(url: Optional[str] = None) -> AsyncIOMotorClient:
    global _client
    if _client is None:
        settings = _get_db_settings()
        _client = AsyncIOMotorClient(
            url or settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
    return _client


def get_database() -> AsyncIOMotorDatabase:
    return get_client()[_get_db_settings().mongodb_database]


def get_books_collection() -> AsyncIOMotorCollection:
    return get_database()[_get_db_settings().books_collection]


async def init_db() -> None:
    # No unique index on name: the create handler checks uniqueness itself.
    await get_database().command("ping")
    logger.info("database.connected", extra={"database": _get_db_settings().mongodb_database})


def close_db() -> None:
    global _client, _settings
    if _client is not None:
        _client.close()
    _client = None
    _settings = None
