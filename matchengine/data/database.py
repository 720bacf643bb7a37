"""
Record store access for the matching engine.

``RecordStore`` is the key-value interface the repositories sit on. Two
implementations: an in-memory store for tests and single-process use, and
a MongoDB store backed by Motor through ``DatabaseManager``.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Optional
from urllib.parse import quote_plus

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from matchengine.core.exceptions import PersistenceError
from matchengine.utils.config import DatabaseSettings, get_settings
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)


class RecordStore(ABC):
    """Documents grouped by collection, addressed by string key."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Fetch one document, or None."""
        pass

    @abstractmethod
    async def put(self, collection: str, key: str, document: dict[str, Any]) -> None:
        """Insert or replace the document stored under ``key``."""
        pass

    @abstractmethod
    async def find(
        self,
        collection: str,
        query: dict[str, Any],
        limit: int = 100,
        sort_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        """Documents whose top-level fields equal every item of ``query``."""
        pass


class InMemoryRecordStore(RecordStore):
    """Process-local store; documents are copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        document = self._collections.get(collection, {}).get(key)
        return deepcopy(document) if document is not None else None

    async def put(self, collection: str, key: str, document: dict[str, Any]) -> None:
        stored = deepcopy(document)
        stored["_id"] = key
        self._collections.setdefault(collection, {})[key] = stored

    async def find(
        self,
        collection: str,
        query: dict[str, Any],
        limit: int = 100,
        sort_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        documents = [
            doc
            for doc in self._collections.get(collection, {}).values()
            if all(doc.get(field) == value for field, value in query.items())
        ]
        if sort_by:
            documents.sort(
                key=lambda doc: (doc.get(sort_by) is not None, doc.get(sort_by)),
                reverse=descending,
            )
        return [deepcopy(doc) for doc in documents[:limit]]


# (collection, keys, options) created by ensure_indexes
INDEXES: tuple[tuple[str, Any, dict[str, Any]], ...] = (
    ("match_results", [("userId", ASCENDING), ("createdAt", DESCENDING)], {}),
    ("match_results", "jobId", {}),
    ("user_profiles", "userId", {"unique": True}),
)

_UNSAFE_HOST_CHARS = frozenset(";&|$`/ ")


def build_mongo_uri(db_settings: DatabaseSettings) -> str:
    """
    ``mongodb://`` URI for the configured host, with escaped credentials.

    Raises:
        ValueError: if the host is empty or contains shell/URI metacharacters
    """
    host = db_settings.host.strip()
    if not host or _UNSAFE_HOST_CHARS.intersection(host):
        raise ValueError(f"Invalid database host: {host!r}")

    credentials = ""
    if db_settings.username and db_settings.password:
        credentials = f"{quote_plus(db_settings.username)}:{quote_plus(db_settings.password)}@"
    return f"mongodb://{credentials}{host}:{db_settings.port}"


class DatabaseManager:
    """Owns the Motor client for one database; the client is created lazily."""

    def __init__(self, db_settings: Optional[DatabaseSettings] = None) -> None:
        db_settings = db_settings or get_settings().database
        self.database_name = db_settings.name
        self._uri = build_mongo_uri(db_settings)
        self._client: Optional[AsyncIOMotorClient] = None

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            logger.info(f"Connecting to MongoDB database '{self.database_name}'")
            self._client = AsyncIOMotorClient(
                self._uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                maxPoolSize=20,
            )
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self.client[self.database_name]

    def collection(self, name: str) -> Any:
        return self.database[name]

    async def check_async_connection(self) -> bool:
        """Ping the server; False when it cannot be reached."""
        try:
            await self.client.admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"MongoDB ping failed: {e}")
            return False

    def close(self) -> None:
        """Drop the client; the next access reconnects (e.g. under a new event loop)."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def ensure_indexes(self) -> None:
        for collection, keys, options in INDEXES:
            name = await self.collection(collection).create_index(keys, **options)
            logger.info(f"Index {collection}.{name} ready")


# Fields existing collections store as ObjectId
ID_FIELDS: tuple[str, ...] = ("_id", "userId", "jobId")


def to_object_id(value: Any) -> Any:
    """ObjectId for 24-hex strings; anything else is returned unchanged."""
    if isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _id_query(query: dict[str, Any]) -> dict[str, Any]:
    """Match id fields stored either as ObjectId or as their hex string."""
    cast = dict(query)
    for field in ID_FIELDS:
        if field in cast:
            oid = to_object_id(cast[field])
            if isinstance(oid, ObjectId):
                cast[field] = {"$in": [oid, cast[field]]}
    return cast


def _with_object_ids(document: dict[str, Any]) -> dict[str, Any]:
    return {k: to_object_id(v) if k in ID_FIELDS else v for k, v in document.items()}


def _with_plain_ids(document: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if document is None:
        return None
    return {
        k: str(v) if k in ID_FIELDS and isinstance(v, ObjectId) else v
        for k, v in document.items()
    }


class MongoRecordStore(RecordStore):
    """
    RecordStore over MongoDB; the key is stored as ``_id``.

    Id fields are written as ObjectId when they look like one, matched in
    either form, and handed back to the repositories as hex strings.
    """

    def __init__(self, manager: Optional[DatabaseManager] = None) -> None:
        self._manager = manager or get_database_manager()

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        try:
            document = await self._manager.collection(collection).find_one(_id_query({"_id": key}))
        except PyMongoError as e:
            raise PersistenceError(f"Read from {collection} failed: {e}") from e
        return _with_plain_ids(document)

    async def put(self, collection: str, key: str, document: dict[str, Any]) -> None:
        body = _with_object_ids({k: v for k, v in document.items() if k != "_id"})
        try:
            await self._manager.collection(collection).replace_one(
                {"_id": to_object_id(key)}, body, upsert=True
            )
        except PyMongoError as e:
            raise PersistenceError(f"Write to {collection} failed: {e}") from e

    async def find(
        self,
        collection: str,
        query: dict[str, Any],
        limit: int = 100,
        sort_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        try:
            cursor = self._manager.collection(collection).find(_id_query(query))
            if sort_by:
                cursor = cursor.sort(sort_by, DESCENDING if descending else ASCENDING)
            cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise PersistenceError(f"Query on {collection} failed: {e}") from e
        return [_with_plain_ids(doc) for doc in documents]


_db_manager: Optional[DatabaseManager] = None


def get_database_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
