"""
Base repository class providing common record operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from matchengine.data.database import RecordStore
from matchengine.data.models.base import BaseDocument, new_record_id, utcnow
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for document models
T = TypeVar("T", bound=BaseDocument)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository over a ``RecordStore``.

    Subclasses must define the collection name and model class. Documents
    that fail validation are logged and treated as absent.
    """

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Name of the record store collection."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert a stored document to a Pydantic model."""
        if document is None:
            return None
        try:
            return self.model_class.model_validate(document)
        except PydanticValidationError as e:
            logger.warning(
                f"Invalid {self.collection_name} document {document.get('_id')}: "
                f"{e.error_count()} error(s)"
            )
            return None

    def _to_models(self, documents: list[dict[str, Any]]) -> list[T]:
        models = (self._to_model(doc) for doc in documents if doc is not None)
        return [model for model in models if model is not None]

    def _to_document(self, model: T) -> dict[str, Any]:
        return model.model_dump_mongo()

    # -------------------------------------------------------------------------
    # CRUD Operations
    # -------------------------------------------------------------------------

    async def create(self, model: T) -> T:
        """Store a new document, minting an id when the model has none."""
        if model.id is None:
            model.id = new_record_id()
        now = utcnow()
        model.created_at = now
        model.updated_at = now

        await self._store.put(self.collection_name, model.id, self._to_document(model))
        logger.debug(f"Created {self.collection_name} document: {model.id}")
        return model

    async def save(self, model: T) -> T:
        """Insert or replace a document under its own id."""
        if model.id is None:
            return await self.create(model)
        model.updated_at = utcnow()
        await self._store.put(self.collection_name, model.id, self._to_document(model))
        return model

    async def get_by_id(self, id_value: str) -> Optional[T]:
        """Get a document by its ID."""
        if not id_value:
            return None
        document = await self._store.get(self.collection_name, str(id_value))
        return self._to_model(document)

    async def find(
        self,
        query: dict[str, Any],
        limit: int = 100,
        sort_by: Optional[str] = "createdAt",
        descending: bool = True,
    ) -> list[T]:
        """Find documents matching a query, newest first by default."""
        documents = await self._store.find(
            self.collection_name, query, limit=limit, sort_by=sort_by, descending=descending
        )
        return self._to_models(documents)

    async def find_one(self, query: dict[str, Any]) -> Optional[T]:
        """Find a single document matching a query."""
        models = await self.find(query, limit=1)
        return models[0] if models else None
