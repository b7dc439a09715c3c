"""
Base Repository Pattern

Abstract base class for all MongoDB repositories.
Provides common CRUD operations and query helpers.
"""
import logging
from typing import Optional, List, Dict, Any, TypeVar, Generic
from datetime import datetime
from pymongo import ReturnDocument
from pymongo.collection import Collection

from app.infra.mongodb.connection import get_collection

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Dict[str, Any])


def _clean(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Stringify Mongo's ObjectId so documents are JSON-safe."""
    if doc is not None and "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


class BaseRepository(Generic[T]):
    """
    Base repository with common CRUD operations.

    Subclasses should set collection_name class attribute.
    """

    collection_name: str = None  # Override in subclass

    def __init__(self, collection: Collection = None):
        if not self.collection_name:
            raise ValueError(f"collection_name must be set in {self.__class__.__name__}")
        self._collection = collection

    @property
    def collection(self) -> Collection:
        """Get the MongoDB collection."""
        if self._collection is not None:
            return self._collection
        return get_collection(self.collection_name)

    def insert_one(self, document: Dict[str, Any]) -> str:
        """
        Insert a single document.

        Args:
            document: Document to insert

        Returns:
            Inserted document ID as string
        """
        now = datetime.utcnow()
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)
        result = self.collection.insert_one(document)
        _clean(document)  # pymongo wrote an ObjectId into the dict
        return str(result.inserted_id)

    def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Find a single document matching query.

        Args:
            query: MongoDB query dict

        Returns:
            Document or None
        """
        return _clean(self.collection.find_one(query))

    def find_many(
        self,
        query: Dict[str, Any] = None,
        skip: int = 0,
        limit: int = 50,
        sort: List[tuple] = None
    ) -> List[Dict[str, Any]]:
        """
        Find multiple documents.

        Args:
            query: MongoDB query dict
            skip: Number of documents to skip
            limit: Maximum documents to return
            sort: List of (field, direction) tuples

        Returns:
            List of documents
        """
        cursor = self.collection.find(query or {})

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)

        return [_clean(doc) for doc in cursor]

    def update_one(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any],
        upsert: bool = False
    ) -> bool:
        """
        Update a single document.

        Args:
            query: Query to find document
            update: Update operations (a plain dict is treated as $set)
            upsert: Create if not exists

        Returns:
            True if a document matched (or was upserted)
        """
        if not any(key.startswith("$") for key in update):
            update = {"$set": update}

        update.setdefault("$set", {})["updated_at"] = datetime.utcnow()

        result = self.collection.update_one(query, update, upsert=upsert)
        return result.matched_count > 0 or result.upserted_id is not None

    def find_one_and_update(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Atomically update the first matching document.

        Returns:
            The document after the update, or None if nothing matched
        """
        if not any(key.startswith("$") for key in update):
            update = {"$set": update}

        update.setdefault("$set", {})["updated_at"] = datetime.utcnow()

        result = self.collection.find_one_and_update(
            query,
            update,
            return_document=ReturnDocument.AFTER
        )
        return _clean(result)

    def count(self, query: Dict[str, Any] = None) -> int:
        """
        Count documents matching query.

        Returns:
            Document count
        """
        return self.collection.count_documents(query or {})

    def exists(self, query: Dict[str, Any]) -> bool:
        """
        Check if any document matches query.

        Returns:
            True if at least one document exists
        """
        return self.collection.find_one(query) is not None
