# facematch/storage_mongo.py
import logging
from typing import List, Optional

import numpy as np
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .codec import EmbeddingCodec
from .errors import StorageFailure
from .storage import EnrollmentRecord, EnrollmentStore

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = "counters"


class MongoStorage(EnrollmentStore):
    def __init__(
        self,
        uri: str,
        db_name: str,
        collection_name: str = "users",
        codec: Optional[EmbeddingCodec] = None,
        timeout: float = 5.0,
        client=None,
    ):
        """Initialize MongoDB connection"""
        timeout_ms = int(timeout * 1000)
        self.codec = codec or EmbeddingCodec()
        self.collection_name = collection_name
        try:
            if client is None:
                client = MongoClient(
                    uri,
                    serverSelectionTimeoutMS=timeout_ms,
                    connectTimeoutMS=timeout_ms,
                    socketTimeoutMS=timeout_ms,
                )
            self.client = client
            self.db = self.client[db_name]
            self.collection = self.db[collection_name]
            self.counters = self.db[COUNTERS_COLLECTION]

            # Test connection
            self.client.server_info()
            logger.info(f"Connected to MongoDB, database: {db_name}, collection: {collection_name}")
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise StorageFailure(f"Failed to connect to MongoDB: {e}")

    def _next_id(self) -> int:
        counter = self.counters.find_one_and_update(
            {"_id": self.collection_name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    def append(self, name: str, embedding: np.ndarray, portrait: bytes) -> int:
        """
        Insert one enrollment document.

        The id comes from an atomic counter and the record is a single
        document insert, so concurrent writers never collide.
        """
        try:
            record_id = self._next_id()
            self.collection.insert_one({
                "_id": record_id,
                "name": name,
                "embedding": self.codec.encode(embedding),
                "portrait": bytes(portrait),
            })
        except PyMongoError as e:
            logger.error(f"Error inserting registration for {name}: {e}")
            raise StorageFailure(f"Database error on registration: {e}")
        logger.info(f"Registered: {name} (ID: {record_id})")
        return record_id

    def list_all(self) -> List[EnrollmentRecord]:
        try:
            rows = list(self.collection.find({}).sort("_id", ASCENDING))
        except PyMongoError as e:
            logger.error(f"Error fetching registrations: {e}")
            raise StorageFailure(f"Database error on matching: {e}")
        records = []
        for row in rows:
            try:
                records.append(EnrollmentRecord(
                    id=int(row["_id"]),
                    name=row["name"],
                    embedding=self.codec.decode(row["embedding"]),
                    portrait=bytes(row["portrait"]),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Malformed enrollment document {row.get('_id')}: {e}")
                raise StorageFailure(f"Malformed enrollment document: {e}")
        return records

    def count(self) -> int:
        try:
            return int(self.collection.count_documents({}))
        except PyMongoError as e:
            raise StorageFailure(f"Database error on count: {e}")

    def close(self):
        """Close MongoDB connection"""
        self.client.close()
        logger.info("MongoDB connection closed")
