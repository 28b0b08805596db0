"""
MongoDB access for the Porinity backend.

A single :class:`Database` is built at process start and handed to request
handlers through the ``get_db`` dependency.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Union
from urllib.parse import quote_plus

from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument

import config

logger = logging.getLogger(__name__)

BIODATA_COLLECTION = "BiodataCollection"
USERS_COLLECTION = "Users"
CONTACT_REQUESTS_COLLECTION = "ContactRequests"
SUCCESS_STORIES_COLLECTION = "SuccessStories"
CONTACT_MESSAGES_COLLECTION = "ContactMessages"
COUNTERS_COLLECTION = "Counters"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_mongo_uri() -> str:
    if config.DATABASE_URL:
        return config.DATABASE_URL
    if config.DB_USER and config.DB_PASS:
        return (
            f"mongodb+srv://{quote_plus(config.DB_USER)}:{quote_plus(config.DB_PASS)}"
            f"@{config.DB_HOST}/?retryWrites=true&w=majority"
        )
    return "mongodb://localhost:27017"


class Database:
    def __init__(self, db, client=None):
        self.db = db
        self.client = client

    @property
    def name(self) -> str:
        return self.db.name

    @property
    def biodata(self):
        return self.db[BIODATA_COLLECTION]

    @property
    def users(self):
        return self.db[USERS_COLLECTION]

    @property
    def contact_requests(self):
        return self.db[CONTACT_REQUESTS_COLLECTION]

    @property
    def success_stories(self):
        return self.db[SUCCESS_STORIES_COLLECTION]

    @property
    def contact_messages(self):
        return self.db[CONTACT_MESSAGES_COLLECTION]

    def ensure_indexes(self) -> None:
        self.biodata.create_index([("numericBiodataId", ASCENDING)], unique=True, sparse=True)
        self.biodata.create_index([("biodataId", ASCENDING)], unique=True, sparse=True)
        self.biodata.create_index([("uid", ASCENDING)])
        self.users.create_index([("uid", ASCENDING)], unique=True, sparse=True)
        self.contact_requests.create_index([("requesterUid", ASCENDING), ("biodataId", ASCENDING)])

    def create_document(self, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
        """Insert a document, stamping createdAt/updatedAt, and return its id."""
        doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        now = utcnow()
        doc.setdefault("createdAt", now)
        doc.setdefault("updatedAt", now)
        result = self.db[collection_name].insert_one(doc)
        return str(result.inserted_id)

    def next_sequence(self, name: str, seed: int = 0) -> int:
        """Atomically increment the named counter and return the new value.

        A missing counter starts from ``seed`` so the first value is ``seed + 1``.
        """
        counters = self.db[COUNTERS_COLLECTION]
        counters.update_one({"_id": name}, {"$setOnInsert": {"seq": seed}}, upsert=True)
        doc = counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def connect() -> Database:
    client = MongoClient(build_mongo_uri())
    database = Database(client[config.DATABASE_NAME], client)
    logger.info("MongoDB client created for database %s", config.DATABASE_NAME)
    return database


def get_db(request: Request) -> Database:
    return request.app.state.db
