"""
MongoDB access for the restaurant API.

One Database object is built when the app starts and handed to every request
through the get_db dependency. Each entity lives in its own collection and
carries a public id (menu_id, food_id, ...) copied from its ObjectId at
creation time.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.collection import Collection

from config import Settings

logger = logging.getLogger(__name__)

MENU = "menu"
FOOD = "food"
TABLE = "table"
ORDER = "order"
ORDER_ITEM = "orderItem"
INVOICE = "invoice"
USER = "user"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Make a stored document JSON friendly (ObjectId -> str)."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


class Database:
    def __init__(self, client: MongoClient, name: str):
        self.client = client
        self.db = client[name]
        self.name = name

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        client = MongoClient(
            settings.database_url,
            serverSelectionTimeoutMS=int(settings.request_timeout_seconds * 1000),
        )
        logger.info("Connected MongoDB client for database %s", settings.database_name)
        return cls(client, settings.database_name)

    def close(self) -> None:
        self.client.close()

    def ping(self) -> List[str]:
        return self.db.list_collection_names()

    # Collection accessors
    @property
    def menus(self) -> Collection:
        return self.db[MENU]

    @property
    def foods(self) -> Collection:
        return self.db[FOOD]

    @property
    def tables(self) -> Collection:
        return self.db[TABLE]

    @property
    def orders(self) -> Collection:
        return self.db[ORDER]

    @property
    def order_items(self) -> Collection:
        return self.db[ORDER_ITEM]

    @property
    def invoices(self) -> Collection:
        return self.db[INVOICE]

    @property
    def users(self) -> Collection:
        return self.db[USER]

    # Document helpers
    def _stamp(self, data: Union[BaseModel, dict], id_field: str, object_id: Optional[ObjectId] = None) -> dict:
        doc = _as_dict(data)
        now = utcnow()
        doc["_id"] = object_id or ObjectId()
        doc[id_field] = str(doc["_id"])
        doc["created_at"] = now
        doc["updated_at"] = now
        return doc

    def create_document(
        self,
        collection: Collection,
        data: Union[BaseModel, dict],
        id_field: str,
        object_id: Optional[ObjectId] = None,
    ) -> str:
        doc = self._stamp(data, id_field, object_id)
        collection.insert_one(doc)
        return doc[id_field]

    def create_documents(self, collection: Collection, items: Iterable[Union[BaseModel, dict]], id_field: str) -> List[str]:
        docs = [self._stamp(item, id_field) for item in items]
        if not docs:
            return []
        collection.insert_many(docs)
        return [d[id_field] for d in docs]

    def get_documents(
        self,
        collection: Collection,
        filter_dict: Optional[dict] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        projection: Optional[dict] = None,
    ) -> List[dict]:
        cursor = collection.find(filter_dict or {}, projection)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [serialize(d) for d in cursor]

    def get_document(self, collection: Collection, filter_dict: dict, projection: Optional[dict] = None) -> Optional[dict]:
        return serialize(collection.find_one(filter_dict, projection))

    def count_documents(self, collection: Collection, filter_dict: Optional[dict] = None) -> int:
        return collection.count_documents(filter_dict or {})

    def update_document(self, collection: Collection, filter_dict: dict, fields: Dict[str, Any], upsert: bool = False):
        now = utcnow()
        update = {"$set": dict(fields, updated_at=now)}
        if upsert:
            update["$setOnInsert"] = {"created_at": now}
        return collection.update_one(filter_dict, update, upsert=upsert)


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
