import math
import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, PyMongoError

from .models import Book, UpdateResult

BOOK_FIELDS = ("name", "author", "price")
# decimal or hex literals only; no digit separators or non-ASCII digits
_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)
_HEX_NUMBER = re.compile(r"0[xX][0-9a-fA-F]+", re.ASCII)
SCHEMA_VERSION_KEY = "__v"


class BookStoreError(Exception):
    """A failure reported by the document store."""


class InvalidBookId(BookStoreError):
    def __init__(self, book_id: Any):
        super().__init__(f'Cast to ObjectId failed for value "{book_id}" at path "_id"')
        self.book_id = book_id


class DocumentCastError(BookStoreError):
    def __init__(self, field: str, value: Any, expected: str):
        super().__init__(f'Cast to {expected} failed for value "{value}" at path "{field}"')
        self.field = field
        self.value = value


class StoreUnavailable(BookStoreError):
    """The store could not be reached; the operation never ran."""


def _object_id(book_id: Any) -> ObjectId:
    try:
        return ObjectId(book_id)
    except (InvalidId, TypeError) as exc:
        raise InvalidBookId(book_id) from exc


def _cast_string(field: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise DocumentCastError(field, value, "string")


def _cast_number(field: str, value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if _HEX_NUMBER.fullmatch(text):
            number = int(text, 16)
        elif _NUMBER.fullmatch(text):
            number = float(text)
        else:
            raise DocumentCastError(field, value, "Number")
    if isinstance(number, float):
        if not math.isfinite(number):
            raise DocumentCastError(field, value, "Number")
        if number.is_integer():
            return int(number)
    return number


def cast_book_fields(values: dict[str, Any]) -> dict[str, Any]:
    """Cast book fields to the stored types and drop anything else."""
    document: dict[str, Any] = {}
    for field in BOOK_FIELDS:
        if field not in values or values[field] is None:
            continue
        if field == "price":
            document[field] = _cast_number(field, values[field])
        else:
            document[field] = _cast_string(field, values[field])
    return document


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except ConnectionFailure as exc:
        raise StoreUnavailable(str(exc)) from exc
    except PyMongoError as exc:
        raise BookStoreError(str(exc)) from exc


class BookStore:
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def exists(self, name: str) -> bool:
        with _translate_errors():
            document = await self.collection.find_one({"name": name}, projection={"_id": 1})
        return document is not None

    async def list(self) -> list[Book]:
        with _translate_errors():
            documents = await self.collection.find({}).to_list(length=None)
        return [Book.from_document(document) for document in documents]

    async def get(self, book_id: str) -> Optional[Book]:
        oid = _object_id(book_id)
        with _translate_errors():
            document = await self.collection.find_one({"_id": oid})
        return Book.from_document(document) if document else None

    async def create(self, name: Any, author: Any, price: Any) -> Book:
        document = cast_book_fields({"name": name, "author": author, "price": price})
        missing = [field for field in BOOK_FIELDS if field not in document]
        if missing:
            raise DocumentCastError(missing[0], None, "required")
        document[SCHEMA_VERSION_KEY] = 0
        with _translate_errors():
            result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return Book.from_document(document)

    async def update(self, book_id: str, changes: dict[str, Any]) -> UpdateResult:
        oid = _object_id(book_id)
        patch = cast_book_fields(changes)
        if not patch:
            return UpdateResult(acknowledged=True, matchedCount=0, modifiedCount=0)
        with _translate_errors():
            result = await self.collection.update_one({"_id": oid}, {"$set": patch})
        return UpdateResult(
            acknowledged=result.acknowledged,
            matchedCount=result.matched_count,
            modifiedCount=result.modified_count,
        )

    async def delete(self, book_id: str) -> Optional[Book]:
        oid = _object_id(book_id)
        with _translate_errors():
            document = await self.collection.find_one_and_delete({"_id": oid})
        return Book.from_document(document) if document else None
