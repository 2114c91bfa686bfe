import os

os.environ.setdefault("APP_OTEL_ENABLED", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from bson.errors import InvalidId  # noqa: E402

from books_api.app import app  # noqa: E402
from books_api.models import Book, UpdateResult  # noqa: E402
from books_api.routes import get_book_store  # noqa: E402
from books_api.store import SCHEMA_VERSION_KEY, BookStore, InvalidBookId, cast_book_fields  # noqa: E402


class InMemoryBookStore(BookStore):
    """Keeps documents in a dict, with the same casting and id rules as MongoDB."""

    def __init__(self):
        super().__init__(collection=None)
        self.documents: dict[ObjectId, dict] = {}

    @staticmethod
    def _oid(book_id):
        try:
            return ObjectId(book_id)
        except (InvalidId, TypeError) as exc:
            raise InvalidBookId(book_id) from exc

    async def exists(self, name):
        return any(doc["name"] == name for doc in self.documents.values())

    async def list(self):
        return [Book.from_document(doc) for doc in self.documents.values()]

    async def get(self, book_id):
        doc = self.documents.get(self._oid(book_id))
        return Book.from_document(doc) if doc else None

    async def create(self, name, author, price):
        doc = cast_book_fields({"name": name, "author": author, "price": price})
        doc[SCHEMA_VERSION_KEY] = 0
        doc["_id"] = ObjectId()
        self.documents[doc["_id"]] = doc
        return Book.from_document(doc)

    async def update(self, book_id, changes):
        oid = self._oid(book_id)
        patch = cast_book_fields(changes)
        doc = self.documents.get(oid)
        if doc is None:
            return UpdateResult(matchedCount=0, modifiedCount=0)
        modified = any(doc.get(key) != value for key, value in patch.items())
        doc.update(patch)
        return UpdateResult(matchedCount=1, modifiedCount=int(modified))

    async def delete(self, book_id):
        doc = self.documents.pop(self._oid(book_id), None)
        return Book.from_document(doc) if doc else None


@pytest.fixture()
def store():
    return InMemoryBookStore()


@pytest.fixture()
def overrides(store):
    app.dependency_overrides[get_book_store] = lambda: store
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(overrides):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
