import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from .db import get_books_collection
from .errors import ApiError, ErrorKind
from .models import Book, BookList, BookPayload, ErrorBody, UpdateOutcome
from .store import BookStore, BookStoreError, InvalidBookId, StoreUnavailable
from .validation import Rejection, validate_book

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "A book with this name is already registered"
LIST_FAILED_MESSAGE = "Failed to retrieve the list of books"
BAD_REQUEST_MESSAGE = "Invalid request"

ERROR_RESPONSE = {"model": ErrorBody, "description": "Invalid request"}
NOT_FOUND_RESPONSE = {"description": "Book not found"}
INTERNAL_RESPONSE = {"description": "An internal error occurred while processing the request"}


def get_book_store() -> BookStore:
    return BookStore(get_books_collection())


router = APIRouter(prefix="/books", tags=["Books"])


@router.post(
    "",
    response_model=Book,
    summary="Add a new book",
    responses={400: ERROR_RESPONSE, 500: INTERNAL_RESPONSE},
)
async def create_book(
    payload: Optional[BookPayload] = Body(default=None),
    store: BookStore = Depends(get_book_store),
) -> Book:
    # an absent body is treated as an empty object
    payload = payload or BookPayload()
    result = validate_book(payload.model_dump())
    if isinstance(result, Rejection):
        raise ApiError.from_rejection(result)

    try:
        exists = await store.exists(payload.name)
    except BookStoreError as exc:
        logger.exception("books.create.lookup_failed")
        raise ApiError.internal() from exc
    if exists:
        raise ApiError(ErrorKind.DUPLICATE, status.HTTP_400_BAD_REQUEST, DUPLICATE_MESSAGE)

    try:
        # price is stored as sent; the store casts it to a number
        return await store.create(payload.name, payload.author, payload.price)
    except BookStoreError as exc:
        logger.exception("books.create.save_failed")
        raise ApiError.internal() from exc


@router.get("", response_model=BookList, summary="Return every book", responses={400: ERROR_RESPONSE})
async def list_books(store: BookStore = Depends(get_book_store)) -> BookList:
    try:
        books = await store.list()
    except BookStoreError as exc:
        # reported as a client error for compatibility with existing clients
        logger.warning("books.list.failed", extra={"error": str(exc)})
        raise ApiError(ErrorKind.STORE, status.HTTP_400_BAD_REQUEST, LIST_FAILED_MESSAGE, str(exc)) from exc
    return BookList(message="Success", data=books)


@router.get(
    "/{book_id}",
    response_model=Book,
    summary="Find a book by its id",
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_book(book_id: str, store: BookStore = Depends(get_book_store)) -> Book:
    try:
        book = await store.get(book_id)
    except BookStoreError as exc:
        logger.info("books.get.failed", extra={"book_id": book_id, "error": str(exc)})
        raise ApiError.not_found() from exc
    if book is None:
        raise ApiError.not_found()
    return book


@router.put(
    "/{book_id}",
    response_model=UpdateOutcome,
    summary="Update a registered book",
    responses={400: ERROR_RESPONSE, 500: INTERNAL_RESPONSE},
)
async def update_book(
    book_id: str,
    payload: Optional[BookPayload] = Body(default=None),
    store: BookStore = Depends(get_book_store),
) -> UpdateOutcome:
    payload = payload or BookPayload()
    if not book_id.strip():
        raise ApiError(ErrorKind.BAD_REQUEST, status.HTTP_400_BAD_REQUEST, BAD_REQUEST_MESSAGE)

    # The lookup only guards against ids the store cannot resolve; a missing
    # book still reaches the update, which then matches nothing.
    try:
        await store.get(book_id)
    except InvalidBookId as exc:
        raise ApiError(ErrorKind.BAD_REQUEST, status.HTTP_400_BAD_REQUEST, BAD_REQUEST_MESSAGE, str(exc)) from exc
    except BookStoreError as exc:
        logger.exception("books.update.lookup_failed", extra={"book_id": book_id})
        raise ApiError.internal("Internal error") from exc

    result = validate_book(payload.model_dump())
    if isinstance(result, Rejection):
        raise ApiError.from_rejection(result)

    try:
        outcome = await store.update(book_id, payload.model_dump())
    except StoreUnavailable as exc:
        logger.exception("books.update.failed", extra={"book_id": book_id})
        raise ApiError.internal("Internal error") from exc
    except BookStoreError as exc:
        raise ApiError(ErrorKind.STORE, status.HTTP_400_BAD_REQUEST, BAD_REQUEST_MESSAGE, str(exc)) from exc
    return UpdateOutcome(message="Success", data=outcome)


@router.delete(
    "/{book_id}",
    response_model=Book,
    summary="Delete a registered book",
    responses={400: ERROR_RESPONSE, 404: NOT_FOUND_RESPONSE, 500: INTERNAL_RESPONSE},
)
async def delete_book(book_id: str, store: BookStore = Depends(get_book_store)) -> Book:
    try:
        book = await store.delete(book_id)
    except StoreUnavailable as exc:
        logger.exception("books.delete.failed", extra={"book_id": book_id})
        raise ApiError.internal() from exc
    except BookStoreError as exc:
        raise ApiError(ErrorKind.STORE, status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    if book is None:
        raise ApiError.not_found()
    return book
