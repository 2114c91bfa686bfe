from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Book(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "6089f79e66ce2d39b812b40e",
                "name": "Diary of a Wimpy Kid",
                "author": "Jeff Kinney",
                "price": 40,
                "schemaVersion": 0,
            }
        },
    )

    id: str = Field(description="Identifier generated by the server")
    name: str = Field(description="Title of the book")
    author: str = Field(description="Name of the book's primary author")
    price: int | float = Field(description="Price of the book")
    schema_version: int = Field(
        default=0,
        alias="schemaVersion",
        description="Version of the document schema used to store the book",
    )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Book":
        return cls(
            id=str(document["_id"]),
            name=document["name"],
            author=document["author"],
            price=document["price"],
            schemaVersion=document.get("__v", 0),
        )


class BookPayload(BaseModel):
    """Request body for create and update.

    Fields are deliberately untyped: presence and bounds are checked by
    :func:`books_api.validation.validate_book` so rejections carry the
    API's own messages instead of a 422.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "The Hobbit", "author": "Tolkien", "price": 25},
        },
    )

    name: Any = Field(default=None, description="Title of the book, 4 to 65 characters")
    author: Any = Field(default=None, description="Primary author, 4 to 25 characters")
    price: Any = Field(default=None, description="Price, an integer between 1 and 9999")


class ErrorBody(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"message": "Book name must be between 4 and 65 characters"}},
    )

    message: str = Field(description="Description of the error, when available")
    data: Any = None


class BookList(BaseModel):
    message: str = "Success"
    data: list[Book]


class UpdateResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True
    matched_count: int = Field(alias="matchedCount")
    modified_count: int = Field(alias="modifiedCount")


class UpdateOutcome(BaseModel):
    message: str = "Success"
    data: UpdateResult
