"""Base Pydantic schemas with common patterns.

This module defines base schemas and common patterns used across the API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

# Generic type for paginated response items
T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration for all schemas.

    Configures Pydantic v2 settings for consistent behavior across all schemas.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class PaginatedResponse(BaseSchema, Generic[T]):
    """Generic paginated response wrapper.

    Provides consistent pagination metadata for all list endpoints.
    """

    items: list[T] = Field(
        ...,
        description="List of items in the current page",
    )
    total: int = Field(
        ...,
        ge=0,
        description="Total number of items across all pages",
        examples=[100],
    )
    page: int = Field(
        ...,
        ge=1,
        description="Current page number (1-indexed)",
        examples=[1],
    )
    size: int = Field(
        ...,
        ge=1,
        description="Number of items per page",
        examples=[20],
    )
    pages: int = Field(
        ...,
        ge=0,
        description="Total number of pages",
        examples=[5],
    )

    @classmethod
    def create(
        cls,
        items: list[T],
        total: int,
        page: int,
        size: int,
    ) -> PaginatedResponse[T]:
        """Create a paginated response from items and pagination info.

        Args:
            items: List of items for the current page.
            total: Total number of items across all pages.
            page: Current page number.
            size: Number of items per page.

        Returns:
            A PaginatedResponse instance with calculated pages.
        """
        pages = (total + size - 1) // size if size > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            size=size,
            pages=pages,
        )


class MessageResponse(BaseSchema):
    """Simple message response schema."""

    message: str = Field(
        ...,
        description="Response message",
        examples=["Operation completed successfully"],
    )


# Common field definitions for reuse
NameField: FieldInfo = cast(
    "FieldInfo",
    Field(
        ...,
        min_length=1,
        max_length=255,
        description="Tool name, also the MCP tool name",
        examples=["get_weather"],
    ),
)

OptionalNameField: FieldInfo = cast(
    "FieldInfo",
    Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Tool name, also the MCP tool name",
        examples=["get_weather"],
    ),
)

DescriptionField: FieldInfo = cast(
    "FieldInfo",
    Field(
        default="",
        max_length=2000,
        description="Description shown to MCP clients",
        examples=["Get the current temperature for a city"],
    ),
)


__all__ = [
    "BaseSchema",
    "DescriptionField",
    "MessageResponse",
    "NameField",
    "OptionalNameField",
    "PaginatedResponse",
]
