"""Base Pydantic schemas with common patterns.

Every schema accepts both camelCase (event wire format) and snake_case
(Python) field names, and serializes to camelCase with ``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration for all schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict:
        """Serialize to the camelCase JSON-compatible event format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenSchema(BaseSchema):
    """Immutable value-type schema (hashable, safe to share between handlers)."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        frozen=True,
    )


__all__ = ["BaseSchema", "FrozenSchema"]
