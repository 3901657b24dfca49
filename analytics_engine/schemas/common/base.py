# --- File: analytics_engine/schemas/common/base.py ---
"""
Base schema classes with common configuration.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "Score",
]


# Quality/confidence scores always live in [0, 1]
Score = Annotated[Decimal, Field(ge=0, le=1)]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All engine value structures inherit from this to ensure consistent
    behaviour (validation on assignment, enums kept as members, etc.).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances to retain full type information;
        # callers can still access `.value` if needed.
        use_enum_values=False,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class FrozenSchema(BaseSchema):
    """Immutable variant for stored observations."""

    model_config = ConfigDict(frozen=True)
