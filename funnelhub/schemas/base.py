"""
Base Schema Classes for Pydantic Models

RULE: All schemas that read from ORM models MUST inherit from BaseResponseSchema.
"""

from pydantic import BaseModel, ConfigDict


class BaseResponseSchema(BaseModel):
    """
    Base class for schemas populated from ORM models.

    Usage:
        class PaymentResponse(BaseResponseSchema):
            id: int
            transaction_id: str
    """
    model_config = ConfigDict(
        from_attributes=True,
        # Allow population by field name or alias
        populate_by_name=True,
    )


class SnapshotSchema(BaseResponseSchema):
    """Immutable copy of ORM state, safe to use after the session closes."""
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        frozen=True,
    )
