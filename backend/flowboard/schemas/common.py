"""
Shared schema pieces: camelCase wire models and the response envelope.
"""
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys; snake_case is accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    """Every response: {success, data?, message?}"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class SuccessResponse(CamelModel):
    success: bool = True
