"""Shared schema bits — camelCase wire format and the response envelope.

Learn: Clients speak camelCase (fullName, accessToken) while Python code
stays snake_case. alias_generator=to_camel does the translation both
ways; populate_by_name lets Python callers use the snake_case names.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope: {statusCode, data, message, success}."""

    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = True
