# api/schemas/common.py
from typing import Generic, List, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


DataT = TypeVar('DataT')


class PaginatedResponse(CamelModel, Generic[DataT]):
    """
    Generic schema for paginated API responses.
    """
    data: List[DataT]
    total: int
    page: int
    limit: int
    total_pages: int


class ErrorResponse(BaseModel):
    error: str
    message: str
