from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(CamelModel):
    total: int
    page: int
    pages: int
    limit: int

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=math.ceil(total / limit) if limit else 0, limit=limit)
