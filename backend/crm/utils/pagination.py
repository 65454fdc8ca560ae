# backend/crm/utils/pagination.py
from typing import Literal

from fastapi import Query

from crm import config


class Page:
    """Pagination parameters shared by the list endpoints"""

    def __init__(
        self,
        limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
        offset: int = Query(0, ge=0),
        order_by: str = Query("createdAt", alias="orderBy", min_length=1),
        order_direction: Literal["asc", "desc"] = Query("desc", alias="orderDirection"),
    ):
        self.limit = limit
        self.offset = offset
        self.order_by = order_by
        self.order_direction = order_direction

    def meta(self, count: int) -> dict:
        return {"count": count, "limit": self.limit, "offset": self.offset}
