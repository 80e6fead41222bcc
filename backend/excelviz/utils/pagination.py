from dataclasses import dataclass
from typing import Any, List


@dataclass
class PageResult:
    items: List[Any]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size)  # ceiling division


class Paginator:
    """Apply offset/limit to a SQLAlchemy query and count the unpaged total."""

    def __init__(self, query, page: int = 1, page_size: int = 20):
        self.query = query
        self.page = max(page, 1)
        self.page_size = max(page_size, 1)

    def execute(self) -> PageResult:
        # count before ordering is applied to the subquery
        total = self.query.order_by(None).count()
        items = (
            self.query
            .offset((self.page - 1) * self.page_size)
            .limit(self.page_size)
            .all()
        )
        return PageResult(items=items, total=total, page=self.page, page_size=self.page_size)
