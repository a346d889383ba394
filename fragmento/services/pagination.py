"""Offset pagination shared by every list operation.

Pages are 1-indexed. The page size defaults to ``DEFAULT_PAGE_SIZE`` and is
clamped to ``MAX_PAGE_SIZE``; ``has_more`` is ``page * page_size < total``.
"""
import math
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fragmento.core.config import settings
from fragmento.core.exceptions import ValidationFailed
from fragmento.schemas.pagination import Page


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = settings.DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def page_request(page: int = 1, page_size: int | None = None) -> PageRequest:
    if page < 1:
        raise ValidationFailed("Page number must be greater than 0")
    if page_size is None:
        page_size = settings.DEFAULT_PAGE_SIZE
    if page_size < 1:
        raise ValidationFailed("Page size must be greater than 0")
    return PageRequest(page=page, page_size=min(page_size, settings.MAX_PAGE_SIZE))


async def count_rows(db: AsyncSession, stmt: Select) -> int:
    result = await db.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
    return result.scalar() or 0


async def fetch_page(db: AsyncSession, stmt: Select, req: PageRequest) -> tuple[list, int]:
    """Run ``stmt`` for one page. Returns the raw result rows and the total row count."""
    total = await count_rows(db, stmt)
    result = await db.execute(stmt.offset(req.offset).limit(req.page_size))
    return list(result.all()), total


def build_page(items: list, total: int, req: PageRequest) -> Page:
    return Page(
        items=items,
        total_count=total,
        page=req.page,
        page_size=req.page_size,
        total_pages=math.ceil(total / req.page_size) if total else 0,
        has_more=req.page * req.page_size < total,
    )
