"""Pagination envelope shared by list responses."""

from __future__ import annotations

from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
