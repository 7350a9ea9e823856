# app/schemas/common.py
from pydantic import BaseModel


class PageMeta(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    has_previous: bool
    has_next: bool
