from typing import Optional

from .base import CamelModel


class Category(CamelModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool = True
    content_count: int = 0
