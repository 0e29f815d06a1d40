"""
Records passed between the stages of a build.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class Metadata:
    """Front matter of one content file."""
    title: str
    date: Any = None
    author: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    featured_image: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Post:
    """A generated post, as listed in the manifest, sitemap and listing pages."""
    title: str
    date: str
    slug: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class PageNumber:
    number: int
    is_active: bool


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    prev_page: Optional[str]
    next_page: Optional[str]
    page_numbers: List[PageNumber]


@dataclass(frozen=True)
class Page:
    number: int
    posts: List[Post]
    pagination: Pagination
