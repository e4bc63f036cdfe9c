from .slugs import SlugAllocator, slugify, next_free_slug
from .cycles import would_create_cycle, find_cycles
from .store import CategoryStore

__all__ = [
    "SlugAllocator",
    "slugify",
    "next_free_slug",
    "would_create_cycle",
    "find_cycles",
    "CategoryStore",
]
