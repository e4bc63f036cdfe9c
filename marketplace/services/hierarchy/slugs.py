# marketplace/services/hierarchy/slugs.py
from typing import Iterable, Optional, Set
from uuid import UUID
import re
import unicodedata

from marketplace.core.config import settings


def slugify(name: str, max_length: Optional[int] = None, fallback: Optional[str] = None) -> str:
    """
    Convert a category name into a URL-safe slug.

    Diacritics are folded ("Eletrônicos" -> "eletronicos"), anything that is
    not a lowercase letter or digit collapses into a single hyphen and the
    result never starts or ends with one.

    Args:
        name: Display name to convert
        max_length: Maximum slug length (defaults to CATEGORY_SLUG_MAX_LENGTH)
        fallback: Base used when nothing survives normalization (an empty
            fallback returns an empty slug)

    Returns:
        The slug, non-empty unless an empty fallback was given
    """
    max_length = max_length or settings.CATEGORY_SLUG_MAX_LENGTH
    if fallback is None:
        fallback = settings.CATEGORY_SLUG_FALLBACK

    # First, normalize unicode characters
    slug = unicodedata.normalize("NFKD", name or "")
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = slug.encode("ascii", "ignore").decode("ascii")

    # Convert to lowercase
    slug = slug.lower()

    # Replace spaces and special characters with hyphens
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")

    # Truncate, then make sure the cut did not leave a trailing hyphen
    slug = slug[:max_length].rstrip("-")

    if not slug:
        slug = fallback
    return slug


def next_free_slug(base: str, taken: Iterable[str], max_length: Optional[int] = None) -> str:
    """
    Return ``base`` or the first ``base-N`` (N = 1, 2, ...) not in ``taken``.

    The base is shortened as needed so ``base-N`` never exceeds
    ``max_length`` (defaults to CATEGORY_SLUG_MAX_LENGTH).
    """
    max_length = max_length or settings.CATEGORY_SLUG_MAX_LENGTH
    taken = set(taken)
    if base not in taken:
        return base
    counter = 1
    while True:
        suffix = f"-{counter}"
        candidate = base[: max_length - len(suffix)].rstrip("-") + suffix
        if candidate not in taken:
            return candidate
        counter += 1


class SlugAllocator:
    """Derives a slug that is unused within one supplier's categories"""

    def __init__(self, store):
        self.store = store

    def taken_slugs(self, owner_id: UUID, exclude_id: Optional[UUID] = None) -> Set[str]:
        """Slugs currently stored for the supplier, ignoring ``exclude_id``"""
        return {
            category.slug
            for category in self.store.find_all(owner_id)
            if exclude_id is None or category.id != exclude_id
        }

    def allocate(self, name: str, owner_id: UUID, exclude_id: Optional[UUID] = None) -> str:
        """
        Compute a free slug for ``name`` from a fresh snapshot.

        Nothing is reserved: two callers working from the same snapshot get
        the same answer, and the store's (owner_id, slug) constraint decides
        which write wins.
        """
        return next_free_slug(slugify(name), self.taken_slugs(owner_id, exclude_id))
