# marketplace/schemas/category.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from marketplace.core.config import settings
from marketplace.services.hierarchy.slugs import slugify


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = " ".join(value.split())
    if len(value) < settings.CATEGORY_NAME_MIN_LENGTH:
        raise ValueError(
            f"Name must have at least {settings.CATEGORY_NAME_MIN_LENGTH} characters"
        )
    if len(value) > settings.CATEGORY_NAME_MAX_LENGTH:
        raise ValueError(
            f"Name must have at most {settings.CATEGORY_NAME_MAX_LENGTH} characters"
        )
    return value


def _clean_slug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    normalized = slugify(value, fallback="")
    if not normalized:
        raise ValueError("Slug must contain letters or digits")
    return normalized


def _clean_description(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > settings.CATEGORY_DESCRIPTION_MAX_LENGTH:
        raise ValueError(
            f"Description must have at most {settings.CATEGORY_DESCRIPTION_MAX_LENGTH} characters"
        )
    return value


def _clean_image(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("Image must be an http(s) URL")
    return value


class CategoryCreate(BaseModel):
    """Payload for creating a Category under a supplier"""
    name: str = Field(..., description="Display name of the category")
    slug: Optional[str] = Field(None, description="Explicit slug; derived from the name when omitted")
    description: Optional[str] = Field(None, description="Optional description of the category")
    image: Optional[str] = Field(None, description="Optional image URL")
    parent_id: Optional[UUID] = Field(None, description="Parent category ID; omitted for a root category")
    active: bool = True
    order: int = Field(0, ge=0, description="Sibling sort position")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value):
        return _clean_name(value)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _clean_slug(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value):
        return _clean_description(value)

    @field_validator("image")
    @classmethod
    def validate_image(cls, value):
        return _clean_image(value)


class CategoryUpdate(BaseModel):
    """Patch for a Category (all fields optional, only set fields are applied)"""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[UUID] = None
    active: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value):
        return _clean_name(value)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _clean_slug(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value):
        return _clean_description(value)

    @field_validator("image")
    @classmethod
    def validate_image(cls, value):
        return _clean_image(value)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("Update must change at least one field")
        for field in ("name", "slug", "active", "order"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class CategoryInDB(BaseModel):
    """Schema for Category as stored in DB (includes DB fields)"""
    id: UUID
    owner_id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[UUID] = None
    active: bool = True
    order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CategoryNode(CategoryInDB):
    """A category together with its ordered subcategories"""
    subcategories: List["CategoryNode"] = Field(default_factory=list, alias="subcategorias")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class CategoryPathItem(BaseModel):
    """One breadcrumb entry"""
    id: UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class CategoryWithCounts(CategoryInDB):
    """Category with aggregates computed at read time (never persisted)"""
    product_count: int = 0
    subcategory_count: int = 0
    parent_name: Optional[str] = None


class CategoryResponse(CategoryInDB):
    """Schema for API responses"""
    pass


class IntegrityReport(BaseModel):
    """Structural problems found in a supplier's stored tree"""
    owner_id: UUID
    total: int
    cycles: List[List[UUID]] = Field(default_factory=list)
    dangling_parents: List[UUID] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.cycles and not self.dangling_parents


CategoryNode.model_rebuild()
