from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, computed_field

_absolute_url = TypeAdapter(AnyUrl)


def _clean_name(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Full name is required")
    return v


def _check_url(v):
    # Stored exactly as given; AnyUrl only decides whether it is absolute and well-formed.
    if v is None:
        return v
    try:
        _absolute_url.validate_python(v)
    except ValidationError:
        raise ValueError("Invalid URL") from None
    return v


class PersonCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _clean_name(v)

    @field_validator("photo_url")
    @classmethod
    def validate_photo_url(cls, v):
        return _check_url(v)

    def to_row(self) -> dict:
        return self.model_dump()


class PersonUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied;
    an explicit null clears a nullable field."""
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        # full_name is required on the record, so null can't clear it
        if v is None:
            raise ValueError("Full name cannot be cleared")
        return _clean_name(v)

    @field_validator("photo_url")
    @classmethod
    def validate_photo_url(cls, v):
        return _check_url(v)

    def changes(self) -> dict:
        return self.model_dump(include=self.model_fields_set)


class PersonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def dates_inconsistent(self) -> bool:
        return bool(self.birth_date and self.death_date and self.death_date < self.birth_date)


class PersonWithRelationships(PersonOut):
    parents: list[PersonOut] = []
    children: list[PersonOut] = []


class RelCreate(BaseModel):
    parent_id: int
    child_id: int


class RelationshipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_id: int
    child_id: int
    created_at: datetime


class SuccessOut(BaseModel):
    success: bool


class TreeNode(BaseModel):
    """One rendered instance of a person in the forest.

    ``cycle`` marks a person already on the path from the root; such a node
    is a leaf. ``detached`` marks roots of components no parentless person reaches.
    """
    person: PersonWithRelationships
    level: int = 0
    children: list[TreeNode] = []
    cycle: bool = False
    detached: bool = False


class ForestStats(BaseModel):
    roots: int
    nodes: int
    generations: int


class ForestOut(BaseModel):
    roots: list[TreeNode]
    stats: ForestStats


class GraphOut(BaseModel):
    nodes: list[dict]
    edges: list[dict]
