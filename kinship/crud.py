import logging
from datetime import timedelta

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import config
from .errors import (
    DuplicateRelationshipError, KinshipError, PersistenceError, PersonNotFoundError,
)
from .models import Person, Relationship, utcnow
from .schemas import PersonCreate, PersonUpdate, PersonWithRelationships
from .tree import annotate_people, build_forest
from .validation import validate_relationship

logger = logging.getLogger(__name__)


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Could not {action}") from e


def _warn_dates(p: Person):
    if p.birth_date and p.death_date and p.death_date < p.birth_date:
        logger.warning("Person %s has a death date before their birth date", p.id)


# ── People ──

def create_person(db: Session, full_name: str, birth_date=None, death_date=None,
                  photo_url: str | None = None) -> Person:
    data = PersonCreate(full_name=full_name, birth_date=birth_date,
                        death_date=death_date, photo_url=photo_url)
    now = utcnow()
    p = Person(**data.to_row(), created_at=now, updated_at=now)
    db.add(p)
    _commit(db, "create person")
    db.refresh(p)
    _warn_dates(p)
    logger.info("Created person %s", p.id)
    return p


def list_people(db: Session) -> list[Person]:
    return list(db.scalars(select(Person).order_by(Person.id)))


def list_relationships(db: Session) -> list[Relationship]:
    return list(db.scalars(select(Relationship).order_by(Relationship.id)))


def get_person(db: Session, person_id: int) -> PersonWithRelationships | None:
    p = db.get(Person, person_id)
    if p is None:
        return None
    edges = list(db.scalars(
        select(Relationship)
        .where(or_(Relationship.parent_id == person_id, Relationship.child_id == person_id))
        .order_by(Relationship.id)
    ))
    relative_ids = {e.parent_id for e in edges} | {e.child_id for e in edges}
    relative_ids.discard(person_id)
    relatives = list(db.scalars(select(Person).where(Person.id.in_(relative_ids)))) if relative_ids else []
    for entry in annotate_people([p, *relatives], edges):
        if entry.id == person_id:
            return entry
    return None


def update_person(db: Session, person_id: int, **fields) -> Person:
    """Apply only the given fields. ``updated_at`` always moves forward."""
    changes = PersonUpdate(**fields).changes()
    p = db.get(Person, person_id)
    if p is None:
        raise PersonNotFoundError(person_id)
    for key, value in changes.items():
        setattr(p, key, value)
    now = utcnow()
    if now <= p.updated_at:
        now = p.updated_at + timedelta(microseconds=1)
    p.updated_at = now
    _commit(db, "update person")
    db.refresh(p)
    _warn_dates(p)
    logger.info("Updated person %s (%s)", p.id, ", ".join(sorted(changes)) or "no fields")
    return p


def delete_person(db: Session, person_id: int) -> dict:
    """Delete a person and every relationship that references them."""
    p = db.get(Person, person_id)
    if p is None:
        raise PersonNotFoundError(person_id)
    removed = len(p.child_links) + len(p.parent_links)
    db.delete(p)
    _commit(db, "delete person")
    logger.info("Deleted person %s and %d relationship(s)", person_id, removed)
    return {"success": True}


# ── Relationships ──

def create_relationship(db: Session, parent_id: int, child_id: int,
                        strict: bool | None = None) -> Relationship:
    if strict is None:
        strict = config.STRICT_CYCLES
    person_ids = set(db.scalars(select(Person.id)))
    edges = [(r.parent_id, r.child_id)
             for r in db.execute(select(Relationship.parent_id, Relationship.child_id))]
    try:
        validate_relationship(parent_id, child_id, person_ids, edges, strict=strict)
    except KinshipError as e:
        logger.warning("Rejected relationship %s -> %s: %s", parent_id, child_id, e)
        raise

    r = Relationship(parent_id=parent_id, child_id=child_id, created_at=utcnow())
    db.add(r)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent insert of the same pair.
        db.rollback()
        logger.warning("Unique constraint rejected relationship %s -> %s", parent_id, child_id)
        raise DuplicateRelationshipError(parent_id, child_id) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to create relationship")
        raise PersistenceError("Could not create relationship") from e
    db.refresh(r)
    logger.info("Created relationship %s: %s -> %s", r.id, parent_id, child_id)
    return r


def delete_relationship(db: Session, parent_id: int, child_id: int) -> dict:
    r = db.scalars(
        select(Relationship)
        .where(Relationship.parent_id == parent_id, Relationship.child_id == child_id)
    ).first()
    if r is None:
        return {"success": False}
    db.delete(r)
    _commit(db, "delete relationship")
    logger.info("Deleted relationship %s -> %s", parent_id, child_id)
    return {"success": True}


# ── Family tree ──

def get_family_tree(db: Session) -> list[PersonWithRelationships]:
    return annotate_people(list_people(db), list_relationships(db))


def get_forest(db: Session):
    return build_forest(list_people(db), list_relationships(db))
