"""Tests for kinship/crud.py — person/relationship operations against a session.

Properties tested:
- Created ids are positive and unique; created_at == updated_at at creation
- Partial update touches only supplied fields; updated_at strictly increases
- Deleting a person removes every edge that references them, nothing else
- Relationship validation failures surface as distinct errors
- Nothing is persisted when an operation fails
"""
from datetime import date

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from kinship import config, crud
from kinship.errors import (
    ChildNotFoundError, CircularRelationshipError, DuplicateRelationshipError,
    ParentNotFoundError, PersistenceError, PersonNotFoundError, SelfRelationshipError,
)


# ── People ──

class TestCreatePerson:
    def test_minimal(self, db):
        p = crud.create_person(db, "Ada Lovelace")
        assert p.id > 0
        assert p.full_name == "Ada Lovelace"
        assert p.birth_date is None
        assert p.death_date is None
        assert p.photo_url is None
        assert p.created_at == p.updated_at

    def test_all_fields(self, db):
        p = crud.create_person(
            db, "Full Person", birth_date=date(1815, 12, 10), death_date="1852-11-27",
            photo_url="https://example.com/ada.jpg",
        )
        assert p.birth_date == date(1815, 12, 10)
        assert p.death_date == date(1852, 11, 27)
        assert p.photo_url == "https://example.com/ada.jpg"

    def test_ids_unique(self, db):
        ids = {crud.create_person(db, f"P{i}").id for i in range(5)}
        assert len(ids) == 5
        assert all(i > 0 for i in ids)

    def test_ids_not_reused(self, db):
        crud.create_person(db, "First")
        last = crud.create_person(db, "Last")
        crud.delete_person(db, last.id)
        again = crud.create_person(db, "Again")
        assert again.id > last.id

    def test_name_stripped(self, db):
        assert crud.create_person(db, "  Grace Hopper ").full_name == "Grace Hopper"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, db, name):
        with pytest.raises(ValidationError):
            crud.create_person(db, name)
        assert crud.list_people(db) == []

    @pytest.mark.parametrize("url", ["not a url", "example.com/photo.jpg"])
    def test_bad_photo_url(self, db, url):
        with pytest.raises(ValidationError):
            crud.create_person(db, "Someone", photo_url=url)

    @pytest.mark.parametrize("url", ["https://example.com", "ftp://example.com/p.jpg"])
    def test_photo_url_stored_as_given(self, db, url):
        p = crud.create_person(db, "Someone", photo_url=url)
        assert p.photo_url == url
        assert crud.get_person(db, p.id).photo_url == url

    def test_death_before_birth_is_allowed_but_logged(self, db, caplog):
        p = crud.create_person(db, "Odd Dates", birth_date="2000-01-01", death_date="1990-01-01")
        assert p.id > 0
        assert "death date before" in caplog.text


class TestListPeople:
    def test_empty(self, db):
        assert crud.list_people(db) == []

    def test_ordered_by_id(self, db):
        z = crud.create_person(db, "Zara")
        a = crud.create_person(db, "Alice")
        assert [p.id for p in crud.list_people(db)] == [z.id, a.id]


class TestGetPerson:
    def test_not_found(self, db):
        assert crud.get_person(db, 12345) is None

    def test_no_relatives(self, db, person_mom):
        p = crud.get_person(db, person_mom.id)
        assert p.full_name == "Mom"
        assert p.parents == []
        assert p.children == []

    def test_two_parents(self, db, family):
        child = crud.get_person(db, family["child"].id)
        assert len(child.parents) == 2
        assert {p.full_name for p in child.parents} == {"Mom", "Dad"}

    def test_two_parents_any_insertion_order(self, db, person_mom, person_dad, person_child):
        crud.create_relationship(db, person_dad.id, person_child.id)
        crud.create_relationship(db, person_mom.id, person_child.id)
        child = crud.get_person(db, person_child.id)
        assert {p.full_name for p in child.parents} == {"Mom", "Dad"}

    def test_children_resolved(self, db, family):
        mom = crud.get_person(db, family["mom"].id)
        assert [c.full_name for c in mom.children] == ["Child"]
        assert mom.children[0].birth_date == date(1990, 5, 1)


class TestUpdatePerson:
    def test_only_name(self, db):
        p = crud.create_person(db, "Old", birth_date="1950-01-01", death_date="2010-01-01",
                               photo_url="https://example.com/old.png")
        before = (p.birth_date, p.death_date, p.photo_url, p.created_at, p.updated_at)

        updated = crud.update_person(db, p.id, full_name="New")
        assert updated.full_name == "New"
        assert (updated.birth_date, updated.death_date, updated.photo_url, updated.created_at) == before[:4]
        assert updated.updated_at > before[4]

    def test_updated_at_increases_every_time(self, db, person_mom):
        stamps = [person_mom.updated_at]
        for _ in range(3):
            stamps.append(crud.update_person(db, person_mom.id).updated_at)
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 4

    def test_explicit_null_clears(self, db):
        p = crud.create_person(db, "Photo", photo_url="https://example.com/a.png", death_date="2001-02-03")
        updated = crud.update_person(db, p.id, photo_url=None, death_date=None)
        assert updated.photo_url is None
        assert updated.death_date is None
        assert updated.full_name == "Photo"

    def test_cannot_clear_name(self, db, person_mom):
        with pytest.raises(ValidationError):
            crud.update_person(db, person_mom.id, full_name=None)

    def test_bad_url(self, db, person_mom):
        with pytest.raises(ValidationError):
            crud.update_person(db, person_mom.id, photo_url="nope")

    def test_not_found(self, db):
        with pytest.raises(PersonNotFoundError, match="not found"):
            crud.update_person(db, 999, full_name="Ghost")


class TestDeletePerson:
    def test_delete(self, db, person_mom):
        assert crud.delete_person(db, person_mom.id) == {"success": True}
        assert crud.get_person(db, person_mom.id) is None

    def test_not_found(self, db):
        with pytest.raises(PersonNotFoundError):
            crud.delete_person(db, 999)

    def test_cascades_edges(self, db):
        a, b, c, d = (crud.create_person(db, n) for n in "ABCD")
        crud.create_relationship(db, a.id, b.id)
        crud.create_relationship(db, b.id, c.id)
        crud.create_relationship(db, c.id, d.id)

        crud.delete_person(db, b.id)

        pairs = [(r.parent_id, r.child_id) for r in crud.list_relationships(db)]
        assert pairs == [(c.id, d.id)]
        assert [p.full_name for p in crud.list_people(db)] == ["A", "C", "D"]


# ── Relationships ──

class TestCreateRelationship:
    def test_create(self, db, person_mom, person_child):
        rel = crud.create_relationship(db, person_mom.id, person_child.id)
        assert rel.id > 0
        assert rel.parent_id == person_mom.id
        assert rel.child_id == person_child.id
        assert rel.created_at is not None

    def test_self(self, db, person_mom):
        with pytest.raises(SelfRelationshipError):
            crud.create_relationship(db, person_mom.id, person_mom.id)

    def test_parent_missing(self, db, person_child):
        with pytest.raises(ParentNotFoundError):
            crud.create_relationship(db, 999, person_child.id)

    def test_child_missing(self, db, person_mom):
        with pytest.raises(ChildNotFoundError):
            crud.create_relationship(db, person_mom.id, 999)

    def test_duplicate(self, db, person_mom, person_child):
        crud.create_relationship(db, person_mom.id, person_child.id)
        with pytest.raises(DuplicateRelationshipError):
            crud.create_relationship(db, person_mom.id, person_child.id)
        assert len(crud.list_relationships(db)) == 1

    def test_reversed(self, db, person_mom, person_child):
        crud.create_relationship(db, person_mom.id, person_child.id)
        with pytest.raises(CircularRelationshipError):
            crud.create_relationship(db, person_child.id, person_mom.id)
        assert len(crud.list_relationships(db)) == 1

    def test_long_cycle_accepted_by_default(self, db):
        a, b, c = (crud.create_person(db, n) for n in "ABC")
        crud.create_relationship(db, a.id, b.id)
        crud.create_relationship(db, b.id, c.id)
        crud.create_relationship(db, c.id, a.id, strict=False)
        assert len(crud.list_relationships(db)) == 3

    def test_long_cycle_rejected_when_strict(self, db):
        a, b, c = (crud.create_person(db, n) for n in "ABC")
        crud.create_relationship(db, a.id, b.id)
        crud.create_relationship(db, b.id, c.id)
        with pytest.raises(CircularRelationshipError):
            crud.create_relationship(db, c.id, a.id, strict=True)

    def test_strict_from_config(self, db, monkeypatch):
        monkeypatch.setattr(config, "STRICT_CYCLES", True)
        a, b, c = (crud.create_person(db, n) for n in "ABC")
        crud.create_relationship(db, a.id, b.id)
        crud.create_relationship(db, b.id, c.id)
        with pytest.raises(CircularRelationshipError):
            crud.create_relationship(db, c.id, a.id)

    def test_unique_constraint_backs_validator(self, db, person_mom, person_child, monkeypatch):
        crud.create_relationship(db, person_mom.id, person_child.id)
        # Simulate a concurrent writer that passed validation on a stale snapshot
        monkeypatch.setattr(crud, "validate_relationship", lambda *a, **kw: None)
        with pytest.raises(DuplicateRelationshipError):
            crud.create_relationship(db, person_mom.id, person_child.id)
        assert len(crud.list_relationships(db)) == 1


class TestDeleteRelationship:
    def test_delete(self, db, family):
        result = crud.delete_relationship(db, family["mom"].id, family["child"].id)
        assert result == {"success": True}
        pairs = [(r.parent_id, r.child_id) for r in crud.list_relationships(db)]
        assert pairs == [(family["dad"].id, family["child"].id)]

    def test_missing_pair(self, db, person_mom, person_child):
        assert crud.delete_relationship(db, person_mom.id, person_child.id) == {"success": False}

    def test_direction_matters(self, db, family):
        result = crud.delete_relationship(db, family["child"].id, family["mom"].id)
        assert result == {"success": False}
        assert len(crud.list_relationships(db)) == 2


# ── Family tree ──

class TestFamilyTree:
    def test_parent_and_child(self, db):
        m = crud.create_person(db, "M")
        d = crud.create_person(db, "D")
        crud.create_relationship(db, m.id, d.id)
        tree = {p.full_name: p for p in crud.get_family_tree(db)}
        assert [c.full_name for c in tree["M"].children] == ["D"]
        assert tree["M"].parents == []
        assert [p.full_name for p in tree["D"].parents] == ["M"]
        assert tree["D"].children == []

    def test_empty(self, db):
        assert crud.get_family_tree(db) == []

    def test_forest(self, db, family):
        forest = crud.get_forest(db)
        assert [n.person.full_name for n in forest] == ["Mom", "Dad"]
        assert [n.person.full_name for n in forest[1].children] == ["Child"]

    def test_forest_with_undetected_cycle(self, db):
        a, b, c = (crud.create_person(db, n) for n in "ABC")
        root = crud.create_person(db, "Root")
        crud.create_relationship(db, root.id, a.id)
        crud.create_relationship(db, a.id, b.id)
        crud.create_relationship(db, b.id, c.id)
        crud.create_relationship(db, c.id, a.id)
        forest = crud.get_forest(db)
        assert [n.person.full_name for n in forest] == ["Root"]


# ── Persistence failures ──

class TestPersistenceFailure:
    def _broken_commit(self, *args, **kwargs):
        raise SQLAlchemyError("disk I/O error")

    def test_create_person_rolls_back(self, db, monkeypatch):
        monkeypatch.setattr(db, "commit", self._broken_commit)
        with pytest.raises(PersistenceError):
            crud.create_person(db, "Lost")
        monkeypatch.undo()
        assert crud.list_people(db) == []

    def test_create_relationship(self, db, person_mom, person_child, monkeypatch):
        monkeypatch.setattr(db, "commit", self._broken_commit)
        with pytest.raises(PersistenceError):
            crud.create_relationship(db, person_mom.id, person_child.id)
        monkeypatch.undo()
        assert crud.list_relationships(db) == []
