from datetime import datetime, timezone, date

from sqlalchemy import (
    CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    # Stored naive; SQLite drops tzinfo and comparisons must stay consistent.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Person(Base):
    __tablename__ = "person"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    death_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Edges where this person is the parent / the child. Deleting a person removes both.
    child_links = relationship(
        "Relationship",
        foreign_keys="Relationship.parent_id",
        back_populates="parent",
        cascade="all, delete-orphan",
    )
    parent_links = relationship(
        "Relationship",
        foreign_keys="Relationship.child_id",
        back_populates="child",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Person(id={self.id}, name='{self.full_name}')>"


class Relationship(Base):
    __tablename__ = "relationship"
    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_relationship_pair"),
        CheckConstraint("parent_id <> child_id", name="ck_relationship_not_self"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False, index=True
    )
    child_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("person.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    parent = relationship("Person", foreign_keys=[parent_id], back_populates="child_links")
    child = relationship("Person", foreign_keys=[child_id], back_populates="parent_links")

    def __repr__(self):
        return f"<Relationship(id={self.id}, parent={self.parent_id}, child={self.child_id})>"
