"""Contact model plus category and profile-type assignments."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, UUIDMixin, TimestampMixin


class Contact(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "contact"

    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255), default=None, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), default=None, index=True)
    company: Mapped[str | None] = mapped_column(String(200), default=None)

    # Relationships
    profile_types: Mapped[list["ContactProfileTypeAssignment"]] = relationship(
        back_populates="contact", cascade="all, delete-orphan", lazy="selectin",
        order_by="ContactProfileTypeAssignment.created_at",
    )
    categories: Mapped[list["ContactCategoryAssignment"]] = relationship(
        back_populates="contact", cascade="all, delete-orphan", lazy="selectin",
        order_by="ContactCategoryAssignment.created_at",
    )
    custom_field_values: Mapped[list["CustomFieldValue"]] = relationship(  # noqa: F821
        back_populates="contact", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Contact {self.name!r}>"


class ContactProfileType(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "contact_profile_type"

    name: Mapped[str] = mapped_column(String(100), unique=True)
    icon: Mapped[str | None] = mapped_column(String(50), default=None)
    color: Mapped[str] = mapped_column(String(20), default="#6b7280")
    default_layout_config: Mapped[dict | None] = mapped_column(JSON, default=None)

    def __repr__(self) -> str:
        return f"<ContactProfileType {self.name!r}>"


class ContactProfileTypeAssignment(UUIDMixin, CreatedAtMixin, Base):
    """Links a contact to a profile type; at most one primary per contact."""

    __tablename__ = "contact_profile_type_assignment"
    __table_args__ = (
        UniqueConstraint("contact_id", "profile_type_id", name="uq_profile_assignment_contact_type"),
    )

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    profile_type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact_profile_type.id", ondelete="CASCADE")
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    contact: Mapped[Contact] = relationship(back_populates="profile_types")
    profile_type: Mapped[ContactProfileType] = relationship(lazy="selectin")


class ContactCategory(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "contact_category"

    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    icon: Mapped[str | None] = mapped_column(String(50), default=None)
    color: Mapped[str] = mapped_column(String(20), default="#6b7280")
    parent_category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact_category.id", ondelete="SET NULL"), default=None
    )

    def __repr__(self) -> str:
        return f"<ContactCategory {self.name!r}>"


class ContactCategoryAssignment(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "contact_category_assignment"
    __table_args__ = (
        UniqueConstraint("contact_id", "category_id", name="uq_category_assignment_contact_category"),
    )

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact_category.id", ondelete="CASCADE")
    )

    contact: Mapped[Contact] = relationship(back_populates="categories")
    category: Mapped[ContactCategory] = relationship(lazy="selectin")
