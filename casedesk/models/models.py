"""
CaseDesk Database Models
SQLAlchemy ORM models for all entities.

All datetime columns use DateTime(timezone=True) for proper UTC handling.
Use utc_now() from casedesk.core.utc for all timestamp defaults.
Calendar values (entry dates, deadlines) are plain Date columns.
"""

from datetime import date, datetime
from typing import Optional
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from casedesk.core.database import Base
from casedesk.core.utc import utc_now


# Type alias for timezone-aware DateTime columns
DateTimeTZ = DateTime(timezone=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now, onupdate=utc_now)


class SoftDeleteMixin:
    """Rows with deleted_at set are hidden from every query."""
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTimeTZ, nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


# =============================================================================
# Users & Sessions
# =============================================================================

class User(TimestampMixin, Base):
    """Staff account that logs into CaseDesk."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTimeTZ, nullable=True)

    tokens: Mapped[list["ApiToken"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    todo_lists: Mapped[list["TodoList"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class ApiToken(Base):
    """
    Login session token.
    Only the SHA-256 of the token is stored; the raw value is handed out once.
    """
    __tablename__ = "api_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTimeTZ, default=utc_now)
    expires_at: Mapped[datetime] = mapped_column(DateTimeTZ)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTimeTZ, nullable=True)

    user: Mapped["User"] = relationship(back_populates="tokens", lazy="selectin")


# =============================================================================
# Catalogs
# =============================================================================

class CaseType(TimestampMixin, Base):
    __tablename__ = "case_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class StatusList(TimestampMixin, Base):
    """Catalog of status names a case can be moved to."""
    __tablename__ = "status_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TagList(TimestampMixin, Base):
    """Catalog of tag names with a description."""
    __tablename__ = "tag_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# =============================================================================
# Tags
# =============================================================================

case_tags = Table(
    "case_tags",
    Base.metadata,
    Column("legal_case_id", ForeignKey("legal_cases.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

entity_tags = Table(
    "legal_entity_tags",
    Base.metadata,
    Column("legal_entity_id", ForeignKey("legal_entities.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(TimestampMixin, Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    slug: Mapped[str] = mapped_column(String(255), index=True)
    type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    order_column: Mapped[int] = mapped_column(Integer, default=0)

    legal_cases: Mapped[list["LegalCase"]] = relationship(secondary=case_tags, back_populates="tags")
    legal_entities: Mapped[list["LegalEntity"]] = relationship(secondary=entity_tags, back_populates="tags")


# =============================================================================
# Legal Cases
# =============================================================================

class LegalCase(TimestampMixin, SoftDeleteMixin, Base):
    """A tracked matter (expediente)."""
    __tablename__ = "legal_cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    entry_date: Mapped[date] = mapped_column(Date)
    sentence_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    closing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    case_type_id: Mapped[int] = mapped_column(ForeignKey("case_types.id"), index=True)

    case_type: Mapped["CaseType"] = relationship(lazy="selectin")
    individual_links: Mapped[list["CaseIndividual"]] = relationship(
        back_populates="legal_case", cascade="all, delete-orphan"
    )
    entity_links: Mapped[list["CaseLegalEntity"]] = relationship(
        back_populates="legal_case", cascade="all, delete-orphan"
    )
    events: Mapped[list["CaseEvent"]] = relationship(back_populates="legal_case", cascade="all, delete-orphan")
    important_dates: Mapped[list["CaseImportantDate"]] = relationship(
        back_populates="legal_case", cascade="all, delete-orphan"
    )
    statuses: Mapped[list["CaseStatus"]] = relationship(back_populates="legal_case", cascade="all, delete-orphan")
    tags: Mapped[list["Tag"]] = relationship(secondary=case_tags, back_populates="legal_cases")
    media: Mapped[list["Media"]] = relationship(back_populates="legal_case")


class CaseStatus(TimestampMixin, Base):
    """
    One entry in a case's status history.
    The newest entry is the case's current status.
    """
    __tablename__ = "statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    legal_case_id: Mapped[int] = mapped_column(ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    legal_case: Mapped["LegalCase"] = relationship(back_populates="statuses")


class CaseEvent(TimestampMixin, Base):
    """Procedural event recorded on a case."""
    __tablename__ = "case_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    legal_case_id: Mapped[int] = mapped_column(ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[date] = mapped_column(Date, index=True)

    legal_case: Mapped["LegalCase"] = relationship(back_populates="events")
    user: Mapped[Optional["User"]] = relationship(lazy="selectin")


class CaseImportantDate(TimestampMixin, SoftDeleteMixin, Base):
    """A procedural term running from start_date to end_date (the deadline)."""
    __tablename__ = "case_important_dates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    legal_case_id: Mapped[int] = mapped_column(ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date, index=True)
    is_expired: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    legal_case: Mapped["LegalCase"] = relationship(back_populates="important_dates")
    creator: Mapped[Optional["User"]] = relationship(lazy="selectin")

    def days_remaining(self, today: date) -> int:
        if self.is_expired:
            return 0
        return (self.end_date - today).days


# =============================================================================
# Participants
# =============================================================================

class Individual(TimestampMixin, SoftDeleteMixin, Base):
    """Natural person."""
    __tablename__ = "individuals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    national_id: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    passport: Mapped[Optional[str]] = mapped_column(String(30), unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), index=True)
    middle_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), index=True)
    second_last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    civil_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    rif: Mapped[Optional[str]] = mapped_column(String(15), unique=True, nullable=True)
    email_1: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    email_2: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    phone_number_1: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    phone_number_2: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_line_1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_line_2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    occupation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    educational_level: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    case_links: Mapped[list["CaseIndividual"]] = relationship(back_populates="individual")


class LegalEntity(TimestampMixin, SoftDeleteMixin, Base):
    """Organization (persona jurídica)."""
    __tablename__ = "legal_entities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rif: Mapped[str] = mapped_column(String(15), unique=True, index=True)
    business_name: Mapped[str] = mapped_column(String(255), index=True)
    trade_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    legal_entity_type: Mapped[str] = mapped_column(String(50))
    registration_number: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    registration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    fiscal_address_line_1: Mapped[str] = mapped_column(String(255))
    fiscal_address_line_2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    fiscal_city: Mapped[str] = mapped_column(String(100))
    fiscal_state: Mapped[str] = mapped_column(String(100))
    fiscal_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email_1: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    email_2: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    phone_number_1: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    phone_number_2: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    legal_representative_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("individuals.id", ondelete="SET NULL"), nullable=True
    )

    legal_representative: Mapped[Optional["Individual"]] = relationship(lazy="selectin")
    case_links: Mapped[list["CaseLegalEntity"]] = relationship(back_populates="legal_entity")
    tags: Mapped[list["Tag"]] = relationship(secondary=entity_tags, back_populates="legal_entities")


class CaseIndividual(TimestampMixin, Base):
    """Individual taking part in a case, with their procedural role."""
    __tablename__ = "case_individuals"
    __table_args__ = (UniqueConstraint("legal_case_id", "individual_id", name="uq_case_individual"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    legal_case_id: Mapped[int] = mapped_column(ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    individual_id: Mapped[int] = mapped_column(ForeignKey("individuals.id", ondelete="CASCADE"), index=True)
    role: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    legal_case: Mapped["LegalCase"] = relationship(back_populates="individual_links")
    individual: Mapped["Individual"] = relationship(back_populates="case_links", lazy="selectin")


class CaseLegalEntity(TimestampMixin, Base):
    """Legal entity taking part in a case, with its procedural role."""
    __tablename__ = "case_legal_entities"
    __table_args__ = (UniqueConstraint("legal_case_id", "legal_entity_id", name="uq_case_legal_entity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    legal_case_id: Mapped[int] = mapped_column(ForeignKey("legal_cases.id", ondelete="CASCADE"), index=True)
    legal_entity_id: Mapped[int] = mapped_column(ForeignKey("legal_entities.id", ondelete="CASCADE"), index=True)
    role: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    legal_case: Mapped["LegalCase"] = relationship(back_populates="entity_links")
    legal_entity: Mapped["LegalEntity"] = relationship(back_populates="case_links", lazy="selectin")


# =============================================================================
# Media
# =============================================================================

class Media(TimestampMixin, Base):
    """
    Uploaded file.

    legal_case_id is None for files in the shared media library.
    disk_path is relative to settings.media_dir.
    """
    __tablename__ = "media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True)
    legal_case_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("legal_cases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    file_name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str] = mapped_column(String(255), default="application/octet-stream")
    size: Mapped[int] = mapped_column(Integer, default=0)
    collection_name: Mapped[str] = mapped_column(String(50), default="documents", index=True)
    disk_path: Mapped[str] = mapped_column(String(500))
    sha256_hash: Mapped[str] = mapped_column(String(64))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    legal_case: Mapped[Optional["LegalCase"]] = relationship(back_populates="media")


# =============================================================================
# Todo Lists
# =============================================================================

class TodoList(TimestampMixin, Base):
    __tablename__ = "todo_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)

    user: Mapped["User"] = relationship(back_populates="todo_lists")
    todos: Mapped[list["Todo"]] = relationship(back_populates="todo_list", cascade="all, delete-orphan")


class Todo(TimestampMixin, Base):
    __tablename__ = "todos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    todo_list_id: Mapped[int] = mapped_column(ForeignKey("todo_lists.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)

    todo_list: Mapped["TodoList"] = relationship(back_populates="todos")
