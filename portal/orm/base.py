"""
portal/orm/base.py
Base model for all ORM models
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum as SQLEnum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite does not keep tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def value_enum(enum_cls):
    """Enum column that stores member values ('Staff Head') rather than names."""
    return SQLEnum(enum_cls, values_callable=lambda members: [m.value for m in members])


def id_factory(prefix: str):
    """Column default producing '<prefix>-<hex>' identifiers."""
    return lambda: new_id(prefix)


class BaseModel(Base):
    """
    Abstract base model with common fields.
    All ORM models inherit from this.
    """
    __abstract__ = True

    created_at = Column(
        DateTime,
        default=utcnow,
        nullable=False,
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp when record was last updated"
    )
