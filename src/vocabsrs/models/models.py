"""Database models for the review engine."""
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    Enum,
    Integer,
    String,
    UniqueConstraint,
)

from vocabsrs.models.base import Base, TimestampMixin
from vocabsrs.models.review_models import ItemStatus, Skill


class Item(Base):
    """Vocabulary item model."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    text = Column(String, nullable=False)
    meanings = Column(JSON, nullable=False, default=list)  # first one is primary
    category = Column(String, nullable=False, default="word")  # word, idiom, phrase
    tags = Column(JSON, nullable=False, default=list)
    example = Column(String)
    note = Column(String)
    created_at = Column(BigInteger, nullable=False)  # epoch ms
    status = Column(Enum(ItemStatus), nullable=False, default=ItemStatus.NOT_YET)


class Progress(Base, TimestampMixin):
    """Per (item, skill) ladder position.

    ``item_id`` deliberately carries no foreign key: rows survive item deletion
    and are skipped as orphans by the read paths.
    """

    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("item_id", "skill", name="uq_progress_item_skill"),)

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    skill = Column(Enum(Skill), nullable=False)
    stage = Column(Integer, nullable=False, default=0)
    next_due = Column(Date, nullable=False)
    correct_count = Column(Integer, nullable=False, default=0)
    wrong_count = Column(Integer, nullable=False, default=0)
    mastered = Column(Boolean, nullable=False, default=False)
    complete_master = Column(Boolean, nullable=False, default=False)


class Attempt(Base):
    """Append-only answer log model."""

    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    skill = Column(Enum(Skill), nullable=False)
    result = Column(Boolean, nullable=False)
    ts = Column(BigInteger, nullable=False, index=True)  # epoch ms
    elapsed_ms = Column(Integer, nullable=False, default=0)


class Setting(Base, TimestampMixin):
    """Key/value settings model (e.g. ``intervals``)."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)


class Achievement(Base):
    """Unlocked achievement model."""

    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    achieved_at = Column(BigInteger, nullable=False)  # epoch ms


class ReviewSession(Base, TimestampMixin):
    """Opaque review session blob."""

    __tablename__ = "review_sessions"

    id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
