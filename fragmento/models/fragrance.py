"""Fragrance description embedded in a post, with its notes, tags, accords, ratings and seasons."""
import uuid

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from fragmento.db.session import Base

NOTE_CATEGORIES = ("top", "middle", "base", "unspecified")


class Fragrance(Base):
    __tablename__ = "fragrances"
    __table_args__ = (
        CheckConstraint("day_night_preference BETWEEN 0 AND 100", name="ck_fragrances_day_night"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True)
    description = Column(String(2000), nullable=True)
    occasion = Column(String(50), nullable=True)
    photo_url = Column(String(500), nullable=True)
    day_night_preference = Column(Integer, nullable=False, default=50)

    post = relationship("Post", back_populates="fragrance")
    notes = relationship(
        "FragranceNote",
        back_populates="fragrance",
        cascade="all, delete-orphan",
        order_by="FragranceNote.order",
        lazy="selectin",
    )
    tags = relationship("FragranceTag", cascade="all, delete-orphan", lazy="selectin")
    accords = relationship("FragranceAccord", cascade="all, delete-orphan", lazy="selectin")
    ratings = relationship(
        "FragranceRatings", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )
    seasons = relationship(
        "FragranceSeasons", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )


class FragranceNote(Base):
    __tablename__ = "fragrance_notes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fragrance_id = Column(Uuid, ForeignKey("fragrances.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False, default="unspecified")  # top | middle | base | unspecified
    order = Column(Integer, nullable=False, default=0)

    fragrance = relationship("Fragrance", back_populates="notes")


class FragranceTag(Base):
    __tablename__ = "fragrance_tags"
    __table_args__ = (UniqueConstraint("fragrance_id", "name", name="uq_fragrance_tags_fragrance_name"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fragrance_id = Column(Uuid, ForeignKey("fragrances.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)


class FragranceAccord(Base):
    __tablename__ = "fragrance_accords"
    __table_args__ = (UniqueConstraint("fragrance_id", "name", name="uq_fragrance_accords_fragrance_name"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fragrance_id = Column(Uuid, ForeignKey("fragrances.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)


class FragranceRatings(Base):
    __tablename__ = "fragrance_ratings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fragrance_id = Column(Uuid, ForeignKey("fragrances.id", ondelete="CASCADE"), unique=True, nullable=False)
    overall = Column(Float, nullable=False, default=5)
    longevity = Column(Float, nullable=False, default=5)
    sillage = Column(Float, nullable=False, default=5)
    scent = Column(Float, nullable=False, default=5)
    value = Column(Float, nullable=False, default=5)


class FragranceSeasons(Base):
    __tablename__ = "fragrance_seasons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fragrance_id = Column(Uuid, ForeignKey("fragrances.id", ondelete="CASCADE"), unique=True, nullable=False)
    spring = Column(Integer, nullable=False, default=3)
    summer = Column(Integer, nullable=False, default=3)
    fall = Column(Integer, nullable=False, default=3)
    winter = Column(Integer, nullable=False, default=3)
