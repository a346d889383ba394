"""User model and the signature fragrance shown on a profile."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from fragmento.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    bio = Column(Text, nullable=False, default="")
    profile_picture_url = Column(String(500), nullable=False, default="")
    cover_picture_url = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    last_active = Column(DateTime, default=datetime.utcnow)

    # Relationships
    signature_fragrance = relationship(
        "SignatureFragrance",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SignatureFragrance(Base):
    """The one fragrance a user pins to their profile."""
    __tablename__ = "fragrance_signatures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True)
    description = Column(String(1000), nullable=True)
    photo_url = Column(String(500), nullable=True)

    user = relationship("User", back_populates="signature_fragrance")
    notes = relationship(
        "SignatureNote",
        back_populates="signature",
        cascade="all, delete-orphan",
        order_by="SignatureNote.order",
        lazy="selectin",
    )


class SignatureNote(Base):
    __tablename__ = "fragrance_signature_notes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    signature_id = Column(Uuid, ForeignKey("fragrance_signatures.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False, default="unspecified")
    order = Column(Integer, nullable=False, default=0)

    signature = relationship("SignatureFragrance", back_populates="notes")
