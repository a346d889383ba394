"""Post model: one user's write-up of exactly one fragrance."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from fragmento.db.session import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=True)

    user = relationship("User", lazy="selectin")
    fragrance = relationship(
        "Fragrance",
        back_populates="post",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
