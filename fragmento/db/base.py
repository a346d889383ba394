"""SQLAlchemy declarative base and model imports for Alembic."""
from fragmento.db.session import Base  # noqa: F401
from fragmento.models.user import User, SignatureFragrance, SignatureNote  # noqa: F401
from fragmento.models.token import RefreshToken  # noqa: F401
from fragmento.models.post import Post  # noqa: F401
from fragmento.models.fragrance import (  # noqa: F401
    Fragrance,
    FragranceAccord,
    FragranceNote,
    FragranceRatings,
    FragranceSeasons,
    FragranceTag,
)
from fragmento.models.comment import Comment  # noqa: F401
from fragmento.models.engagement import Follow, PostLike, CommentLike, SavedPost  # noqa: F401
from fragmento.models.notification import Notification  # noqa: F401

__all__ = [
    "Base", "User", "SignatureFragrance", "SignatureNote", "RefreshToken", "Post", "Fragrance",
    "FragranceNote", "FragranceTag", "FragranceAccord", "FragranceRatings", "FragranceSeasons",
    "Comment", "Follow", "PostLike", "CommentLike", "SavedPost", "Notification",
]
