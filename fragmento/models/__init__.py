from fragmento.models.user import SignatureFragrance, SignatureNote, User
from fragmento.models.token import RefreshToken
from fragmento.models.post import Post
from fragmento.models.fragrance import (
    Fragrance,
    FragranceAccord,
    FragranceNote,
    FragranceRatings,
    FragranceSeasons,
    FragranceTag,
)
from fragmento.models.comment import Comment
from fragmento.models.engagement import CommentLike, Follow, PostLike, SavedPost
from fragmento.models.notification import Notification

__all__ = [
    "User",
    "SignatureFragrance",
    "SignatureNote",
    "RefreshToken",
    "Post",
    "Fragrance",
    "FragranceNote",
    "FragranceTag",
    "FragranceAccord",
    "FragranceRatings",
    "FragranceSeasons",
    "Comment",
    "Follow",
    "PostLike",
    "CommentLike",
    "SavedPost",
    "Notification",
]
