# Models module
from blogify.models.user import User, UserRole
from blogify.models.post import Post, PostStatus, Tag, PostTag, PostLike, SavedPost
from blogify.models.comment import Comment

__all__ = ["User", "UserRole", "Post", "PostStatus", "Tag", "PostTag", "PostLike", "SavedPost", "Comment"]
