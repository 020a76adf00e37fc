"""
Comment lifecycle rules.

Every rule is checked before the first mutating statement. Row changes and
the post's ``comment_count`` move together in one transaction.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from blogify.core.config import settings
from blogify.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from blogify.models import Comment, Post, PostStatus, User
from blogify.utils.comment_tree import CommentNode, build_comment_tree, prune_depth
from blogify.utils.pagination import paginate

logger = logging.getLogger(__name__)


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _bump_comment_count(db: Session, post_id: int, delta: int) -> None:
    db.query(Post).filter(Post.id == post_id).update(
        {Post.comment_count: Post.comment_count + delta},
        synchronize_session=False,
    )


def create_comment(
    db: Session,
    author: User,
    post_id: int,
    content: str,
    parent_id: Optional[int] = None,
) -> Comment:
    post = db.query(Post).filter(Post.id == post_id, Post.status == PostStatus.PUBLISHED).first()
    if not post:
        raise NotFoundError("Post not found or not available for comments")

    if parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == parent_id).first()
        if not parent:
            raise NotFoundError("Parent comment not found")
        if parent.post_id != post_id:
            raise BadRequestError("Parent comment belongs to a different post")
        if not parent.is_approved:
            raise BadRequestError("Cannot reply to a comment that is not approved")

    now = datetime.utcnow()
    comment = Comment(
        content=content,
        post_id=post_id,
        author_id=author.id,
        parent_id=parent_id,
        is_approved=True,
        created_at=now,
        updated_at=now,
    )

    try:
        db.add(comment)
        db.flush()
        _bump_comment_count(db, post_id, 1)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to create comment on post {post_id}", exc_info=True)
        raise

    db.refresh(comment)
    logger.info(f"Comment {comment.id} created on post {post_id} by user {author.id}")
    return comment


def is_within_edit_window(comment: Comment, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    window = timedelta(hours=settings.COMMENT_EDIT_WINDOW_HOURS)
    return now - comment.created_at < window


def update_comment(
    db: Session,
    comment_id: int,
    requester: User,
    content: str,
    now: Optional[datetime] = None,
) -> Comment:
    comment = get_comment_or_404(db, comment_id)

    if comment.author_id != requester.id:
        raise ForbiddenError("You can only edit your own comments")

    now = now or datetime.utcnow()
    if not is_within_edit_window(comment, now):
        raise BadRequestError(
            f"Comments can only be edited within {settings.COMMENT_EDIT_WINDOW_HOURS} hours of posting"
        )

    comment.content = content
    comment.updated_at = now
    db.commit()
    db.refresh(comment)
    return comment


def has_replies(db: Session, comment_id: int) -> bool:
    return db.query(Comment.id).filter(Comment.parent_id == comment_id).first() is not None


def delete_comment(db: Session, comment_id: int, requester: User, as_moderator: bool = False) -> None:
    comment = get_comment_or_404(db, comment_id)

    if not as_moderator and comment.author_id != requester.id:
        raise ForbiddenError("You can only delete your own comments")

    if has_replies(db, comment.id):
        raise BadRequestError("Cannot delete comment with replies")

    post_id = comment.post_id
    try:
        db.delete(comment)
        db.flush()
        _bump_comment_count(db, post_id, -1)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to delete comment {comment_id}", exc_info=True)
        raise

    logger.info(f"Comment {comment_id} deleted from post {post_id} by user {requester.id}")


def get_comment_tree(
    db: Session,
    post_id: int,
    page: int,
    limit: int,
    max_depth: Optional[int] = None,
) -> Tuple[List[CommentNode], Dict[str, Any]]:
    """One page of approved root comments (newest first) with their replies."""
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")

    roots_query = db.query(Comment).filter(
        Comment.post_id == post_id,
        Comment.parent_id.is_(None),
        Comment.is_approved.is_(True),
    )
    result = paginate(
        roots_query,
        page,
        limit,
        order_by=[Comment.created_at.desc(), Comment.id.desc()],
        options=[joinedload(Comment.author)],
    )

    replies = (
        db.query(Comment)
        .options(joinedload(Comment.author))
        .filter(
            Comment.post_id == post_id,
            Comment.parent_id.isnot(None),
            Comment.is_approved.is_(True),
        )
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )

    forest = build_comment_tree(result["data"] + replies, post_id=post_id)
    forest = prune_depth(forest, max_depth or settings.COMMENT_MAX_DEPTH)
    return forest, result["pagination"]


def get_user_comments(db: Session, user: User, page: int, limit: int) -> Dict[str, Any]:
    query = db.query(Comment).filter(Comment.author_id == user.id)
    return paginate(
        query,
        page,
        limit,
        order_by=[Comment.created_at.desc(), Comment.id.desc()],
        options=[
            joinedload(Comment.author),
            joinedload(Comment.post),
            joinedload(Comment.parent).joinedload(Comment.author),
        ],
    )


# ============ 审核 ============

def list_for_moderation(
    db: Session,
    page: int,
    limit: int,
    is_approved: Optional[bool] = None,
    keyword: Optional[str] = None,
) -> Dict[str, Any]:
    query = db.query(Comment)
    if is_approved is not None:
        query = query.filter(Comment.is_approved.is_(is_approved))
    if keyword:
        query = query.filter(Comment.content.contains(keyword))
    return paginate(
        query,
        page,
        limit,
        order_by=[Comment.created_at.desc(), Comment.id.desc()],
        options=[joinedload(Comment.author), joinedload(Comment.post)],
    )


def set_approval(db: Session, comment_id: int, is_approved: bool, moderator: User) -> Comment:
    comment = get_comment_or_404(db, comment_id)
    comment.is_approved = is_approved
    db.commit()
    db.refresh(comment)
    logger.info(f"Comment {comment_id} approval set to {is_approved} by moderator {moderator.id}")
    return comment
