"""
Post listing, visibility and the like/save counters.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from blogify.core.cache import TAG_CACHE_VERSION_KEY, redis_client
from blogify.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from blogify.models import Comment, Post, PostLike, PostStatus, PostTag, SavedPost, Tag, User
from blogify.utils.pagination import paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "publishedAt": Post.published_at,
    "createdAt": Post.created_at,
    "updatedAt": Post.updated_at,
    "title": Post.title,
    "viewCount": Post.view_count,
    "likeCount": Post.like_count,
    "commentCount": Post.comment_count,
}

EXCERPT_LENGTH = 160


def post_load_options() -> list:
    return [
        joinedload(Post.author),
        selectinload(Post.post_tags).joinedload(PostTag.tag),
    ]


def like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def visibility_clause(requester: Optional[User]):
    """Guests see published posts; signed-in users also see their own."""
    if requester is None:
        return Post.status == PostStatus.PUBLISHED
    return or_(Post.status == PostStatus.PUBLISHED, Post.author_id == requester.id)


def build_post_filter(
    requester: Optional[User],
    status: Optional[PostStatus] = None,
    tag: Optional[str] = None,
    author: Optional[str] = None,
    search: Optional[str] = None,
):
    clauses = [visibility_clause(requester)]

    if status:
        clauses.append(Post.status == status)

    if author:
        clauses.append(Post.author.has(func.lower(User.username) == author.strip().lower()))

    if tag:
        clauses.append(Post.post_tags.any(PostTag.tag.has(Tag.name.ilike(like_pattern(tag), escape="\\"))))

    if search:
        pattern = like_pattern(search)
        clauses.append(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                Post.content.ilike(pattern, escape="\\"),
                Post.excerpt.ilike(pattern, escape="\\"),
            )
        )

    return and_(*clauses)


def build_order_by(sort_by: str = "publishedAt", sort_order: str = "desc") -> list:
    column = SORT_FIELDS[sort_by]
    # 草稿没有 published_at，空值统一排在最后
    ordered = column.asc().nulls_last() if sort_order == "asc" else column.desc().nulls_last()
    tie_breaker = Post.id.asc() if sort_order == "asc" else Post.id.desc()
    return [ordered, tie_breaker]


def list_posts(
    db: Session,
    requester: Optional[User],
    page: int,
    limit: int,
    status: Optional[PostStatus] = None,
    tag: Optional[str] = None,
    author: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "publishedAt",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    predicate = build_post_filter(requester, status=status, tag=tag, author=author, search=search)
    return paginate(
        db.query(Post).filter(predicate),
        page,
        limit,
        order_by=build_order_by(sort_by, sort_order),
        options=post_load_options(),
    )


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).options(*post_load_options()).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


def ensure_can_view(post: Post, requester: Optional[User]) -> None:
    if post.status == PostStatus.PUBLISHED:
        return
    if requester is None or requester.id != post.author_id:
        raise ForbiddenError("You do not have permission to view this post")


def view_post(db: Session, post_id: int, requester: Optional[User]) -> Post:
    """Fetch a single post; every fetch of a published post counts one view."""
    post = get_post_or_404(db, post_id)
    ensure_can_view(post, requester)

    if post.status == PostStatus.PUBLISHED:
        db.query(Post).filter(Post.id == post.id).update(
            {Post.view_count: Post.view_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(post)
    return post


def _ensure_owner(post: Post, user: User, action: str) -> None:
    if post.author_id != user.id:
        raise ForbiddenError(f"You can only {action} your own posts")


def set_post_tags(db: Session, post: Post, tag_ids: Iterable[int]) -> None:
    """Replace the post's tags; unknown ids are skipped."""
    wanted = list(dict.fromkeys(tag_ids))
    tags = db.query(Tag).filter(Tag.id.in_(wanted)).all() if wanted else []
    found = {t.id for t in tags}
    for missing in set(wanted) - found:
        logger.warning(f"Tag with ID {missing} not found, skipping...")
    current = {pt.tag_id: pt for pt in post.post_tags}
    post.post_tags = [current.get(t.id) or PostTag(tag=t) for t in tags]


def create_post(
    db: Session,
    author: User,
    title: str,
    content: str,
    excerpt: Optional[str] = None,
    cover_image: Optional[str] = None,
    status: PostStatus = PostStatus.DRAFT,
    tag_ids: Iterable[int] = (),
) -> Post:
    post = Post(
        title=title,
        content=content,
        excerpt=excerpt or content[:EXCERPT_LENGTH] + "...",
        cover_image=cover_image,
        status=status,
        published_at=datetime.utcnow() if status == PostStatus.PUBLISHED else None,
        author_id=author.id,
    )
    set_post_tags(db, post, tag_ids)
    db.add(post)
    db.commit()
    if post.post_tags:
        redis_client.incr(TAG_CACHE_VERSION_KEY)
    logger.info(f"Post {post.id} created by user {author.id} ({status.value})")
    return get_post_or_404(db, post.id)


def update_post(db: Session, post_id: int, user: User, changes: Dict[str, Any]) -> Post:
    post = get_post_or_404(db, post_id)
    _ensure_owner(post, user, "edit")

    for field in ("title", "content", "excerpt", "cover_image"):
        if changes.get(field):
            setattr(post, field, changes[field])

    status = changes.get("status")
    if status:
        if status == PostStatus.PUBLISHED and post.status != PostStatus.PUBLISHED:
            post.published_at = datetime.utcnow()
        post.status = status

    if changes.get("tag_ids"):
        set_post_tags(db, post, changes["tag_ids"])

    db.commit()
    if status or changes.get("tag_ids"):
        redis_client.incr(TAG_CACHE_VERSION_KEY)
    return get_post_or_404(db, post_id)


def delete_post(db: Session, post_id: int, user: User) -> None:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    _ensure_owner(post, user, "delete")

    comment_total = db.query(func.count(Comment.id)).filter(Comment.post_id == post_id).scalar()
    if comment_total > 0:
        raise BadRequestError("Cannot delete post with comments")

    db.delete(post)
    db.commit()
    redis_client.incr(TAG_CACHE_VERSION_KEY)
    logger.info(f"Post {post_id} deleted by user {user.id}")


def list_user_posts(
    db: Session,
    user: User,
    page: int,
    limit: int,
    status: Optional[PostStatus] = None,
) -> Dict[str, Any]:
    query = db.query(Post).filter(Post.author_id == user.id)
    if status:
        query = query.filter(Post.status == status)
    return paginate(
        query,
        page,
        limit,
        order_by=[Post.created_at.desc(), Post.id.desc()],
        options=post_load_options(),
    )


def get_user_stats(db: Session, user: User) -> Dict[str, int]:
    by_status = dict(
        db.query(Post.status, func.count(Post.id))
        .filter(Post.author_id == user.id)
        .group_by(Post.status)
        .all()
    )
    total_views = (
        db.query(func.coalesce(func.sum(Post.view_count), 0))
        .filter(Post.author_id == user.id)
        .scalar()
    )
    total_comments = (
        db.query(func.count(Comment.id))
        .join(Post, Post.id == Comment.post_id)
        .filter(Post.author_id == user.id)
        .scalar()
    )
    published = by_status.get(PostStatus.PUBLISHED, 0)
    drafts = by_status.get(PostStatus.DRAFT, 0)
    return {
        "totalPosts": published + drafts,
        "publishedPosts": published,
        "draftPosts": drafts,
        "totalViews": int(total_views or 0),
        "totalComments": total_comments,
    }


# ============ 点赞 / 收藏 ============

MARKS = {
    "like": (PostLike, Post.like_count, "Post already liked", "Post not liked yet"),
    "save": (SavedPost, Post.save_count, "Post already saved", "Post not saved yet"),
}


def add_mark(db: Session, kind: str, user: User, post_id: int) -> Post:
    model, counter, duplicate_msg, _ = MARKS[kind]
    post = get_post_or_404(db, post_id)
    ensure_can_view(post, user)

    existing = db.query(model).filter(model.user_id == user.id, model.post_id == post_id).first()
    if existing:
        raise ConflictError(duplicate_msg)

    try:
        db.add(model(user_id=user.id, post_id=post_id))
        db.flush()
        db.query(Post).filter(Post.id == post_id).update(
            {counter: counter + 1}, synchronize_session=False
        )
        db.commit()
    except IntegrityError:
        # 并发重复请求由唯一约束拦截
        db.rollback()
        raise ConflictError(duplicate_msg)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to {kind} post {post_id}", exc_info=True)
        raise

    db.refresh(post)
    return post


def remove_mark(db: Session, kind: str, user: User, post_id: int) -> Post:
    model, counter, _, missing_msg = MARKS[kind]
    post = get_post_or_404(db, post_id)

    existing = db.query(model).filter(model.user_id == user.id, model.post_id == post_id).first()
    if not existing:
        raise BadRequestError(missing_msg)

    try:
        db.delete(existing)
        db.flush()
        db.query(Post).filter(Post.id == post_id).update(
            {counter: counter - 1}, synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to remove {kind} on post {post_id}", exc_info=True)
        raise

    db.refresh(post)
    return post


def marked_post_ids(db: Session, kind: str, user: Optional[User], post_ids: List[int]) -> Set[int]:
    if user is None or not post_ids:
        return set()
    model = MARKS[kind][0]
    rows = db.query(model.post_id).filter(model.user_id == user.id, model.post_id.in_(post_ids)).all()
    return {row[0] for row in rows}


def list_marked_posts(db: Session, kind: str, user: User, page: int, limit: int) -> Dict[str, Any]:
    model = MARKS[kind][0]
    query = (
        db.query(Post)
        .join(model, model.post_id == Post.id)
        .filter(model.user_id == user.id, visibility_clause(user))
    )
    return paginate(
        query,
        page,
        limit,
        order_by=[model.created_at.desc(), model.id.desc()],
        options=post_load_options(),
    )
