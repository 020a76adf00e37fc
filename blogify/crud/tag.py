import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blogify.core.cache import TAG_CACHE_VERSION_KEY, redis_client
from blogify.core.config import settings
from blogify.core.exceptions import AppError, ConflictError, NotFoundError
from blogify.models import Post, PostStatus, PostTag, Tag
from blogify.crud.post import like_pattern, post_load_options
from blogify.utils.pagination import paginate
from blogify.utils.slug import slugify, unique_slug

logger = logging.getLogger(__name__)


def _tag_list_cache_key(limit: int, search: Optional[str]) -> str:
    version = redis_client.get(TAG_CACHE_VERSION_KEY) or 0
    return f"tags:list:v{version}:{limit}:{(search or '').lower()}"


def list_tags(db: Session, limit: int = 20, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """Tags by name, each with the number of published posts carrying it."""
    cache_key = _tag_list_cache_key(limit, search)
    cached = redis_client.get(cache_key)
    if cached is not None:
        return cached

    query = (
        db.query(Tag, func.count(Post.id))
        .outerjoin(PostTag, PostTag.tag_id == Tag.id)
        .outerjoin(Post, and_(Post.id == PostTag.post_id, Post.status == PostStatus.PUBLISHED))
        .group_by(Tag.id)
        .order_by(Tag.name.asc())
    )
    if search:
        query = query.filter(Tag.name.ilike(like_pattern(search), escape="\\"))

    rows = [
        {
            "id": tag.id,
            "name": tag.name,
            "slug": tag.slug,
            "description": tag.description,
            "color": tag.color,
            "postCount": count,
            "createdAt": tag.created_at,
        }
        for tag, count in query.limit(limit).all()
    ]
    redis_client.set(cache_key, rows, expire=settings.TAG_CACHE_TTL)
    return rows


def get_tag_or_404(db: Session, tag_id: int) -> Tag:
    tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise NotFoundError("Tag not found")
    return tag


def get_tag_posts(db: Session, tag: Tag, page: int, limit: int) -> Dict[str, Any]:
    query = db.query(Post).filter(
        Post.status == PostStatus.PUBLISHED,
        Post.post_tags.any(PostTag.tag_id == tag.id),
    )
    return paginate(
        query,
        page,
        limit,
        order_by=[Post.published_at.desc(), Post.id.desc()],
        options=post_load_options(),
    )


def create_tag(db: Session, name: str, color: str = "#3B82F6", description: Optional[str] = None) -> Tag:
    name = name.strip()
    if db.query(Tag).filter(Tag.name == name).first():
        raise ConflictError(f'Tag "{name}" already exists')

    def slug_taken(candidate: str) -> bool:
        return db.query(Tag.id).filter(Tag.slug == candidate).first() is not None

    try:
        slug = unique_slug(slugify(name), slug_taken)
    except RuntimeError as e:
        logger.error(f"Slug generation failed for tag {name!r}: {e}")
        raise AppError("Failed to create tag")

    tag = Tag(name=name, slug=slug, color=color, description=description)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f'Tag "{name}" already exists')

    db.refresh(tag)
    redis_client.incr(TAG_CACHE_VERSION_KEY)
    logger.info(f"Tag {tag.id} created with slug {tag.slug}")
    return tag
