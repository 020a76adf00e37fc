from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from blogify.models.post import Post, PostStatus, Tag
from blogify.schemas.user import AuthorInfo, build_author


class TagCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field("#3B82F6", pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")
    description: Optional[str] = Field(None, max_length=255)


class TagResponse(BaseModel):
    id: int
    name: str
    slug: str
    color: Optional[str] = None
    description: Optional[str] = None
    postCount: Optional[int] = None
    createdAt: Optional[datetime] = None


class PostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(None, max_length=300)
    coverImage: Optional[str] = Field(None, max_length=500)
    tags: List[int] = []
    status: PostStatus = PostStatus.DRAFT


class PostUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=300)
    coverImage: Optional[str] = Field(None, max_length=500)
    tags: List[int] = []
    status: Optional[PostStatus] = None


class PostItem(BaseModel):
    id: int
    title: str
    content: str
    excerpt: Optional[str] = ""
    coverImage: Optional[str] = None
    status: PostStatus
    publishedAt: Optional[datetime] = None
    viewCount: int
    likeCount: int
    commentCount: int
    saveCount: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    author: AuthorInfo
    tags: List[TagResponse] = []
    likedByCurrentUser: bool = False
    savedByCurrentUser: bool = False


class CounterResponse(BaseModel):
    likeCount: Optional[int] = None
    saveCount: Optional[int] = None


class UserStats(BaseModel):
    totalPosts: int
    publishedPosts: int
    draftPosts: int
    totalViews: int
    totalComments: int


def build_tag(tag: Tag, post_count: Optional[int] = None) -> TagResponse:
    return TagResponse(
        id=tag.id,
        name=tag.name,
        slug=tag.slug,
        color=tag.color,
        description=tag.description,
        postCount=post_count,
        createdAt=tag.created_at,
    )


def build_post_item(post: Post, liked: bool = False, saved: bool = False) -> PostItem:
    return PostItem(
        id=post.id,
        title=post.title,
        content=post.content,
        excerpt=post.excerpt or "",
        coverImage=post.cover_image,
        status=post.status,
        publishedAt=post.published_at,
        viewCount=post.view_count,
        likeCount=post.like_count,
        commentCount=post.comment_count,
        saveCount=post.save_count,
        createdAt=post.created_at,
        updatedAt=post.updated_at,
        author=build_author(post.author),
        tags=[build_tag(t) for t in post.tags],
        likedByCurrentUser=liked,
        savedByCurrentUser=saved,
    )
