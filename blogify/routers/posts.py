"""
文章 API 路由
"""
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blogify.core.config import settings
from blogify.core.database import get_db
from blogify.core.deps import get_current_user, get_optional_current_user
from blogify.crud import post as post_crud
from blogify.models.post import PostStatus
from blogify.models.user import User
from blogify.schemas.common import PagedData, ResponseModel
from blogify.schemas.post import (
    CounterResponse, PostCreate, PostItem, PostUpdate, UserStats, build_post_item
)

router = APIRouter(prefix="/posts", tags=["文章"])

SortField = Literal["publishedAt", "createdAt", "updatedAt", "title", "viewCount", "likeCount", "commentCount"]


def build_post_page(db: Session, result: Dict[str, Any], user: Optional[User]) -> PagedData[PostItem]:
    """把分页结果转换为响应，附带当前用户的点赞/收藏状态"""
    ids = [p.id for p in result["data"]]
    liked = post_crud.marked_post_ids(db, "like", user, ids)
    saved = post_crud.marked_post_ids(db, "save", user, ids)
    return PagedData[PostItem](
        data=[build_post_item(p, liked=p.id in liked, saved=p.id in saved) for p in result["data"]],
        pagination=result["pagination"],
    )


@router.get("", response_model=ResponseModel[PagedData[PostItem]])
def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    status_filter: Optional[PostStatus] = Query(None, alias="status"),
    tag: Optional[str] = Query(None, description="标签名（模糊匹配）"),
    author: Optional[str] = Query(None, description="作者用户名"),
    search: Optional[str] = Query(None, description="搜索标题/内容/摘要"),
    sortBy: SortField = Query("publishedAt"),
    sortOrder: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user),
):
    """获取文章列表"""
    result = post_crud.list_posts(
        db,
        current_user,
        page,
        limit,
        status=status_filter,
        tag=tag,
        author=author,
        search=search,
        sort_by=sortBy,
        sort_order=sortOrder,
    )
    return ResponseModel(data=build_post_page(db, result, current_user))


@router.post("", response_model=ResponseModel[PostItem], status_code=status.HTTP_201_CREATED)
def create_post(
    post_in: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.create_post(
        db,
        current_user,
        title=post_in.title,
        content=post_in.content,
        excerpt=post_in.excerpt,
        cover_image=post_in.coverImage,
        status=post_in.status,
        tag_ids=post_in.tags,
    )
    return ResponseModel(data=build_post_item(post), message="Post created successfully")


# ============ 我的文章（需在 /{post_id} 之前注册） ============

@router.get("/my/posts", response_model=ResponseModel[PagedData[PostItem]])
def my_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    status_filter: Optional[PostStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = post_crud.list_user_posts(db, current_user, page, limit, status=status_filter)
    return ResponseModel(data=build_post_page(db, result, current_user))


@router.get("/my/stats", response_model=ResponseModel[UserStats])
def my_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ResponseModel(data=UserStats(**post_crud.get_user_stats(db, current_user)))


@router.get("/my/liked", response_model=ResponseModel[PagedData[PostItem]])
def my_liked_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = post_crud.list_marked_posts(db, "like", current_user, page, limit)
    return ResponseModel(data=build_post_page(db, result, current_user))


@router.get("/my/saved", response_model=ResponseModel[PagedData[PostItem]])
def my_saved_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = post_crud.list_marked_posts(db, "save", current_user, page, limit)
    return ResponseModel(data=build_post_page(db, result, current_user))


@router.get("/{post_id}", response_model=ResponseModel[PostItem])
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user),
):
    """获取文章详情（已发布文章浏览量 +1）"""
    post = post_crud.view_post(db, post_id, current_user)
    liked = post_crud.marked_post_ids(db, "like", current_user, [post.id])
    saved = post_crud.marked_post_ids(db, "save", current_user, [post.id])
    return ResponseModel(data=build_post_item(post, liked=bool(liked), saved=bool(saved)))


@router.put("/{post_id}", response_model=ResponseModel[PostItem])
def update_post(
    post_id: int,
    post_in: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.update_post(db, post_id, current_user, {
        "title": post_in.title,
        "content": post_in.content,
        "excerpt": post_in.excerpt,
        "cover_image": post_in.coverImage,
        "status": post_in.status,
        "tag_ids": post_in.tags,
    })
    return ResponseModel(data=build_post_item(post), message="Post updated successfully")


@router.delete("/{post_id}", response_model=ResponseModel)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post_crud.delete_post(db, post_id, current_user)
    return ResponseModel(message="Post deleted successfully")


# ============ 点赞 / 收藏 ============

@router.post("/{post_id}/like", response_model=ResponseModel[CounterResponse])
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.add_mark(db, "like", current_user, post_id)
    return ResponseModel(data=CounterResponse(likeCount=post.like_count), message="Post liked successfully")


@router.delete("/{post_id}/like", response_model=ResponseModel[CounterResponse])
def unlike_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.remove_mark(db, "like", current_user, post_id)
    return ResponseModel(data=CounterResponse(likeCount=post.like_count), message="Post unliked successfully")


@router.post("/{post_id}/save", response_model=ResponseModel[CounterResponse])
def save_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.add_mark(db, "save", current_user, post_id)
    return ResponseModel(data=CounterResponse(saveCount=post.save_count), message="Post saved successfully")


@router.delete("/{post_id}/save", response_model=ResponseModel[CounterResponse])
def unsave_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    post = post_crud.remove_mark(db, "save", current_user, post_id)
    return ResponseModel(data=CounterResponse(saveCount=post.save_count), message="Post unsaved successfully")
