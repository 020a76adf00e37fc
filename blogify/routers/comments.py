"""
评论 API 路由
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blogify.core.config import settings
from blogify.core.database import get_db
from blogify.core.deps import get_current_moderator, get_current_user
from blogify.crud import comment as comment_crud
from blogify.models.user import User
from blogify.schemas.comment import (
    CommentCreate, CommentItem, CommentModerate, CommentThread, CommentUpdate,
    MyCommentItem, build_comment_item, build_my_comment, build_thread
)
from blogify.schemas.common import PagedData, ResponseModel


router = APIRouter(prefix="/comments", tags=["评论"])


@router.get("/post/{post_id}", response_model=ResponseModel[PagedData[CommentThread]])
def get_post_comments(
    post_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """获取文章评论树（顶级评论分页，回复嵌套）"""
    forest, pagination = comment_crud.get_comment_tree(db, post_id, page, limit)
    return ResponseModel(
        data=PagedData[CommentThread](
            data=[build_thread(node) for node in forest],
            pagination=pagination,
        )
    )


@router.post("", response_model=ResponseModel[CommentItem], status_code=status.HTTP_201_CREATED)
def create_comment(
    comment_in: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """创建评论（需登录）"""
    comment = comment_crud.create_comment(
        db,
        current_user,
        post_id=comment_in.postId,
        content=comment_in.content,
        parent_id=comment_in.parentId,
    )
    return ResponseModel(data=build_comment_item(comment), message="Comment created successfully")


@router.get("/my", response_model=ResponseModel[PagedData[MyCommentItem]])
def my_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = comment_crud.get_user_comments(db, current_user, page, limit)
    return ResponseModel(
        data=PagedData[MyCommentItem](
            data=[build_my_comment(c) for c in result["data"]],
            pagination=result["pagination"],
        )
    )


# ============ 审核（版主/管理员） ============

@router.get("/admin/list", response_model=ResponseModel[PagedData[CommentItem]])
def admin_list_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_approved: Optional[bool] = Query(None, description="审核状态"),
    keyword: Optional[str] = Query(None, description="内容关键词"),
    db: Session = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    """获取所有评论（审核用）"""
    result = comment_crud.list_for_moderation(db, page, limit, is_approved=is_approved, keyword=keyword)
    return ResponseModel(
        data=PagedData[CommentItem](
            data=[build_comment_item(c) for c in result["data"]],
            pagination=result["pagination"],
        )
    )


@router.put("/admin/{comment_id}", response_model=ResponseModel[CommentItem])
def admin_moderate_comment(
    comment_id: int,
    body: CommentModerate,
    db: Session = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    comment = comment_crud.set_approval(db, comment_id, body.isApproved, moderator)
    return ResponseModel(data=build_comment_item(comment), message="Comment moderation updated")


@router.delete("/admin/{comment_id}", response_model=ResponseModel)
def admin_delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    comment_crud.delete_comment(db, comment_id, moderator, as_moderator=True)
    return ResponseModel(message="Comment deleted successfully")


@router.put("/{comment_id}", response_model=ResponseModel[CommentItem])
def update_comment(
    comment_id: int,
    comment_in: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """编辑评论（仅作者，发布后 24 小时内）"""
    comment = comment_crud.update_comment(db, comment_id, current_user, comment_in.content)
    return ResponseModel(data=build_comment_item(comment), message="Comment updated successfully")


@router.delete("/{comment_id}", response_model=ResponseModel)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """删除评论（仅作者，存在回复时不可删除）"""
    comment_crud.delete_comment(db, comment_id, current_user)
    return ResponseModel(message="Comment deleted successfully")
