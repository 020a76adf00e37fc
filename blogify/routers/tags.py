"""
标签 API 路由
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from blogify.core.config import settings
from blogify.core.database import get_db
from blogify.core.deps import get_current_user
from blogify.crud import tag as tag_crud
from blogify.models.user import User
from blogify.schemas.common import PagedData, ResponseModel
from blogify.schemas.post import PostItem, TagCreate, TagResponse, build_post_item, build_tag


router = APIRouter(prefix="/tags", tags=["标签"])


class TagDetail(BaseModel):
    tag: TagResponse
    posts: PagedData[PostItem]


@router.get("", response_model=ResponseModel[List[TagResponse]])
def list_tags(
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="标签名搜索"),
    db: Session = Depends(get_db),
):
    """获取标签列表（附已发布文章数）"""
    return ResponseModel(data=[TagResponse(**row) for row in tag_crud.list_tags(db, limit, search)])


@router.get("/{tag_id}", response_model=ResponseModel[TagDetail])
def get_tag(
    tag_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """获取标签及其下已发布文章"""
    tag = tag_crud.get_tag_or_404(db, tag_id)
    result = tag_crud.get_tag_posts(db, tag, page, limit)
    return ResponseModel(
        data=TagDetail(
            tag=build_tag(tag, post_count=result["pagination"]["totalItems"]),
            posts=PagedData[PostItem](
                data=[build_post_item(p) for p in result["data"]],
                pagination=result["pagination"],
            ),
        )
    )


@router.post("", response_model=ResponseModel[TagResponse], status_code=status.HTTP_201_CREATED)
def create_tag(
    tag_in: TagCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tag = tag_crud.create_tag(db, tag_in.name, color=tag_in.color, description=tag_in.description)
    return ResponseModel(data=build_tag(tag, post_count=0), message="Tag created successfully")
