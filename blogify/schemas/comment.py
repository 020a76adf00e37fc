"""
评论相关 Schema
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from blogify.models.comment import Comment
from blogify.schemas.user import AuthorInfo, build_author
from blogify.utils.comment_tree import CommentNode


class CommentCreate(BaseModel):
    """创建评论请求"""
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=2000, description="评论内容")
    postId: int = Field(..., description="文章ID")
    parentId: Optional[int] = Field(None, description="父评论ID（回复评论时使用）")


class CommentUpdate(BaseModel):
    """更新评论请求"""
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=2000)


class CommentModerate(BaseModel):
    isApproved: bool


class CommentItem(BaseModel):
    id: int
    content: str
    postId: int
    parentId: Optional[int] = None
    author: AuthorInfo
    isApproved: bool = True
    isEdited: bool = False
    createdAt: datetime
    updatedAt: datetime


class CommentThread(CommentItem):
    """评论树节点（包含回复列表）"""
    depth: int = 0
    replyCount: int = 0
    replies: List["CommentThread"] = []


class CommentPostRef(BaseModel):
    id: int
    title: str


class CommentParentRef(BaseModel):
    id: int
    content: str
    authorUsername: str


class MyCommentItem(CommentItem):
    post: CommentPostRef
    parent: Optional[CommentParentRef] = None


def build_comment_item(comment: Comment) -> CommentItem:
    return CommentItem(
        id=comment.id,
        content=comment.content,
        postId=comment.post_id,
        parentId=comment.parent_id,
        author=build_author(comment.author),
        isApproved=comment.is_approved,
        isEdited=comment.is_edited,
        createdAt=comment.created_at,
        updatedAt=comment.updated_at,
    )


def build_thread(node: CommentNode, depth: int = 0) -> CommentThread:
    item = build_comment_item(node.comment)
    return CommentThread(
        **item.model_dump(),
        depth=depth,
        replyCount=node.reply_count,
        replies=[build_thread(child, depth + 1) for child in node.replies],
    )


def build_my_comment(comment: Comment) -> MyCommentItem:
    item = build_comment_item(comment)
    parent = None
    if comment.parent is not None:
        parent = CommentParentRef(
            id=comment.parent.id,
            content=comment.parent.content,
            authorUsername=comment.parent.author.username,
        )
    return MyCommentItem(
        **item.model_dump(),
        post=CommentPostRef(id=comment.post.id, title=comment.post.title),
        parent=parent,
    )
