"""评论数据模型"""
from datetime import datetime
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from blogify.core.database import Base


class Comment(Base):
    """评论模型 - 通过 parent_id 构成评论树

    Replies are never cascaded: deleting a comment that still has replies is
    refused by the lifecycle rules, and the ORM is told not to touch children.
    """
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    content = Column(Text, nullable=False, comment="评论内容")

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True, comment="文章ID")
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment="评论者ID")
    parent_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True, comment="父评论ID")

    is_approved = Column(Boolean, default=True, nullable=False, comment="是否审核通过")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, comment="更新时间")

    post = relationship("Post", back_populates="comments")
    author = relationship("User")
    parent = relationship("Comment", remote_side=[id], back_populates="children")
    children = relationship("Comment", back_populates="parent", passive_deletes="all")

    @property
    def is_edited(self) -> bool:
        return bool(self.updated_at and self.created_at and self.updated_at > self.created_at)
