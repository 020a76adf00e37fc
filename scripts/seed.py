#!/usr/bin/env python3
"""
填充演示数据：用户、标签、文章与评论

使用方法:
    python scripts/seed.py

已存在的用户/标签会被复用，可以重复执行。
"""

import sys
import os
import logging

from sqlalchemy import or_

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blogify.core.database import SessionLocal, engine, Base
from blogify.core.logger import setup_logging
from blogify.core.security import get_password_hash
from blogify.crud import comment as comment_crud
from blogify.crud import post as post_crud
from blogify.crud import tag as tag_crud
from blogify.models import Post, PostStatus, Tag, User, UserRole

logger = logging.getLogger("blogify.seed")

DEMO_PASSWORD = "Password123!"

USERS = [
    {"email": "admin@blogify.com", "username": "admin", "first_name": "Admin", "last_name": "User",
     "bio": "Blog administrator", "role": UserRole.ADMIN},
    {"email": "john@example.com", "username": "john_doe", "first_name": "John", "last_name": "Doe",
     "bio": "Passionate writer and tech enthusiast", "role": UserRole.USER},
    {"email": "jane@example.com", "username": "jane_smith", "first_name": "Jane", "last_name": "Smith",
     "bio": "Frontend developer and UI/UX designer", "role": UserRole.USER},
]

TAGS = [
    ("Technology", "#3b82f6", "All about technology and innovation"),
    ("Web Development", "#10b981", "Web development tutorials and tips"),
    ("React", "#06b6d4", "React.js framework and ecosystem"),
    ("Design", "#8b5cf6", "UI/UX design principles and trends"),
]

POSTS = [
    {
        "author": "john_doe",
        "title": "Getting Started with React and TypeScript",
        "content": "React and TypeScript make a powerful combination for building modern web "
                   "applications. This guide walks through project setup and day-to-day practices.",
        "excerpt": "Learn how to set up and use React with TypeScript for better development experience.",
        "status": PostStatus.PUBLISHED,
        "tags": ["Technology", "Web Development", "React"],
    },
    {
        "author": "jane_smith",
        "title": "Modern CSS Techniques for Better Web Design",
        "content": "CSS has evolved with Grid, Flexbox and custom properties. Here is how to use them "
                   "to build layouts that are both flexible and maintainable.",
        "excerpt": "Explore modern CSS techniques including Grid, Flexbox and custom properties.",
        "status": PostStatus.PUBLISHED,
        "tags": ["Web Development", "Design"],
    },
    {
        "author": "john_doe",
        "title": "Draft: State Management Patterns",
        "content": "Notes on stores, reducers and server caches. Work in progress.",
        "excerpt": None,
        "status": PostStatus.DRAFT,
        "tags": ["React"],
    },
]


def seed_users(db) -> dict:
    users = {}
    for data in USERS:
        user = db.query(User).filter(or_(User.email == data["email"], User.username == data["username"])).first()
        if not user:
            user = User(hashed_password=get_password_hash(DEMO_PASSWORD), is_active=True, **data)
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Created user {user.username}")
        users[user.username] = user
    return users


def seed_tags(db) -> dict:
    tags = {}
    for name, color, description in TAGS:
        tag = db.query(Tag).filter(Tag.name == name).first()
        if not tag:
            tag = tag_crud.create_tag(db, name, color=color, description=description)
        tags[name] = tag
    return tags


def seed_posts(db, users: dict, tags: dict) -> list:
    posts = []
    for data in POSTS:
        post = db.query(Post).filter(Post.title == data["title"]).first()
        if not post:
            post = post_crud.create_post(
                db,
                users[data["author"]],
                title=data["title"],
                content=data["content"],
                excerpt=data["excerpt"],
                status=data["status"],
                tag_ids=[tags[name].id for name in data["tags"]],
            )
        posts.append(post)
    return posts


def seed_comments(db, users: dict, posts: list) -> None:
    first = posts[0]
    if first.comment_count:
        return
    root = comment_crud.create_comment(db, users["jane_smith"], first.id, "Great introduction, thanks for sharing!")
    reply = comment_crud.create_comment(
        db, users["john_doe"], first.id, "Glad it helped! Part two is coming soon.", parent_id=root.id
    )
    comment_crud.create_comment(db, users["admin"], first.id, "Looking forward to it.", parent_id=reply.id)
    comment_crud.create_comment(db, users["admin"], posts[1].id, "Nice overview of modern CSS.")


def main():
    setup_logging()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        users = seed_users(db)
        tags = seed_tags(db)
        posts = seed_posts(db, users, tags)
        seed_comments(db, users, posts)
    finally:
        db.close()

    print("=" * 50)
    print("✅ 演示数据填充完成")
    print(f"   登录密码: {DEMO_PASSWORD}")
    for data in USERS:
        print(f"   {data['role'].value:<10} {data['username']} ({data['email']})")
    print("=" * 50)


if __name__ == "__main__":
    main()
