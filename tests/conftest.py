import os

import pytest

# 必须在导入 blogify 之前设置，settings 在导入时读取环境变量
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from blogify.core.database import Base, get_db  # noqa: E402
from blogify.core.security import create_access_token, get_password_hash  # noqa: E402
from blogify.crud import comment as comment_crud  # noqa: E402
from blogify.crud import post as post_crud  # noqa: E402
from blogify.main import app  # noqa: E402
from blogify.models import PostStatus, Tag, User, UserRole  # noqa: E402

PASSWORD = "Password123!"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", role=UserRole.USER, is_active=True, **fields):
        user = User(
            email=fields.pop("email", f"{username}@example.com"),
            username=username,
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            is_active=is_active,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_tag(db):
    def _make_tag(name="Python", slug=None):
        tag = Tag(name=name, slug=slug or name.lower().replace(" ", "-"))
        db.add(tag)
        db.commit()
        db.refresh(tag)
        return tag
    return _make_tag


@pytest.fixture
def make_post(db):
    def _make_post(author, title="Hello World", content="Some content here", status=PostStatus.PUBLISHED, tags=()):
        return post_crud.create_post(
            db,
            author,
            title=title,
            content=content,
            status=status,
            tag_ids=[t.id for t in tags],
        )
    return _make_post


@pytest.fixture
def make_comment(db):
    def _make_comment(author, post, content="Nice post", parent=None, created_at=None):
        comment = comment_crud.create_comment(
            db, author, post.id, content, parent_id=parent.id if parent else None
        )
        if created_at is not None:
            comment.created_at = created_at
            comment.updated_at = created_at
            db.commit()
            db.refresh(comment)
        return comment
    return _make_comment


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers

