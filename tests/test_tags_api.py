import pytest

from blogify.core.cache import redis_client
from blogify.crud import post as post_crud
from blogify.crud import tag as tag_crud
from blogify.models import PostStatus, Tag


class TestCreateTag:
    def test_create_tag(self, client, make_user, auth_headers):
        user = make_user()
        response = client.post(
            "/api/tags",
            json={"name": "  Machine Learning ", "color": "#10b981"},
            headers=auth_headers(user),
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["name"] == "Machine Learning"
        assert data["slug"] == "machine-learning"
        assert data["color"] == "#10b981"
        assert data["postCount"] == 0

    def test_default_color(self, client, make_user, auth_headers):
        response = client.post("/api/tags", json={"name": "Go"}, headers=auth_headers(make_user()))
        assert response.json()["data"]["color"] == "#3B82F6"

    def test_slug_collision_gets_suffix(self, client, db, make_user, make_tag, auth_headers):
        make_tag("design", slug="design")
        response = client.post("/api/tags", json={"name": "Design"}, headers=auth_headers(make_user()))
        assert response.status_code == 201
        assert response.json()["data"]["slug"] == "design-1"

    def test_symbol_only_name_falls_back(self, client, make_user, auth_headers):
        response = client.post("/api/tags", json={"name": "前端"}, headers=auth_headers(make_user()))
        assert response.json()["data"]["slug"] == "tag"

    def test_duplicate_name(self, client, db, make_user, make_tag, auth_headers):
        make_tag("Python")
        response = client.post("/api/tags", json={"name": "Python"}, headers=auth_headers(make_user()))
        assert response.status_code == 409
        assert db.query(Tag).count() == 1

    @pytest.mark.parametrize("payload", [
        {"name": ""},
        {"name": "x" * 51},
        {"name": "Ok", "color": "blue"},
    ])
    def test_invalid_payload(self, client, make_user, auth_headers, payload):
        response = client.post("/api/tags", json=payload, headers=auth_headers(make_user()))
        assert response.status_code == 422

    def test_requires_login(self, client):
        assert client.post("/api/tags", json={"name": "Anon"}).status_code == 401


class TestListTags:
    @pytest.fixture
    def tagged(self, make_user, make_tag, make_post):
        author = make_user()
        python, rust, empty = make_tag("Python"), make_tag("Rust"), make_tag("Empty")
        make_post(author, title="P1", tags=[python])
        make_post(author, title="P2", tags=[python, rust])
        make_post(author, title="Draft", tags=[rust], status=PostStatus.DRAFT)
        return {"python": python, "rust": rust, "empty": empty}

    def test_counts_only_published_posts(self, client, tagged):
        response = client.get("/api/tags")
        assert response.status_code == 200
        counts = {t["name"]: t["postCount"] for t in response.json()["data"]}
        assert counts == {"Empty": 0, "Python": 2, "Rust": 1}

    def test_ordered_by_name_with_limit(self, client, tagged):
        response = client.get("/api/tags", params={"limit": 2})
        assert [t["name"] for t in response.json()["data"]] == ["Empty", "Python"]

    def test_search(self, client, tagged):
        response = client.get("/api/tags", params={"search": "rus"})
        assert [t["name"] for t in response.json()["data"]] == ["Rust"]

    def test_search_treats_wildcards_literally(self, client, make_tag):
        make_tag("100%", slug="100-percent")
        make_tag("1000")
        make_tag("snake_case")
        make_tag("snakescase")
        assert [t["name"] for t in client.get("/api/tags", params={"search": "0%"}).json()["data"]] == ["100%"]
        assert [t["name"] for t in client.get("/api/tags", params={"search": "e_c"}).json()["data"]] == ["snake_case"]

    def test_tag_detail_with_posts(self, client, tagged):
        response = client.get(f"/api/tags/{tagged['rust'].id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tag"]["name"] == "Rust"
        assert data["tag"]["postCount"] == 1
        assert [p["title"] for p in data["posts"]["data"]] == ["P2"]

    def test_missing_tag(self, client):
        assert client.get("/api/tags/999").status_code == 404


class TestTagCache:
    @pytest.fixture
    def fake_cache(self, monkeypatch):
        store = {}

        def fake_incr(key):
            store[key] = int(store.get(key) or 0) + 1
            return store[key]

        monkeypatch.setattr(redis_client, "get", lambda key: store.get(key))
        monkeypatch.setattr(redis_client, "set", lambda key, value, expire=3600: store.__setitem__(key, value) or True)
        monkeypatch.setattr(redis_client, "incr", fake_incr)
        return store

    def test_list_is_served_from_cache(self, db, make_tag, fake_cache):
        make_tag("Python")
        first = tag_crud.list_tags(db)
        make_tag("Rust")
        assert tag_crud.list_tags(db) == first
        assert len(fake_cache) == 1

    def test_create_invalidates_cached_list(self, db, make_tag, fake_cache):
        make_tag("Python")
        tag_crud.list_tags(db)
        tag_crud.create_tag(db, "Rust")
        assert [t["name"] for t in tag_crud.list_tags(db)] == ["Python", "Rust"]

    def test_publishing_a_post_refreshes_counts(self, db, make_user, make_tag, make_post, fake_cache):
        author = make_user()
        python = make_tag("Python")
        draft = make_post(author, title="Draft", status=PostStatus.DRAFT, tags=[python])
        assert tag_crud.list_tags(db)[0]["postCount"] == 0

        post_crud.update_post(db, draft.id, author, {"status": PostStatus.PUBLISHED})
        assert tag_crud.list_tags(db)[0]["postCount"] == 1

        post_crud.update_post(db, draft.id, author, {"status": PostStatus.DRAFT})
        assert tag_crud.list_tags(db)[0]["postCount"] == 0

    def test_new_and_deleted_posts_refresh_counts(self, db, make_user, make_tag, make_post, fake_cache):
        author = make_user()
        python = make_tag("Python")
        assert tag_crud.list_tags(db)[0]["postCount"] == 0

        post = make_post(author, tags=[python])
        assert tag_crud.list_tags(db)[0]["postCount"] == 1

        post_crud.delete_post(db, post.id, author)
        assert tag_crud.list_tags(db)[0]["postCount"] == 0

    def test_retagging_refreshes_counts(self, db, make_user, make_tag, make_post, fake_cache):
        author = make_user()
        python, rust = make_tag("Python"), make_tag("Rust")
        post = make_post(author, tags=[python])
        assert {t["name"]: t["postCount"] for t in tag_crud.list_tags(db)} == {"Python": 1, "Rust": 0}

        post_crud.update_post(db, post.id, author, {"tag_ids": [rust.id]})
        assert {t["name"]: t["postCount"] for t in tag_crud.list_tags(db)} == {"Python": 0, "Rust": 1}
