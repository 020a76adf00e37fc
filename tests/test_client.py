import pytest

from blogify.client import BlogApiError, BlogClient, node_from_json
from blogify.utils.comment_tree import count_nodes, find_in_tree

PASSWORD = "Password123!"


@pytest.fixture
def api(client):
    return BlogClient(http=client)


@pytest.fixture
def thread(make_user, make_post, make_comment):
    author = make_user("author")
    reader = make_user("reader")
    post = make_post(author, title="Client post")
    root = make_comment(reader, post, content="root")
    reply = make_comment(author, post, content="reply", parent=root)
    leaf = make_comment(reader, post, content="leaf", parent=reply)
    return {"post": post, "root": root, "reply": reply, "leaf": leaf}


class TestNodeFromJson:
    def test_converts_nested_threads(self):
        item = {
            "id": 1, "postId": 5, "parentId": None, "content": "a", "createdAt": "2024-01-01T00:00:00",
            "replyCount": 1, "depth": 0,
            "replies": [{"id": 2, "postId": 5, "parentId": 1, "content": "b", "replyCount": 0, "replies": []}],
        }
        node = node_from_json(item)
        assert node.id == 1
        assert node.reply_count == 1
        assert node.comment["post_id"] == 5
        assert "replies" not in node.comment
        assert node.replies[0].comment["parent_id"] == 1


class TestBlogClient:
    def test_login_and_like(self, api, thread):
        user = api.login("reader", PASSWORD)
        assert user["username"] == "reader"
        assert api.like_post(thread["post"].id) == 1
        assert api.unlike_post(thread["post"].id) == 0

    def test_bad_login_raises(self, api, make_user):
        make_user("reader")
        with pytest.raises(BlogApiError) as exc_info:
            api.login("reader", "Wrong123!")
        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "Invalid credentials"

    def test_list_and_get_posts(self, api, thread):
        page = api.list_posts(limit=5)
        assert [p["title"] for p in page["data"]] == ["Client post"]
        assert api.get_post(thread["post"].id)["viewCount"] == 1

    def test_load_comments_caches_forest(self, api, thread):
        forest = api.load_comments(thread["post"].id)
        assert api.threads[thread["post"].id] is forest
        assert count_nodes(forest) == 3

    def test_edit_patches_cached_tree(self, api, thread):
        post_id = thread["post"].id
        api.login("reader", PASSWORD)
        before = api.load_comments(post_id)

        api.edit_comment(post_id, thread["leaf"].id, "leaf edited")

        after = api.threads[post_id]
        assert after is not before
        node = find_in_tree(after, thread["leaf"].id)
        assert node.comment["content"] == "leaf edited"
        assert node.comment["isEdited"] is True
        assert find_in_tree(before, thread["leaf"].id).comment["content"] == "leaf"

    def test_delete_patches_cached_tree(self, api, thread):
        post_id = thread["post"].id
        api.login("reader", PASSWORD)
        api.load_comments(post_id)

        api.delete_comment(post_id, thread["leaf"].id)

        forest = api.threads[post_id]
        assert count_nodes(forest) == 2
        assert find_in_tree(forest, thread["reply"].id).reply_count == 0

    def test_delete_with_replies_leaves_cache_alone(self, api, thread):
        post_id = thread["post"].id
        api.login("reader", PASSWORD)
        forest = api.load_comments(post_id)

        with pytest.raises(BlogApiError) as exc_info:
            api.delete_comment(post_id, thread["root"].id)
        assert exc_info.value.status_code == 400
        assert api.threads[post_id] is forest

    def test_create_comment_reloads_thread(self, api, thread):
        post_id = thread["post"].id
        api.login("reader", PASSWORD)
        api.load_comments(post_id)

        created = api.create_comment(post_id, "another root")
        assert created["content"] == "another root"
        forest = api.threads[post_id]
        assert [n.comment["content"] for n in forest] == ["another root", "root"]

    def test_logout_drops_token(self, api, thread):
        api.login("reader", PASSWORD)
        api.logout()
        with pytest.raises(BlogApiError) as exc_info:
            api.like_post(thread["post"].id)
        assert exc_info.value.status_code == 401
