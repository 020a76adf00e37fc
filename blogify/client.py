"""
HTTP client for the Blogify API.

Keeps one cached comment forest per post and patches it in place after
edits and deletes, so a UI does not have to refetch the whole thread.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from blogify.utils.comment_tree import (
    CommentNode, count_nodes, find_in_tree, remove_from_tree, update_in_tree
)

logger = logging.getLogger(__name__)


class BlogApiError(Exception):
    """Raised when the API answers with ``success: false``"""
    def __init__(self, message: str, status_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data


def node_from_json(item: Dict[str, Any]) -> CommentNode:
    """Turn one rendered thread entry back into a ``CommentNode``."""
    payload = {k: v for k, v in item.items() if k not in ("replies", "replyCount", "depth")}
    payload["parent_id"] = item.get("parentId")
    payload["post_id"] = item.get("postId")
    payload["created_at"] = item.get("createdAt")
    return CommentNode(
        comment=payload,
        replies=[node_from_json(child) for child in item.get("replies") or []],
        reply_count=item.get("replyCount", 0),
    )


class BlogClient:
    API_PREFIX = "/api"
    REQUEST_TIMEOUT = 15

    def __init__(self, base_url: str = "http://localhost:5000", http: Optional[httpx.Client] = None):
        self._http = http or httpx.Client(base_url=base_url, timeout=self.REQUEST_TIMEOUT)
        self._token: Optional[str] = None
        self.threads: Dict[int, List[CommentNode]] = {}

    # ============ 基础请求 ============

    def _headers(self) -> Dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._http.request(
                method, f"{self.API_PREFIX}{path}", headers=self._headers(), **kwargs
            )
        except httpx.TimeoutException:
            raise BlogApiError("Request timed out")
        except httpx.TransportError as e:
            raise BlogApiError(f"Could not connect to the API: {e}")

        try:
            body = response.json()
        except ValueError:
            raise BlogApiError(f"Unexpected response ({response.status_code})", response.status_code)

        if response.is_error or not body.get("success", False):
            raise BlogApiError(body.get("message") or "Request failed", response.status_code, body.get("data"))
        return body.get("data")

    def close(self) -> None:
        self._http.close()

    # ============ 认证 ============

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"identifier": identifier, "password": password})
        self._token = data["token"]
        return data["user"]

    def logout(self) -> None:
        self._token = None

    # ============ 文章 ============

    def list_posts(self, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        params = {"page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request("GET", "/posts", params=params)

    def get_post(self, post_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/posts/{post_id}")

    def like_post(self, post_id: int) -> int:
        return self._request("POST", f"/posts/{post_id}/like")["likeCount"]

    def unlike_post(self, post_id: int) -> int:
        return self._request("DELETE", f"/posts/{post_id}/like")["likeCount"]

    # ============ 评论 ============

    def load_comments(self, post_id: int, page: int = 1, limit: int = 10) -> List[CommentNode]:
        data = self._request("GET", f"/comments/post/{post_id}", params={"page": page, "limit": limit})
        forest = [node_from_json(item) for item in data["data"]]
        self.threads[post_id] = forest
        return forest

    def create_comment(self, post_id: int, content: str, parent_id: Optional[int] = None) -> Dict[str, Any]:
        comment = self._request(
            "POST", "/comments", json={"postId": post_id, "content": content, "parentId": parent_id}
        )
        # 新评论位置取决于分页，直接重新加载
        self.load_comments(post_id)
        return comment

    def edit_comment(self, post_id: int, comment_id: int, content: str) -> Dict[str, Any]:
        comment = self._request("PUT", f"/comments/{comment_id}", json={"content": content})
        forest = self.threads.get(post_id)
        if forest is not None:
            existing = find_in_tree(forest, comment_id)
            if existing is not None:
                payload = dict(existing.comment)
                payload.update(comment)
                self.threads[post_id] = update_in_tree(forest, comment_id, payload)
        return comment

    def delete_comment(self, post_id: int, comment_id: int) -> None:
        self._request("DELETE", f"/comments/{comment_id}")
        forest = self.threads.get(post_id)
        if forest is not None:
            self.threads[post_id] = remove_from_tree(forest, comment_id)
            logger.debug(f"Thread {post_id} now holds {count_nodes(self.threads[post_id])} comments")
