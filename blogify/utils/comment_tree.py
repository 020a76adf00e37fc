"""
Comment forest helpers.

The forest is rebuilt from a flat list through an id index; nodes never hold
a reference back to their parent, so a malformed parent chain cannot create
a reference cycle. ``update_in_tree`` and ``remove_from_tree`` return new
forests and reuse every node whose subtree did not change.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


@dataclass
class CommentNode:
    comment: Any
    replies: List["CommentNode"] = field(default_factory=list)
    reply_count: int = 0

    @property
    def id(self):
        return _field(self.comment, "id")


def _reply_sort_key(node: CommentNode):
    created_at = _field(node.comment, "created_at") or datetime.min
    return created_at, node.id


def build_comment_tree(comments: Iterable[Any], post_id: Optional[int] = None) -> List[CommentNode]:
    """
    Reassemble a flat list of comments into a forest.

    Roots keep the order they have in ``comments``; replies are sorted oldest
    first. A reply whose parent is missing from the list, or belongs to
    another post, is dropped as an orphan.
    """
    index: Dict[Any, CommentNode] = {}
    ordered: List[CommentNode] = []

    for comment in comments:
        if post_id is not None and _field(comment, "post_id") != post_id:
            continue
        node = CommentNode(comment=comment)
        index[node.id] = node
        ordered.append(node)

    roots = []
    for node in ordered:
        parent_id = _field(node.comment, "parent_id")
        if parent_id is None:
            roots.append(node)
            continue
        parent = index.get(parent_id)
        if parent is None:
            continue
        if _field(parent.comment, "post_id") != _field(node.comment, "post_id"):
            continue
        parent.replies.append(node)

    for node in ordered:
        node.replies.sort(key=_reply_sort_key)
        node.reply_count = len(node.replies)

    return roots


def update_in_tree(nodes: List[CommentNode], comment_id: Any, replacement: Any) -> List[CommentNode]:
    """Swap the payload of the node ``comment_id``; its replies are kept."""
    changed = False
    result = []
    for node in nodes:
        if node.id == comment_id:
            new_node = replace(node, comment=replacement)
        else:
            replies = update_in_tree(node.replies, comment_id, replacement)
            new_node = node if replies is node.replies else replace(node, replies=replies)
        changed = changed or new_node is not node
        result.append(new_node)
    return result if changed else nodes


def remove_from_tree(nodes: List[CommentNode], comment_id: Any) -> List[CommentNode]:
    """Drop the node ``comment_id`` together with any subtree under it."""
    changed = False
    result = []
    for node in nodes:
        if node.id == comment_id:
            changed = True
            continue
        replies = remove_from_tree(node.replies, comment_id)
        if replies is not node.replies:
            removed = len(node.replies) - len(replies)
            node = replace(node, replies=replies, reply_count=max(0, node.reply_count - removed))
            changed = True
        result.append(node)
    return result if changed else nodes


def prune_depth(nodes: List[CommentNode], max_depth: int, level: int = 1) -> List[CommentNode]:
    """
    Cut the forest to ``max_depth`` levels, roots being level 1.

    Pruned nodes keep their real ``reply_count``.
    """
    if max_depth < 1:
        return []
    result = []
    for node in nodes:
        if level >= max_depth:
            result.append(replace(node, replies=[]))
        else:
            result.append(replace(node, replies=prune_depth(node.replies, max_depth, level + 1)))
    return result


def find_in_tree(nodes: List[CommentNode], comment_id: Any) -> Optional[CommentNode]:
    for node in nodes:
        if node.id == comment_id:
            return node
        found = find_in_tree(node.replies, comment_id)
        if found is not None:
            return found
    return None


def count_nodes(nodes: List[CommentNode]) -> int:
    return sum(1 + count_nodes(node.replies) for node in nodes)
