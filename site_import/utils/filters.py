"""
Post filter chain.

A filter chain is an ordered mapping from a predicate name to a pure
function over a :class:`~site_import.models.post.Post`.  A post is kept
only if every registered predicate accepts it; the order of the
predicates does not change the outcome and an empty chain accepts
every post.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List

from site_import.models.post import Post

PostFilter = Callable[[Post], bool]
PostFilterChain = Dict[str, PostFilter]


def post_satisfies_all(filters: PostFilterChain, post: Post) -> bool:
    """Return ``True`` when every predicate in ``filters`` accepts ``post``."""
    return all(predicate(post) for predicate in filters.values())


def filter_posts(filters: PostFilterChain, posts: Iterable[Post]) -> List[Post]:
    """Keep the posts of ``posts`` that satisfy the whole chain, in order."""
    return [post for post in posts if post_satisfies_all(filters, post)]


def is_post_type(*types: str) -> PostFilter:
    """Build a predicate accepting posts whose ``type`` is one of ``types``."""
    accepted = frozenset(types)

    def predicate(post: Post) -> bool:
        return post.type in accepted

    return predicate


def has_status(*statuses: str) -> PostFilter:
    """Build a predicate accepting posts whose ``status`` is one of ``statuses``."""
    accepted = frozenset(statuses)

    def predicate(post: Post) -> bool:
        return post.status in accepted

    return predicate


def default_post_filters() -> PostFilterChain:
    """Published posts only; attachments, pages and drafts are dropped."""
    return {
        "post_type": is_post_type("post"),
        "published": has_status("publish"),
    }
