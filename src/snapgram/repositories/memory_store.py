"""Dict-backed relation store.

Implements the same contract as :class:`SqlRelationStore`, including the
uniqueness rules on relation keys, so the feed and interaction services can
be exercised without a database.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from itertools import count

from snapgram.db.time import utcnow
from snapgram.repositories.base import DuplicateRelationError, RelationKind, RelationStore
from snapgram.repositories.records import (
    BookmarkPage,
    CommentRecord,
    PostCounts,
    PostPage,
    PostRecord,
    UserRecord,
    UserSearchPage,
    UserStats,
)

__all__ = ["InMemoryRelationStore"]


class InMemoryRelationStore(RelationStore):
    """Relation store holding everything in process memory."""

    def __init__(self) -> None:
        self.users: dict[int, UserRecord] = {}
        self.posts: dict[int, PostRecord] = {}
        self.comments: dict[int, CommentRecord] = {}
        # (actor_id, target_id) -> (sequence, created_at)
        self.relations: dict[RelationKind, dict[tuple[int, int], tuple[int, datetime]]] = {
            kind: {} for kind in RelationKind
        }
        self._ids = count(1)

    def _next_id(self) -> int:
        return next(self._ids)

    # Users

    def get_user(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def get_user_by_identity(self, external_id: str) -> UserRecord | None:
        for user in self.users.values():
            if user.external_identity_id == external_id:
                return user
        return None

    def create_user(self, external_id: str, display_name: str) -> UserRecord:
        existing = self.get_user_by_identity(external_id)
        if existing is not None:
            return existing
        user = UserRecord(
            id=self._next_id(),
            external_identity_id=external_id,
            display_name=display_name,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    def users_by_ids(self, user_ids: Iterable[int]) -> list[UserRecord]:
        return [self.users[user_id] for user_id in set(user_ids) if user_id in self.users]

    def _stats(self, user: UserRecord) -> UserStats:
        follows = self.relations[RelationKind.FOLLOW]
        return UserStats(
            user=user,
            posts_count=sum(1 for post in self.posts.values() if post.author_id == user.id),
            followers_count=sum(1 for _, target in follows if target == user.id),
            following_count=sum(1 for actor, _ in follows if actor == user.id),
        )

    def user_stats(self, user_id: int) -> UserStats | None:
        user = self.users.get(user_id)
        return self._stats(user) if user else None

    def search_users(self, query: str, limit: int, offset: int) -> UserSearchPage:
        needle = query.lower()
        matches = [
            self._stats(user)
            for user in self.users.values()
            if needle in user.display_name.lower()
        ]
        matches.sort(key=lambda stats: (-stats.posts_count, stats.user.id))
        return UserSearchPage(users=matches[offset:offset + limit], total_count=len(matches))

    # Posts

    @staticmethod
    def _newest_first(posts: Iterable[PostRecord]) -> list[PostRecord]:
        return sorted(posts, key=lambda post: (post.created_at, post.id), reverse=True)

    def page_of_posts(self, author_id: int | None, limit: int, offset: int) -> PostPage:
        posts = [
            post for post in self.posts.values()
            if author_id is None or post.author_id == author_id
        ]
        ordered = self._newest_first(posts)
        return PostPage(posts=ordered[offset:offset + limit], total_count=len(ordered))

    def posts_by_ids(self, post_ids: Iterable[int]) -> list[PostRecord]:
        return [self.posts[post_id] for post_id in set(post_ids) if post_id in self.posts]

    def get_post(self, post_id: int) -> PostRecord | None:
        return self.posts.get(post_id)

    def create_post(
        self,
        author_id: int,
        image_url: str,
        caption: str | None,
        created_at: datetime | None = None,
    ) -> PostRecord:
        post = PostRecord(
            id=self._next_id(),
            author_id=author_id,
            image_url=image_url,
            caption=caption,
            created_at=created_at or utcnow(),
        )
        self.posts[post.id] = post
        return post

    def delete_post(self, post_id: int) -> bool:
        if post_id not in self.posts:
            return False
        for kind in (RelationKind.LIKE, RelationKind.BOOKMARK):
            table = self.relations[kind]
            for key in [key for key in table if key[1] == post_id]:
                del table[key]
        for comment_id in [c.id for c in self.comments.values() if c.post_id == post_id]:
            del self.comments[comment_id]
        del self.posts[post_id]
        return True

    def post_counts(self, post_ids: Iterable[int]) -> dict[int, PostCounts]:
        likes = self.relations[RelationKind.LIKE]
        result: dict[int, PostCounts] = {}
        for post_id in set(post_ids):
            result[post_id] = PostCounts(
                likes_count=sum(1 for _, target in likes if target == post_id),
                comments_count=sum(1 for c in self.comments.values() if c.post_id == post_id),
            )
        return result

    def search_posts(self, query: str, limit: int, offset: int) -> PostPage:
        needle = query.lower()
        matches = self._newest_first(
            post for post in self.posts.values()
            if post.caption and needle in post.caption.lower()
        )
        return PostPage(posts=matches[offset:offset + limit], total_count=len(matches))

    # Comments

    def root_comments_for_posts(self, post_ids: Iterable[int]) -> list[CommentRecord]:
        ids = set(post_ids)
        roots = [c for c in self.comments.values() if c.post_id in ids and c.parent_id is None]
        return sorted(roots, key=lambda c: (c.created_at, c.id), reverse=True)

    def comments_for_post(self, post_id: int) -> list[CommentRecord]:
        return [c for c in self.comments.values() if c.post_id == post_id]

    def get_comment(self, comment_id: int) -> CommentRecord | None:
        return self.comments.get(comment_id)

    def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
        created_at: datetime | None = None,
    ) -> CommentRecord:
        stamp = created_at or utcnow()
        comment = CommentRecord(
            id=self._next_id(),
            post_id=post_id,
            author_id=author_id,
            parent_id=parent_id,
            content=content,
            created_at=stamp,
            updated_at=stamp,
        )
        self.comments[comment.id] = comment
        return comment

    def delete_comment(self, comment_id: int) -> int:
        doomed = [c.id for c in self.comments.values() if c.parent_id == comment_id]
        if comment_id in self.comments:
            doomed.append(comment_id)
        for doomed_id in doomed:
            del self.comments[doomed_id]
        return len(doomed)

    # Relations

    def insert_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> None:
        table = self.relations[kind]
        key = (actor_id, target_id)
        if key in table:
            raise DuplicateRelationError(f"{kind.value} already exists")
        table[key] = (self._next_id(), utcnow())

    def delete_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        return self.relations[kind].pop((actor_id, target_id), None) is not None

    def relation_exists(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        return (actor_id, target_id) in self.relations[kind]

    def related_target_ids(
        self,
        kind: RelationKind,
        actor_id: int,
        target_ids: Iterable[int],
    ) -> set[int]:
        table = self.relations[kind]
        return {target for target in set(target_ids) if (actor_id, target) in table}

    def page_of_bookmarks(self, user_id: int, limit: int, offset: int) -> BookmarkPage:
        entries = [
            (seq, created_at, post_id)
            for (actor, post_id), (seq, created_at) in self.relations[RelationKind.BOOKMARK].items()
            if actor == user_id
        ]
        entries.sort(key=lambda entry: (entry[1], entry[0]), reverse=True)
        post_ids = [post_id for _, _, post_id in entries]
        return BookmarkPage(post_ids=post_ids[offset:offset + limit], total_count=len(post_ids))
