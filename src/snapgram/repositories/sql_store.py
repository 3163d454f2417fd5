"""SQLAlchemy-backed relation store."""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, Session

from snapgram.models import Bookmark, Comment, Follow, Like, Post, User
from snapgram.repositories.base import (
    DuplicateRelationError,
    RelationKind,
    RelationStore,
    StoreError,
)
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

__all__ = ["SqlRelationStore"]

# (model, actor column, target column) per relation kind.
_RELATION_COLUMNS: dict[
    RelationKind,
    tuple[type[Like] | type[Follow] | type[Bookmark], InstrumentedAttribute, InstrumentedAttribute],
] = {
    RelationKind.LIKE: (Like, Like.user_id, Like.post_id),
    RelationKind.FOLLOW: (Follow, Follow.follower_id, Follow.following_id),
    RelationKind.BOOKMARK: (Bookmark, Bookmark.user_id, Bookmark.post_id),
}


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        external_identity_id=user.external_identity_id,
        display_name=user.display_name,
        created_at=_as_utc(user.created_at),
    )


def _post_record(post: Post) -> PostRecord:
    return PostRecord(
        id=post.id,
        author_id=post.author_id,
        image_url=post.image_url,
        caption=post.caption,
        created_at=_as_utc(post.created_at),
    )


def _comment_record(comment: Comment) -> CommentRecord:
    return CommentRecord(
        id=comment.id,
        post_id=comment.post_id,
        author_id=comment.author_id,
        parent_id=comment.parent_id,
        content=comment.content,
        created_at=_as_utc(comment.created_at),
        updated_at=_as_utc(comment.updated_at),
    )


class SqlRelationStore(RelationStore):
    """Relation store over a synchronous SQLAlchemy session.

    Each mutating method commits its own unit of work. Any SQLAlchemy failure
    rolls the session back and is re-raised as :class:`StoreError`.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        try:
            yield
        except StoreError:
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"{name} failed") from exc

    # Users

    def get_user(self, user_id: int) -> UserRecord | None:
        with self._operation("get_user"):
            user = self.session.get(User, user_id)
            return _user_record(user) if user else None

    def get_user_by_identity(self, external_id: str) -> UserRecord | None:
        with self._operation("get_user_by_identity"):
            user = self.session.scalars(
                select(User).where(User.external_identity_id == external_id)
            ).first()
            return _user_record(user) if user else None

    def create_user(self, external_id: str, display_name: str) -> UserRecord:
        with self._operation("create_user"):
            user = User(external_identity_id=external_id, display_name=display_name)
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError:
                # Another request bound this identity first.
                self.session.rollback()
                existing = self.get_user_by_identity(external_id)
                if existing is None:
                    raise StoreError("create_user failed") from None
                return existing
            self.session.refresh(user)
            return _user_record(user)

    def users_by_ids(self, user_ids: Iterable[int]) -> list[UserRecord]:
        ids = set(user_ids)
        if not ids:
            return []
        with self._operation("users_by_ids"):
            users = self.session.scalars(select(User).where(User.id.in_(ids))).all()
            return [_user_record(user) for user in users]

    def _follow_counts(self, user_ids: set[int]) -> tuple[dict[int, int], dict[int, int]]:
        followers = dict(
            self.session.execute(
                select(Follow.following_id, func.count(Follow.id))
                .where(Follow.following_id.in_(user_ids))
                .group_by(Follow.following_id)
            ).all()
        )
        following = dict(
            self.session.execute(
                select(Follow.follower_id, func.count(Follow.id))
                .where(Follow.follower_id.in_(user_ids))
                .group_by(Follow.follower_id)
            ).all()
        )
        return followers, following

    def user_stats(self, user_id: int) -> UserStats | None:
        with self._operation("user_stats"):
            user = self.session.get(User, user_id)
            if user is None:
                return None
            posts_count = self.session.scalar(
                select(func.count(Post.id)).where(Post.author_id == user_id)
            ) or 0
            followers, following = self._follow_counts({user_id})
            return UserStats(
                user=_user_record(user),
                posts_count=int(posts_count),
                followers_count=int(followers.get(user_id, 0)),
                following_count=int(following.get(user_id, 0)),
            )

    def search_users(self, query: str, limit: int, offset: int) -> UserSearchPage:
        with self._operation("search_users"):
            condition = User.display_name.ilike(_like_pattern(query), escape="\\")
            total = self.session.scalar(
                select(func.count(User.id)).where(condition)
            ) or 0

            post_totals = (
                select(Post.author_id, func.count(Post.id).label("posts_count"))
                .group_by(Post.author_id)
                .subquery()
            )
            posts_count = func.coalesce(post_totals.c.posts_count, 0)
            rows = self.session.execute(
                select(User, posts_count)
                .outerjoin(post_totals, post_totals.c.author_id == User.id)
                .where(condition)
                .order_by(posts_count.desc(), User.id.asc())
                .offset(offset)
                .limit(limit)
            ).all()

            ids = {user.id for user, _ in rows}
            followers, following = self._follow_counts(ids) if ids else ({}, {})
            users = [
                UserStats(
                    user=_user_record(user),
                    posts_count=int(count or 0),
                    followers_count=int(followers.get(user.id, 0)),
                    following_count=int(following.get(user.id, 0)),
                )
                for user, count in rows
            ]
            return UserSearchPage(users=users, total_count=int(total))

    # Posts

    def page_of_posts(self, author_id: int | None, limit: int, offset: int) -> PostPage:
        with self._operation("page_of_posts"):
            stmt = select(Post)
            count_stmt = select(func.count(Post.id))
            if author_id is not None:
                stmt = stmt.where(Post.author_id == author_id)
                count_stmt = count_stmt.where(Post.author_id == author_id)

            posts = self.session.scalars(
                stmt.order_by(Post.created_at.desc(), Post.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            total = self.session.scalar(count_stmt) or 0
            return PostPage(posts=[_post_record(post) for post in posts], total_count=int(total))

    def posts_by_ids(self, post_ids: Iterable[int]) -> list[PostRecord]:
        ids = set(post_ids)
        if not ids:
            return []
        with self._operation("posts_by_ids"):
            posts = self.session.scalars(select(Post).where(Post.id.in_(ids))).all()
            return [_post_record(post) for post in posts]

    def get_post(self, post_id: int) -> PostRecord | None:
        with self._operation("get_post"):
            post = self.session.get(Post, post_id)
            return _post_record(post) if post else None

    def create_post(
        self,
        author_id: int,
        image_url: str,
        caption: str | None,
        created_at: datetime | None = None,
    ) -> PostRecord:
        with self._operation("create_post"):
            post = Post(author_id=author_id, image_url=image_url, caption=caption)
            if created_at is not None:
                post.created_at = created_at
            self.session.add(post)
            self.session.commit()
            self.session.refresh(post)
            return _post_record(post)

    def delete_post(self, post_id: int) -> bool:
        with self._operation("delete_post"):
            if self.session.get(Post, post_id) is None:
                return False
            self.session.execute(delete(Like).where(Like.post_id == post_id))
            self.session.execute(delete(Bookmark).where(Bookmark.post_id == post_id))
            # Replies before roots so parent references never dangle.
            self.session.execute(
                delete(Comment).where(Comment.post_id == post_id, Comment.parent_id.is_not(None))
            )
            self.session.execute(delete(Comment).where(Comment.post_id == post_id))
            self.session.execute(delete(Post).where(Post.id == post_id))
            self.session.commit()
            return True

    def post_counts(self, post_ids: Iterable[int]) -> dict[int, PostCounts]:
        ids = set(post_ids)
        if not ids:
            return {}
        with self._operation("post_counts"):
            likes = dict(
                self.session.execute(
                    select(Like.post_id, func.count(Like.id))
                    .where(Like.post_id.in_(ids))
                    .group_by(Like.post_id)
                ).all()
            )
            comments = dict(
                self.session.execute(
                    select(Comment.post_id, func.count(Comment.id))
                    .where(Comment.post_id.in_(ids))
                    .group_by(Comment.post_id)
                ).all()
            )
            return {
                post_id: PostCounts(
                    likes_count=int(likes.get(post_id, 0)),
                    comments_count=int(comments.get(post_id, 0)),
                )
                for post_id in ids
            }

    def search_posts(self, query: str, limit: int, offset: int) -> PostPage:
        with self._operation("search_posts"):
            condition = Post.caption.ilike(_like_pattern(query), escape="\\")
            posts = self.session.scalars(
                select(Post)
                .where(condition)
                .order_by(Post.created_at.desc(), Post.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            total = self.session.scalar(select(func.count(Post.id)).where(condition)) or 0
            return PostPage(posts=[_post_record(post) for post in posts], total_count=int(total))

    # Comments

    def root_comments_for_posts(self, post_ids: Iterable[int]) -> list[CommentRecord]:
        ids = set(post_ids)
        if not ids:
            return []
        with self._operation("root_comments_for_posts"):
            comments = self.session.scalars(
                select(Comment)
                .where(Comment.post_id.in_(ids), Comment.parent_id.is_(None))
                .order_by(Comment.created_at.desc(), Comment.id.desc())
            ).all()
            return [_comment_record(comment) for comment in comments]

    def comments_for_post(self, post_id: int) -> list[CommentRecord]:
        with self._operation("comments_for_post"):
            comments = self.session.scalars(
                select(Comment).where(Comment.post_id == post_id).order_by(Comment.id.asc())
            ).all()
            return [_comment_record(comment) for comment in comments]

    def get_comment(self, comment_id: int) -> CommentRecord | None:
        with self._operation("get_comment"):
            comment = self.session.get(Comment, comment_id)
            return _comment_record(comment) if comment else None

    def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
        created_at: datetime | None = None,
    ) -> CommentRecord:
        with self._operation("create_comment"):
            comment = Comment(
                post_id=post_id,
                author_id=author_id,
                parent_id=parent_id,
                content=content,
            )
            if created_at is not None:
                comment.created_at = created_at
                comment.updated_at = created_at
            self.session.add(comment)
            self.session.commit()
            self.session.refresh(comment)
            return _comment_record(comment)

    def delete_comment(self, comment_id: int) -> int:
        with self._operation("delete_comment"):
            replies = self.session.execute(
                delete(Comment).where(Comment.parent_id == comment_id)
            ).rowcount or 0
            removed = self.session.execute(
                delete(Comment).where(Comment.id == comment_id)
            ).rowcount or 0
            self.session.commit()
            return replies + removed

    # Relations

    def insert_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> None:
        model, actor_column, target_column = _RELATION_COLUMNS[kind]
        with self._operation(f"insert_{kind.value}"):
            self.session.add(model(**{actor_column.key: actor_id, target_column.key: target_id}))
            try:
                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                if self.relation_exists(kind, actor_id, target_id):
                    raise DuplicateRelationError(f"{kind.value} already exists") from exc
                raise StoreError(f"insert_{kind.value} failed") from exc

    def delete_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        model, actor_column, target_column = _RELATION_COLUMNS[kind]
        with self._operation(f"delete_{kind.value}"):
            result = self.session.execute(
                delete(model).where(actor_column == actor_id, target_column == target_id)
            )
            self.session.commit()
            return bool(result.rowcount)

    def relation_exists(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        model, actor_column, target_column = _RELATION_COLUMNS[kind]
        with self._operation(f"{kind.value}_exists"):
            found = self.session.scalar(
                select(model.id).where(actor_column == actor_id, target_column == target_id)
            )
            return found is not None

    def related_target_ids(
        self,
        kind: RelationKind,
        actor_id: int,
        target_ids: Iterable[int],
    ) -> set[int]:
        ids = set(target_ids)
        if not ids:
            return set()
        _, actor_column, target_column = _RELATION_COLUMNS[kind]
        with self._operation(f"related_{kind.value}_ids"):
            rows = self.session.scalars(
                select(target_column).where(actor_column == actor_id, target_column.in_(ids))
            ).all()
            return set(rows)

    def page_of_bookmarks(self, user_id: int, limit: int, offset: int) -> BookmarkPage:
        with self._operation("page_of_bookmarks"):
            post_ids = self.session.scalars(
                select(Bookmark.post_id)
                .where(Bookmark.user_id == user_id)
                .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            total = self.session.scalar(
                select(func.count(Bookmark.id)).where(Bookmark.user_id == user_id)
            ) or 0
            return BookmarkPage(post_ids=list(post_ids), total_count=int(total))
