"""
Tag reconciliation for posts.

Makes the stored (post, tag) associations of one post equal to a requested
set of tag IDs:

    1. clear   - delete every association of the post
    2. normalize - drop empty input, wrap a scalar, deduplicate
    3. insert  - add one association per unique tag ID

Duplicate-key errors during insertion mean the pair already exists (a
concurrent request got there first) and are ignored. Any other store error
aborts the remaining inserts and raises TagReconciliationError.

The reconciler never commits. The caller owns the transaction and decides
whether a failure rolls back the clear step and earlier inserts.
"""

import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy import delete, insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from blogcms.models.post_tag import PostTag

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}

_DUPLICATE_KEY_MARKERS = (
    "duplicate key value",       # postgresql
    "unique constraint failed",  # sqlite
    "duplicate entry",           # mysql
)


class TagReconciliationError(Exception):
    """Raised when a post's tags could not be reconciled"""

    def __init__(self, message: str, post_id: str):
        super().__init__(message)
        self.message = message
        self.post_id = post_id


def normalize_tag_ids(tag_ids: Union[None, str, Iterable[str]]) -> List[str]:
    """Turn the incoming tag_ids value into a list of unique IDs

    None, "" and [] all mean "no tags". A single ID is wrapped in a list.
    Duplicates are dropped, keeping first-seen order.
    """
    if not tag_ids:
        return []
    if isinstance(tag_ids, str):
        tag_ids = [tag_ids]
    return list(dict.fromkeys(tag_ids))


def is_duplicate_key_error(exc: SQLAlchemyError) -> bool:
    """Whether a store error reports a uniqueness violation"""
    if not isinstance(exc, IntegrityError):
        return False
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _DUPLICATE_KEY_MARKERS)


def _store_message(exc: SQLAlchemyError) -> str:
    return str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)


class TagReconciler:
    """Synchronizes a post's tag associations with a requested list

    Args:
        session: session the caller commits or rolls back
        use_upsert: insert all rows in one INSERT ... ON CONFLICT DO NOTHING.
            Defaults to True on dialects that support it, otherwise rows are
            inserted one at a time inside savepoints.
    """

    def __init__(self, session: Session, use_upsert: Optional[bool] = None):
        self.session = session
        if use_upsert is None:
            use_upsert = self._dialect_name() in _UPSERT_INSERTS
        self.use_upsert = use_upsert

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def reconcile(self, post_id: str, tag_ids: Union[None, str, Iterable[str]]) -> List[str]:
        """Replace the post's associations with tag_ids and return the stored IDs"""
        self._clear(post_id)

        unique_tag_ids = normalize_tag_ids(tag_ids)
        if not unique_tag_ids:
            return []

        if self.use_upsert:
            self._insert_batch(post_id, unique_tag_ids)
        else:
            self._insert_each(post_id, unique_tag_ids)
        return unique_tag_ids

    def _clear(self, post_id: str) -> None:
        try:
            self.session.execute(delete(PostTag).where(PostTag.post_id == post_id))
        except SQLAlchemyError as exc:
            logger.error("Clearing tags of post %s failed: %s", post_id, exc)
            raise TagReconciliationError(
                f"Failed to clear tags: {_store_message(exc)}", post_id
            ) from exc

    def _insert_batch(self, post_id: str, tag_ids: List[str]) -> None:
        upsert = _UPSERT_INSERTS[self._dialect_name()]
        statement = (
            upsert(PostTag)
            .values([{"post_id": post_id, "tag_id": tag_id} for tag_id in tag_ids])
            .on_conflict_do_nothing(index_elements=["post_id", "tag_id"])
        )
        try:
            self.session.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("Inserting tags %s on post %s failed: %s", tag_ids, post_id, exc)
            raise TagReconciliationError(
                f"Failed to insert tag: {_store_message(exc)}", post_id
            ) from exc

    def _insert_each(self, post_id: str, tag_ids: List[str]) -> None:
        for tag_id in tag_ids:
            try:
                with self.session.begin_nested():
                    self.session.execute(
                        insert(PostTag).values(post_id=post_id, tag_id=tag_id)
                    )
            except SQLAlchemyError as exc:
                if is_duplicate_key_error(exc):
                    logger.debug("Tag %s already on post %s, skipping", tag_id, post_id)
                    continue
                logger.error("Inserting tag %s on post %s failed: %s", tag_id, post_id, exc)
                raise TagReconciliationError(
                    f"Failed to insert tag {tag_id}: {_store_message(exc)}", post_id
                ) from exc
