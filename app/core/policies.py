# app/core/policies.py
"""
Row-level authorization.

Every (table, operation) pair has at most one registered ``Policy``. A policy
answers "may ``requester_id`` do ``operation`` on ``row``" and, for reads,
also provides a SQL predicate so list queries only ever load visible rows.
Pairs without a policy are denied.

``requester_id`` is ``None`` for anonymous callers.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from sqlalchemy import and_, exists, false, or_, select, true
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.common.errors import PolicyViolation
from app.models.friendship import Friendship, FriendshipStatus
from app.models.post import Post, Privacy

logger = logging.getLogger(__name__)


class Table(str, Enum):
    PROFILES = "profiles"
    POSTS = "posts"
    FRIENDSHIPS = "friendships"


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


CheckFn = Callable[[Session, Optional[str], Any, Iterable[str]], bool]
PredicateFn = Callable[[Optional[str]], ColumnElement]


@dataclass(frozen=True)
class Policy:
    name: str
    check: CheckFn
    predicate: Optional[PredicateFn] = None


_POLICIES: Dict[Tuple[Table, Operation], Policy] = {}


def policy(table: Table, operation: Operation, name: str, predicate: Optional[PredicateFn] = None):
    def register(check: CheckFn) -> CheckFn:
        _POLICIES[(table, operation)] = Policy(name=name, check=check, predicate=predicate)
        return check
    return register


def get_policy(table: Table, operation: Operation) -> Optional[Policy]:
    return _POLICIES.get((table, operation))


def is_allowed(
    db: Session,
    requester_id: Optional[str],
    table: Table,
    operation: Operation,
    row: Any,
    changes: Iterable[str] = (),
) -> bool:
    found = get_policy(table, operation)
    if found is None:
        return False
    return found.check(db, requester_id, row, tuple(changes))


def authorize(
    db: Session,
    requester_id: Optional[str],
    table: Table,
    operation: Operation,
    row: Any,
    changes: Iterable[str] = (),
) -> None:
    if not is_allowed(db, requester_id, table, operation, row, changes):
        found = get_policy(table, operation)
        logger.info(
            "Policy denied %s on %s for requester=%s (%s)",
            operation.value, table.value, requester_id, found.name if found else "no policy",
        )
        raise PolicyViolation()


def visible(table: Table, requester_id: Optional[str]) -> ColumnElement:
    """SQL filter matching the rows of ``table`` that ``requester_id`` may read."""
    found = get_policy(table, Operation.SELECT)
    if found is None or found.predicate is None:
        return false()
    return found.predicate(requester_id)


# --- friendship helpers -----------------------------------------------------

def _between(a, b) -> ColumnElement:
    return or_(
        and_(Friendship.sender_id == a, Friendship.receiver_id == b),
        and_(Friendship.sender_id == b, Friendship.receiver_id == a),
    )


def accepted_friendship_exists(requester_id: str, owner_column) -> ColumnElement:
    return exists().where(
        _between(requester_id, owner_column),
        Friendship.status == FriendshipStatus.ACCEPTED.value,
    )


def are_friends(db: Session, a: str, b: str) -> bool:
    stmt = select(Friendship.id).where(
        _between(a, b), Friendship.status == FriendshipStatus.ACCEPTED.value
    ).limit(1)
    return db.execute(stmt).first() is not None


# --- profiles ---------------------------------------------------------------

@policy(Table.PROFILES, Operation.SELECT, "Public profiles are viewable by everyone",
        predicate=lambda requester_id: true())
def _profiles_select(db, requester_id, row, changes):
    return True


@policy(Table.PROFILES, Operation.UPDATE, "Users can update own profile")
def _profiles_update(db, requester_id, row, changes):
    return requester_id is not None and requester_id == row.id and "id" not in changes


# --- posts ------------------------------------------------------------------

def _posts_visible(requester_id: Optional[str]) -> ColumnElement:
    if requester_id is None:
        return Post.privacy == Privacy.PUBLIC.value
    return or_(
        Post.privacy == Privacy.PUBLIC.value,
        Post.user_id == requester_id,
        and_(
            Post.privacy == Privacy.FRIENDS.value,
            accepted_friendship_exists(requester_id, Post.user_id),
        ),
    )


@policy(Table.POSTS, Operation.SELECT, "Posts are viewable according to their privacy",
        predicate=_posts_visible)
def _posts_select(db, requester_id, row, changes):
    if row.privacy == Privacy.PUBLIC.value:
        return True
    if requester_id is None:
        return False
    if row.user_id == requester_id:
        return True
    return row.privacy == Privacy.FRIENDS.value and are_friends(db, requester_id, row.user_id)


def _owns_post(requester_id, row, changes) -> bool:
    return requester_id is not None and requester_id == row.user_id and "user_id" not in changes


@policy(Table.POSTS, Operation.INSERT, "Users can create posts")
def _posts_insert(db, requester_id, row, changes):
    return requester_id is not None and requester_id == row.user_id


@policy(Table.POSTS, Operation.UPDATE, "Users can update own posts")
def _posts_update(db, requester_id, row, changes):
    return _owns_post(requester_id, row, changes)


@policy(Table.POSTS, Operation.DELETE, "Users can delete own posts")
def _posts_delete(db, requester_id, row, changes):
    return _owns_post(requester_id, row, changes)


# --- friendships ------------------------------------------------------------

def _friendships_visible(requester_id: Optional[str]) -> ColumnElement:
    if requester_id is None:
        return false()
    return or_(Friendship.sender_id == requester_id, Friendship.receiver_id == requester_id)


def _is_party(requester_id, row) -> bool:
    return requester_id is not None and requester_id in (row.sender_id, row.receiver_id)


@policy(Table.FRIENDSHIPS, Operation.SELECT, "Users can view their own friendships",
        predicate=_friendships_visible)
def _friendships_select(db, requester_id, row, changes):
    return _is_party(requester_id, row)


@policy(Table.FRIENDSHIPS, Operation.INSERT, "Users can create friendship requests")
def _friendships_insert(db, requester_id, row, changes):
    return requester_id is not None and requester_id == row.sender_id


@policy(Table.FRIENDSHIPS, Operation.UPDATE, "Users can update friendship status")
def _friendships_update(db, requester_id, row, changes):
    return _is_party(requester_id, row) and set(changes) <= {"status"}


@policy(Table.FRIENDSHIPS, Operation.DELETE, "Users can remove their own friendships")
def _friendships_delete(db, requester_id, row, changes):
    return _is_party(requester_id, row)
