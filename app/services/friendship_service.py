# app/services/friendship_service.py

import logging
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.common.errors import BadRequest, ConflictError, NotFound
from app.core.policies import Operation, Table, authorize, is_allowed, visible
from app.models.friendship import Friendship, FriendshipStatus
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class FriendshipService:

    def __init__(self, db: Session):
        self.db = db

    def list_friendships(
        self,
        requester_id: Optional[str],
        status: Optional[FriendshipStatus] = None,
        incoming_only: bool = False,
    ) -> List[Friendship]:
        stmt = select(Friendship).where(visible(Table.FRIENDSHIPS, requester_id))
        if status is not None:
            stmt = stmt.where(Friendship.status == status.value)
        if incoming_only:
            stmt = stmt.where(Friendship.receiver_id == requester_id)
        stmt = stmt.order_by(Friendship.created_at.desc())
        return list(self.db.execute(stmt).unique().scalars())

    def get_friendship(self, requester_id: Optional[str], friendship_id: str) -> Friendship:
        friendship = self.db.get(Friendship, friendship_id)
        if friendship is None or not is_allowed(
            self.db, requester_id, Table.FRIENDSHIPS, Operation.SELECT, friendship
        ):
            raise NotFound("Friendship not found")
        return friendship

    def send_request(
        self, requester_id: Optional[str], receiver_id: str, sender_id: Optional[str] = None
    ) -> Friendship:
        friendship = Friendship(
            sender_id=sender_id or requester_id,
            receiver_id=receiver_id,
            status=FriendshipStatus.PENDING.value,
        )
        authorize(self.db, requester_id, Table.FRIENDSHIPS, Operation.INSERT, friendship)

        if friendship.sender_id == receiver_id:
            raise BadRequest("You cannot send a friend request to yourself")
        if self.db.get(Profile, receiver_id) is None:
            raise NotFound("Profile not found")

        # one row per pair, whichever side asked first
        existing = self.db.execute(
            select(Friendship).where(or_(
                and_(Friendship.sender_id == friendship.sender_id, Friendship.receiver_id == receiver_id),
                and_(Friendship.sender_id == receiver_id, Friendship.receiver_id == friendship.sender_id),
            ))
        ).unique().scalar_one_or_none()
        if existing is not None:
            if existing.status == FriendshipStatus.ACCEPTED.value:
                raise ConflictError("You are already friends")
            raise ConflictError("A friend request already exists between you")

        self.db.add(friendship)
        self.db.commit()
        self.db.refresh(friendship)
        logger.info("Friend request %s: %s -> %s", friendship.id, friendship.sender_id, receiver_id)
        return friendship

    def update_status(
        self, requester_id: Optional[str], friendship_id: str, status: FriendshipStatus
    ) -> Friendship:
        friendship = self.get_friendship(requester_id, friendship_id)
        authorize(
            self.db, requester_id, Table.FRIENDSHIPS, Operation.UPDATE, friendship, changes=("status",)
        )
        friendship.status = status.value
        self.db.commit()
        self.db.refresh(friendship)
        logger.info("Friendship %s is now %s", friendship.id, friendship.status)
        return friendship

    def remove(self, requester_id: Optional[str], friendship_id: str) -> None:
        friendship = self.get_friendship(requester_id, friendship_id)
        authorize(self.db, requester_id, Table.FRIENDSHIPS, Operation.DELETE, friendship)
        self.db.delete(friendship)
        self.db.commit()
