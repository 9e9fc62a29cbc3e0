# app/routers/friendships.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.common.deps import get_current_session, get_friendship_service
from app.models.friendship import FriendshipCreate, FriendshipRead, FriendshipStatus, FriendshipUpdate
from app.services.auth_service import AuthSession
from app.services.friendship_service import FriendshipService

router = APIRouter()


@router.get("", response_model=List[FriendshipRead])
def list_friendships(
    status_filter: Optional[FriendshipStatus] = Query(None, alias="status"),
    incoming: bool = Query(False, description="only requests sent to me"),
    session: AuthSession = Depends(get_current_session),
    service: FriendshipService = Depends(get_friendship_service),
):
    return service.list_friendships(session.user.id, status=status_filter, incoming_only=incoming)


@router.post("", response_model=FriendshipRead, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    friendship_in: FriendshipCreate,
    session: AuthSession = Depends(get_current_session),
    service: FriendshipService = Depends(get_friendship_service),
):
    return service.send_request(session.user.id, friendship_in.receiver_id, sender_id=friendship_in.sender_id)


@router.patch("/{friendship_id}", response_model=FriendshipRead)
def update_friendship(
    friendship_id: str,
    friendship_in: FriendshipUpdate,
    session: AuthSession = Depends(get_current_session),
    service: FriendshipService = Depends(get_friendship_service),
):
    return service.update_status(session.user.id, friendship_id, friendship_in.status)


@router.delete("/{friendship_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_friendship(
    friendship_id: str,
    session: AuthSession = Depends(get_current_session),
    service: FriendshipService = Depends(get_friendship_service),
):
    service.remove(session.user.id, friendship_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
