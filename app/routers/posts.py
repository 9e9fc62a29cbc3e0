# app/routers/posts.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.common.deps import get_current_session, get_optional_session, get_post_service
from app.models.post import PostCreate, PostRead, PostUpdate
from app.services.auth_service import AuthSession
from app.services.post_service import PostService

router = APIRouter()


def _requester(session: Optional[AuthSession]) -> Optional[str]:
    return session.user.id if session else None


@router.get("", response_model=List[PostRead])
def list_posts(
    user_id: Optional[str] = Query(None, description="only posts by this profile"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Optional[AuthSession] = Depends(get_optional_session),
    service: PostService = Depends(get_post_service),
):
    return service.list_feed(_requester(session), author_id=user_id, limit=limit, offset=offset)


@router.post("", response_model=PostRead, status_code=status.HTTP_201_CREATED)
def create_post(
    post_in: PostCreate,
    session: AuthSession = Depends(get_current_session),
    service: PostService = Depends(get_post_service),
):
    return service.create_post(session.user.id, post_in)


@router.get("/{post_id}", response_model=PostRead)
def read_post(
    post_id: str,
    session: Optional[AuthSession] = Depends(get_optional_session),
    service: PostService = Depends(get_post_service),
):
    return service.get_post(_requester(session), post_id)


@router.patch("/{post_id}", response_model=PostRead)
def update_post(
    post_id: str,
    post_in: PostUpdate,
    session: AuthSession = Depends(get_current_session),
    service: PostService = Depends(get_post_service),
):
    return service.update_post(session.user.id, post_id, post_in)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: str,
    session: AuthSession = Depends(get_current_session),
    service: PostService = Depends(get_post_service),
):
    service.delete_post(session.user.id, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
