# app/routers/profiles.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.common.deps import get_current_session, get_optional_session, get_profile_service
from app.models.profile import ProfileRead, ProfileUpdate
from app.services.auth_service import AuthSession
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("", response_model=List[ProfileRead])
def list_profiles(
    q: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Optional[AuthSession] = Depends(get_optional_session),
    service: ProfileService = Depends(get_profile_service),
):
    requester_id = session.user.id if session else None
    return service.list_profiles(requester_id, search=q, limit=limit, offset=offset)


# declared before /{profile_id} so "me" is not taken for an id
@router.get("/me", response_model=ProfileRead)
def read_my_profile(
    session: AuthSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service),
):
    return service.get_profile(session.user.id)


@router.patch("/me", response_model=ProfileRead)
def update_my_profile(
    profile_in: ProfileUpdate,
    session: AuthSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service),
):
    return service.update_profile(session.user.id, session.user.id, profile_in)


@router.get("/{profile_id}", response_model=ProfileRead)
def read_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    return service.get_profile(profile_id)


@router.patch("/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: str,
    profile_in: ProfileUpdate,
    session: AuthSession = Depends(get_current_session),
    service: ProfileService = Depends(get_profile_service),
):
    return service.update_profile(session.user.id, profile_id, profile_in)
