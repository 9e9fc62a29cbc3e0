# app/services/profile_service.py

from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.errors import BadRequest, ConflictError, NotFound
from app.core.policies import Operation, Table, authorize, visible
from app.core.validation import normalize_email, validate_email
from app.models.profile import Profile, ProfileUpdate


class ProfileService:

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, profile_id: str) -> Profile:
        profile = self.db.get(Profile, profile_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def list_profiles(
        self,
        requester_id: Optional[str],
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Profile]:
        stmt = select(Profile).where(visible(Table.PROFILES, requester_id))
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Profile.username.ilike(pattern), Profile.full_name.ilike(pattern)))
        stmt = stmt.order_by(Profile.username).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars())

    def update_profile(self, requester_id: Optional[str], profile_id: str, profile_in: ProfileUpdate) -> Profile:
        profile = self.get_profile(profile_id)
        update_data = profile_in.model_dump(exclude_unset=True)
        authorize(self.db, requester_id, Table.PROFILES, Operation.UPDATE, profile, changes=update_data)

        for key, value in update_data.items():
            if key == "username":
                value = (value or "").strip() or profile.username
                self._check_username(profile, value)
            setattr(profile, key, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username already taken")
        self.db.refresh(profile)
        return profile

    @staticmethod
    def _check_username(profile: Profile, username: str) -> None:
        # new accounts start with their email as username, so only the owner may hold it
        if validate_email(username) is None and normalize_email(username) != profile.identity.email:
            raise BadRequest("Username cannot be another email address")
