# app/common/deps.py

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.common.errors import AuthError
from app.common.mailer import Mailer, get_mailer
from app.db.session import get_db
from app.services.auth_client import AuthClient
from app.services.auth_service import AuthService, AuthSession
from app.services.friendship_service import FriendshipService
from app.services.post_service import PostService
from app.services.profile_service import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)

# key of the access token inside the signed session cookie
SESSION_TOKEN_KEY = "access_token"


class LoginRequired(Exception):
    """Raised by page dependencies; main.py turns it into a redirect to /auth."""


def get_auth_service(db: Session = Depends(get_db), mailer: Mailer = Depends(get_mailer)) -> AuthService:
    return AuthService(db=db, mailer=mailer)


def get_post_service(db: Session = Depends(get_db)) -> PostService:
    return PostService(db=db)


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db=db)


def get_friendship_service(db: Session = Depends(get_db)) -> FriendshipService:
    return FriendshipService(db=db)


# --- API (bearer token) -------------------------------------------------------

def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[AuthSession]:
    if credentials is None:
        return None
    try:
        return auth_service.get_session(credentials.credentials)
    except AuthError:
        return None


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthSession:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        return auth_service.get_session(credentials.credentials)
    except AuthError:
        raise credentials_exception


# --- pages (session cookie) ---------------------------------------------------

def get_auth_client(request: Request, auth_service: AuthService = Depends(get_auth_service)) -> AuthClient:
    client = AuthClient(auth_service).restore(request.session.get(SESSION_TOKEN_KEY))
    if not client.is_signed_in:
        request.session.pop(SESSION_TOKEN_KEY, None)
    return client


def require_auth_client(client: AuthClient = Depends(get_auth_client)) -> AuthClient:
    if not client.is_signed_in:
        raise LoginRequired()
    return client
