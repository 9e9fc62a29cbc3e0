# app/routers/auth.py

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from app.common.deps import get_auth_service, get_current_session
from app.common.limiter import limiter
from app.core.config import settings
from app.core.validation import EmailAddress, Password, VerificationCode
from app.models.identity import SessionRead, UserRead
from app.services.auth_service import AuthService, AuthSession

router = APIRouter()


class SignUpRequest(BaseModel):
    email: EmailAddress
    password: Password
    full_name: Optional[str] = Field(None, max_length=255)
    redirect_to: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False


class VerifyRequest(BaseModel):
    email: EmailAddress
    token: VerificationCode


class EmailRequest(BaseModel):
    email: EmailAddress
    redirect_to: Optional[str] = None


class PasswordResetRequest(BaseModel):
    email: EmailAddress
    token: VerificationCode
    password: Password


class MessageResponse(BaseModel):
    message: str


def _session_read(session: AuthSession) -> SessionRead:
    return SessionRead(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_at=session.expires_at,
        user=UserRead.model_validate(session.user),
    )


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def sign_up(request: Request, payload: SignUpRequest, service: AuthService = Depends(get_auth_service)):
    metadata = {"full_name": payload.full_name} if payload.full_name else {}
    return service.sign_up(
        payload.email,
        payload.password,
        redirect_to=payload.redirect_to or f"{settings.SITE_URL}/auth/callback",
        metadata=metadata,
    )


@router.post("/token", response_model=SessionRead)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login_for_access_token(request: Request, payload: SignInRequest, service: AuthService = Depends(get_auth_service)):
    session = service.sign_in_with_password(payload.email, payload.password, remember=payload.remember_me)
    return _session_read(session)


@router.post("/logout", response_model=MessageResponse)
def logout(
    session: AuthSession = Depends(get_current_session),
    service: AuthService = Depends(get_auth_service),
):
    service.sign_out(session.access_token)
    return MessageResponse(message="Signed out")


@router.post("/verify", response_model=UserRead)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def verify(request: Request, payload: VerifyRequest, service: AuthService = Depends(get_auth_service)):
    return service.verify_otp(payload.email, payload.token)


@router.post("/resend", response_model=MessageResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def resend(request: Request, payload: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.resend(payload.email, redirect_to=payload.redirect_to or f"{settings.SITE_URL}/auth/callback")
    return MessageResponse(message="If the account is awaiting verification, a new code has been sent")


@router.post("/recover", response_model=MessageResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def recover(request: Request, payload: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password_for_email(
        payload.email, redirect_to=payload.redirect_to or f"{settings.SITE_URL}/auth/reset-password"
    )
    return MessageResponse(message="Password reset instructions have been sent to your email")


@router.post("/password", response_model=MessageResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def update_password(request: Request, payload: PasswordResetRequest, service: AuthService = Depends(get_auth_service)):
    service.complete_password_reset(payload.email, payload.token, payload.password)
    return MessageResponse(message="Password updated, you can now sign in")


@router.get("/me", response_model=UserRead)
def read_users_me(session: AuthSession = Depends(get_current_session)):
    return session.user
