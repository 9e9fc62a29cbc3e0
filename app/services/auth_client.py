# app/services/auth_client.py

import logging
from enum import Enum
from typing import Optional

from app.common.errors import AuthError
from app.core.config import settings
from app.models.identity import Identity
from app.services.auth_service import AuthEvent, AuthService, AuthSession

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    LOADING = "loading"
    SIGNED_OUT = "signed_out"
    SIGNED_IN = "signed_in"


class AuthClient:
    """
    Auth state of one client session.

    Starts in ``LOADING`` until ``restore`` (or the first auth event) tells it
    whether a session exists. Sign-in and sign-out move the state through the
    events the service emits, so whatever the service reports is what the
    client holds. Registration never signs in; it only flags that a
    verification code was sent.
    """

    def __init__(self, service: AuthService):
        self.service = service
        self.state = AuthState.LOADING
        self.session: Optional[AuthSession] = None
        self.verification_sent = False
        self._unsubscribe = service.on_auth_state_change(self._handle_auth_event)

    @property
    def user(self) -> Optional[Identity]:
        return self.session.user if self.session else None

    @property
    def loading(self) -> bool:
        return self.state == AuthState.LOADING

    @property
    def is_signed_in(self) -> bool:
        return self.state == AuthState.SIGNED_IN

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    def _handle_auth_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug("Auth event %s", event.value)
        # recovery leaves whatever session is held untouched
        if event not in (AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT):
            return
        self.session = session
        self.state = AuthState.SIGNED_IN if session else AuthState.SIGNED_OUT

    def restore(self, token: Optional[str]) -> "AuthClient":
        session = None
        if token:
            try:
                session = self.service.get_session(token)
            except AuthError:
                logger.info("Stored session is no longer valid")
        self._handle_auth_event(AuthEvent.SIGNED_IN if session else AuthEvent.SIGNED_OUT, session)
        return self

    def sign_in(self, email: str, password: str, remember_me: bool = False) -> AuthSession:
        return self.service.sign_in_with_password(email, password, remember=remember_me)

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> Identity:
        metadata = {"full_name": full_name} if full_name else {}
        identity = self.service.sign_up(
            email, password,
            redirect_to=f"{settings.SITE_URL}/auth/callback",
            metadata=metadata,
        )
        self.verification_sent = True
        return identity

    def sign_out(self) -> None:
        try:
            if self.session is not None:
                self.service.sign_out(self.session.access_token)
        finally:
            self.session = None
            self.state = AuthState.SIGNED_OUT

    def reset_password(self, email: str) -> None:
        self.service.reset_password_for_email(email, redirect_to=f"{settings.SITE_URL}/auth/reset-password")

    def complete_password_reset(self, email: str, token: str, new_password: str) -> Identity:
        return self.service.complete_password_reset(email, token, new_password)

    def verify_otp(self, email: str, token: str) -> Identity:
        return self.service.verify_otp(email, token)

    def resend_verification(self, email: str) -> None:
        self.service.resend(email, redirect_to=f"{settings.SITE_URL}/auth/callback")
        self.verification_sent = True

    def close(self) -> None:
        self._unsubscribe()
