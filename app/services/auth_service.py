# app/services/auth_service.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from jose import JWTError
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.errors import (
    BadRequest,
    EmailNotConfirmed,
    InvalidCredentials,
    InvalidOtp,
    InvalidToken,
    ProvisioningError,
    UserAlreadyExists,
)
from app.common.mailer import Mailer, get_mailer
from app.core.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_otp,
    get_password_hash,
    hash_otp,
    verify_otp_hash,
    verify_password,
)
from app.core.validation import (
    normalize_email,
    validate_email,
    validate_password,
    validate_verification_code,
)
from app.db.base_class import utcnow
from app.models.identity import Identity, OneTimeCode, OtpPurpose, RevokedToken
from app.models.profile import Profile

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


@dataclass
class AuthSession:
    access_token: str
    jti: str
    expires_at: datetime
    user: Identity
    token_type: str = "bearer"


Listener = Callable[[AuthEvent, Optional[AuthSession]], None]


class AuthService:
    """Identity service: accounts, email codes, tokens and sign-out."""

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        self.db = db
        self.mailer = mailer or get_mailer()
        self._listeners: List[Listener] = []

    # --- auth state notifications ------------------------------------------

    def on_auth_state_change(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    # --- lookups ------------------------------------------------------------

    def _find_identity(self, email: str) -> Optional[Identity]:
        stmt = select(Identity).where(Identity.email == normalize_email(email))
        return self.db.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _require_valid(message: Optional[str]) -> None:
        if message:
            raise BadRequest(message)

    # --- one-time codes -----------------------------------------------------

    def _issue_code(self, identity: Identity, purpose: OtpPurpose) -> str:
        now = utcnow()
        # a new code replaces any earlier one for the same purpose
        self.db.execute(
            update(OneTimeCode)
            .where(
                OneTimeCode.identity_id == identity.id,
                OneTimeCode.purpose == purpose.value,
                OneTimeCode.consumed_at.is_(None),
            )
            .values(consumed_at=now)
        )
        code = generate_otp()
        self.db.add(OneTimeCode(
            identity_id=identity.id,
            purpose=purpose.value,
            code_hash=hash_otp(code),
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        ))
        return code

    def _consume_code(self, identity: Identity, purpose: OtpPurpose, code: str) -> None:
        stmt = (
            select(OneTimeCode)
            .where(
                OneTimeCode.identity_id == identity.id,
                OneTimeCode.purpose == purpose.value,
                OneTimeCode.consumed_at.is_(None),
                OneTimeCode.expires_at > utcnow(),
            )
            .order_by(OneTimeCode.created_at.desc())
        )
        candidates = list(self.db.execute(stmt).scalars())
        for candidate in candidates:
            if verify_otp_hash(code, candidate.code_hash):
                candidate.consumed_at = utcnow()
                return
        # a wrong guess counts against every live code; used up codes are burnt
        for candidate in candidates:
            candidate.failed_attempts = (candidate.failed_attempts or 0) + 1
            if candidate.failed_attempts >= settings.OTP_MAX_ATTEMPTS:
                candidate.consumed_at = utcnow()
                logger.info("Code %s for identity %s burnt after %s failed attempts",
                            candidate.id, identity.id, candidate.failed_attempts)
        self.db.commit()
        raise InvalidOtp()

    def _send_signup_code(self, email: str, code: str, redirect_to: Optional[str]) -> None:
        lines = [
            "Welcome to SocialNet!",
            "",
            f"Your verification code is {code}.",
            f"It expires in {settings.OTP_EXPIRE_MINUTES} minutes.",
        ]
        if redirect_to:
            lines += ["", f"Or continue at {redirect_to}"]
        self.mailer.send(email, "Confirm your email", "\n".join(lines))

    # --- operations ---------------------------------------------------------

    def sign_up(
        self,
        email: str,
        password: str,
        redirect_to: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Identity:
        """
        Create the identity and its profile in one transaction.

        The account is unconfirmed until ``verify_otp`` succeeds with the code
        that is mailed out after the commit. When the profile row cannot be
        written the whole transaction is rolled back, so there is never an
        identity without a profile.
        """
        self._require_valid(validate_email(email))
        self._require_valid(validate_password(password))
        email = normalize_email(email)
        metadata = dict(metadata or {})

        if self._find_identity(email) is not None:
            raise UserAlreadyExists()

        identity = Identity(
            email=email,
            hashed_password=get_password_hash(password),
            user_metadata=metadata,
        )
        try:
            self.db.add(identity)
            self.db.flush()
            self.db.add(Profile(id=identity.id, username=email, full_name=metadata.get("full_name")))
            self.db.flush()
            code = self._issue_code(identity, OtpPurpose.SIGNUP)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if self._find_identity(email) is not None:
                raise UserAlreadyExists()
            logger.error("Provisioning failed for %s, identity rolled back: %s", email, exc.orig)
            raise ProvisioningError()

        logger.info("Registered identity %s", identity.id)
        self._send_signup_code(email, code, redirect_to)
        return identity

    def sign_in_with_password(self, email: str, password: str, remember: bool = False) -> AuthSession:
        identity = self._find_identity(email)
        if identity is None or not verify_password(password, identity.hashed_password):
            logger.info("Failed sign-in for %s", normalize_email(email))
            raise InvalidCredentials()
        if not identity.is_confirmed:
            raise EmailNotConfirmed()

        if remember:
            lifetime = timedelta(days=settings.REMEMBER_ME_EXPIRE_DAYS)
        else:
            lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token, jti, expires_at = create_access_token(identity.id, identity.email, expires_delta=lifetime)
        session = AuthSession(access_token=token, jti=jti, expires_at=expires_at, user=identity)
        logger.info("Identity %s signed in", identity.id)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def get_session(self, token: str) -> AuthSession:
        try:
            payload = decode_access_token(token)
        except JWTError:
            raise InvalidToken()
        user_id = payload.get("sub")
        jti = payload.get("jti")
        if user_id is None or jti is None:
            raise InvalidToken()
        if self.db.get(RevokedToken, jti) is not None:
            raise InvalidToken()
        identity = self.db.get(Identity, user_id)
        if identity is None:
            raise InvalidToken()
        expires_at = datetime.fromtimestamp(payload["exp"], timezone.utc).replace(tzinfo=None)
        return AuthSession(access_token=token, jti=jti, expires_at=expires_at, user=identity)

    def sign_out(self, token: str) -> None:
        session = self.get_session(token)
        self.db.execute(delete(RevokedToken).where(RevokedToken.expires_at < utcnow()))
        self.db.add(RevokedToken(jti=session.jti, expires_at=session.expires_at))
        self.db.commit()
        logger.info("Identity %s signed out", session.user.id)
        self._emit(AuthEvent.SIGNED_OUT, None)

    def verify_otp(self, email: str, token: str) -> Identity:
        """Confirm a signup with the 6-digit code. Does not sign the user in."""
        self._require_valid(validate_verification_code(token))
        identity = self._find_identity(email)
        if identity is None:
            raise InvalidOtp()
        self._consume_code(identity, OtpPurpose.SIGNUP, token)
        if identity.email_confirmed_at is None:
            identity.email_confirmed_at = utcnow()
        self.db.commit()
        logger.info("Identity %s confirmed email", identity.id)
        return identity

    def resend(self, email: str, redirect_to: Optional[str] = None) -> None:
        identity = self._find_identity(email)
        if identity is None or identity.is_confirmed:
            # same answer either way, so the endpoint does not reveal accounts
            logger.info("Resend requested for unknown or confirmed email")
            return
        code = self._issue_code(identity, OtpPurpose.SIGNUP)
        self.db.commit()
        self._send_signup_code(identity.email, code, redirect_to)

    def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        self._require_valid(validate_email(email))
        identity = self._find_identity(email)
        if identity is None:
            logger.info("Password reset requested for unknown email")
            return
        code = self._issue_code(identity, OtpPurpose.RECOVERY)
        self.db.commit()
        lines = [
            "Someone asked to reset your SocialNet password.",
            "",
            f"Your reset code is {code}.",
        ]
        if redirect_to:
            lines += [f"Enter it at {redirect_to}"]
        lines += ["", "If this wasn't you, you can ignore this email."]
        self.mailer.send(identity.email, "Reset your password", "\n".join(lines))

    def complete_password_reset(self, email: str, token: str, new_password: str) -> Identity:
        self._require_valid(validate_verification_code(token))
        self._require_valid(validate_password(new_password))
        identity = self._find_identity(email)
        if identity is None:
            raise InvalidOtp()
        self._consume_code(identity, OtpPurpose.RECOVERY, token)
        identity.hashed_password = get_password_hash(new_password)
        # the code reached the inbox, so the address is proven as well
        if identity.email_confirmed_at is None:
            identity.email_confirmed_at = utcnow()
        self.db.commit()
        logger.info("Identity %s reset its password", identity.id)
        self._emit(AuthEvent.PASSWORD_RECOVERY, None)
        return identity
