# app/routers/pages.py
"""
Server-rendered pages: the auth form, the feed and the profile.

The signed session cookie holds the access token plus the auth form's own
state (mode, email, failure counter). Every handler gets an ``AuthClient``
restored from that cookie instead of reaching for global state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from app.common.deps import (
    SESSION_TOKEN_KEY,
    get_auth_client,
    get_friendship_service,
    get_post_service,
    get_profile_service,
    require_auth_client,
)
from app.common.errors import SocialNetError
from app.common.limiter import limiter
from app.common.throttle import AttemptThrottle
from app.core.config import settings
from app.core.templates import render_template
from app.core.validation import (
    validate_email,
    validate_password,
    validate_password_confirmation,
    validate_verification_code,
)
from app.models.friendship import FriendshipStatus
from app.models.post import PostCreate
from app.models.profile import ProfileUpdate
from app.services.auth_client import AuthClient
from app.services.friendship_service import FriendshipService
from app.services.post_service import PostService
from app.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter()

MODE_KEY = "auth_mode"
EMAIL_KEY = "auth_email"
FLASH_KEY = "flash"

AUTH_MODES = {
    # mode: (title, submit label)
    "login": ("Sign in to your account", "Sign in"),
    "register": ("Create your account", "Sign up"),
    "verify": ("Verify your email", "Verify Email"),
    "reset": ("Reset your password", "Reset Password"),
    "new-password": ("Choose a new password", "Update Password"),
}

GENERIC_ERROR = "An error occurred"


class FormError(Exception):
    pass


def _check(message: Optional[str]) -> None:
    if message:
        raise FormError(message)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _flash(request: Request, error: Optional[str] = None, success: Optional[str] = None) -> None:
    request.session[FLASH_KEY] = {"error": error, "success": success}


def _pop_flash(request: Request) -> dict:
    return request.session.pop(FLASH_KEY, None) or {}


def _render_auth(request: Request, error=None, success=None, status_code=200):
    mode = request.session.get(MODE_KEY, "login")
    title, submit_label = AUTH_MODES[mode]
    throttle = AttemptThrottle.load(request.session)
    return render_template(request, "auth.html", {
        "mode": mode,
        "title": title,
        "submit_label": submit_label,
        "email": request.session.get(EMAIL_KEY, ""),
        "error": error,
        "success": success,
        "locked": throttle.locked,
    }, status_code=status_code)


# --- /auth ------------------------------------------------------------------

@router.get("/auth")
def auth_page(request: Request, client: AuthClient = Depends(get_auth_client)):
    if client.is_signed_in:
        return _redirect("/")
    flash = _pop_flash(request)
    return _render_auth(request, error=flash.get("error"), success=flash.get("success"))


@router.post("/auth")
@limiter.limit(settings.AUTH_RATE_LIMIT)
def auth_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    verification_code: str = Form(""),
    full_name: str = Form(""),
    remember_me: bool = Form(False),
    client: AuthClient = Depends(get_auth_client),
):
    mode = request.session.get(MODE_KEY, "login")
    throttle = AttemptThrottle.load(request.session)

    locked_message = throttle.check()
    if locked_message:
        throttle.save(request.session)
        return _render_auth(request, error=locked_message, status_code=429)

    email = email.strip() or request.session.get(EMAIL_KEY, "")
    request.session[EMAIL_KEY] = email
    success = None
    try:
        _check(validate_email(email))

        if mode == "login":
            _check(validate_password(password))
            session = client.sign_in(email, password, remember_me=remember_me)
            request.session[SESSION_TOKEN_KEY] = session.access_token
            request.session.pop(MODE_KEY, None)
            throttle.record_success()
            throttle.save(request.session)
            return _redirect("/")

        elif mode == "register":
            _check(validate_password(password))
            _check(validate_password_confirmation(password, confirm_password))
            client.sign_up(email, password, full_name=full_name.strip() or None)
            mode = "verify"
            success = "Registration successful! Please check your email for verification."

        elif mode == "verify":
            _check(validate_verification_code(verification_code))
            client.verify_otp(email, verification_code)
            mode = "login"
            success = "Email verified successfully! You can now login."

        elif mode == "reset":
            client.reset_password(email)
            mode = "new-password"
            success = "Password reset instructions have been sent to your email."

        elif mode == "new-password":
            _check(validate_verification_code(verification_code))
            _check(validate_password(password))
            _check(validate_password_confirmation(password, confirm_password))
            client.complete_password_reset(email, verification_code, password)
            mode = "login"
            success = "Password updated! You can now login."

        throttle.record_success()
    except (FormError, SocialNetError) as exc:
        message = exc.message if isinstance(exc, SocialNetError) else str(exc)
        error = throttle.record_failure() or message
        throttle.save(request.session)
        return _render_auth(request, error=error, status_code=400)
    except Exception:
        logger.exception("Auth form submission failed (mode=%s)", mode)
        error = throttle.record_failure() or GENERIC_ERROR
        throttle.save(request.session)
        return _render_auth(request, error=error, status_code=500)

    throttle.save(request.session)
    request.session[MODE_KEY] = mode
    return _render_auth(request, success=success)


@router.post("/auth/mode")
def switch_auth_mode(request: Request, mode: str = Form(...)):
    if mode in AUTH_MODES:
        request.session[MODE_KEY] = mode
    return _redirect("/auth")


@router.post("/auth/resend")
def resend_verification(request: Request, client: AuthClient = Depends(get_auth_client)):
    email = request.session.get(EMAIL_KEY, "")
    try:
        _check(validate_email(email))
        client.resend_verification(email)
    except (FormError, SocialNetError) as exc:
        _flash(request, error=getattr(exc, "message", str(exc)) or "Failed to resend verification email")
    else:
        _flash(request, success="Verification email has been resent!")
    return _redirect("/auth")


@router.get("/auth/callback")
def auth_callback(request: Request, email: Optional[str] = None):
    request.session[MODE_KEY] = "verify"
    if email:
        request.session[EMAIL_KEY] = email
    return _redirect("/auth")


@router.get("/auth/reset-password")
def auth_reset_password(request: Request, email: Optional[str] = None):
    request.session[MODE_KEY] = "new-password"
    if email:
        request.session[EMAIL_KEY] = email
    return _redirect("/auth")


@router.post("/logout")
def logout(request: Request, client: AuthClient = Depends(get_auth_client)):
    try:
        client.sign_out()
    except SocialNetError as exc:
        logger.info("Sign-out of an already invalid session: %s", exc.message)
    request.session.pop(SESSION_TOKEN_KEY, None)
    return _redirect("/auth")


# --- feed -------------------------------------------------------------------

@router.get("/")
def feed_page(
    request: Request,
    client: AuthClient = Depends(require_auth_client),
    posts: PostService = Depends(get_post_service),
):
    flash = _pop_flash(request)
    return render_template(request, "home.html", {
        "user": client.user,
        "posts": posts.list_feed(client.user.id),
        "error": flash.get("error"),
    })


@router.post("/")
def create_post(
    request: Request,
    content: str = Form(""),
    image_url: str = Form(""),
    privacy: str = Form("public"),
    client: AuthClient = Depends(require_auth_client),
    posts: PostService = Depends(get_post_service),
):
    if not content.strip():
        return _redirect("/")
    try:
        post_in = PostCreate(content=content, image_url=image_url or None, privacy=privacy)
        posts.create_post(client.user.id, post_in)
    except ValidationError as exc:
        _flash(request, error=exc.errors()[0]["msg"])
    except SocialNetError as exc:
        _flash(request, error=exc.message)
    # always a full re-fetch of the feed
    return _redirect("/")


# --- profile ----------------------------------------------------------------

@router.get("/profile")
def profile_page(
    request: Request,
    edit: bool = False,
    client: AuthClient = Depends(require_auth_client),
    profiles: ProfileService = Depends(get_profile_service),
    friendships: FriendshipService = Depends(get_friendship_service),
):
    user_id = client.user.id
    flash = _pop_flash(request)
    return render_template(request, "profile.html", {
        "user": client.user,
        "profile": profiles.get_profile(user_id),
        "editing": edit,
        "pending": friendships.list_friendships(user_id, status=FriendshipStatus.PENDING, incoming_only=True),
        "friends": friendships.list_friendships(user_id, status=FriendshipStatus.ACCEPTED),
        "error": flash.get("error"),
    })


@router.post("/profile")
def update_profile(
    request: Request,
    username: str = Form(""),
    full_name: str = Form(""),
    avatar_url: str = Form(""),
    bio: str = Form(""),
    client: AuthClient = Depends(require_auth_client),
    profiles: ProfileService = Depends(get_profile_service),
):
    try:
        profile_in = ProfileUpdate(
            username=username.strip() or None,
            full_name=full_name.strip() or None,
            avatar_url=avatar_url.strip() or None,
            bio=bio.strip() or None,
        )
        profiles.update_profile(client.user.id, client.user.id, profile_in)
    except ValidationError as exc:
        _flash(request, error=exc.errors()[0]["msg"])
        return _redirect("/profile?edit=1")
    except SocialNetError as exc:
        _flash(request, error=exc.message)
        return _redirect("/profile?edit=1")
    return _redirect("/profile")


@router.post("/profile/friendships/{friendship_id}")
def respond_to_friend_request(
    request: Request,
    friendship_id: str,
    status: FriendshipStatus = Form(...),
    client: AuthClient = Depends(require_auth_client),
    friendships: FriendshipService = Depends(get_friendship_service),
):
    try:
        friendships.update_status(client.user.id, friendship_id, status)
    except SocialNetError as exc:
        _flash(request, error=exc.message)
    return _redirect("/profile")
