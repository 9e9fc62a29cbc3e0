"""
Tests for the server-rendered pages and the auth form flow
"""
import pytest

from app.common.throttle import LOCKOUT_MESSAGE
from app.services.friendship_service import FriendshipService

from conftest import PASSWORD, last_code


def submit(client, **form):
    return client.post("/auth", data=form, follow_redirects=False)


def switch_mode(client, mode):
    response = client.post("/auth/mode", data={"mode": mode}, follow_redirects=False)
    assert response.status_code == 303


def sign_in(client, email, password=PASSWORD):
    switch_mode(client, "login")
    return submit(client, email=email, password=password)


@pytest.mark.parametrize("path", ["/", "/profile"])
def test_protected_pages_redirect_to_auth(client, path):
    response = client.get(path, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth"


def test_auth_page_defaults_to_login(client):
    response = client.get("/auth")
    assert response.status_code == 200
    assert "Sign in to your account" in response.text


def test_register_verify_login_flow(client):
    switch_mode(client, "register")
    assert "Create your account" in client.get("/auth").text

    response = submit(client, email="una@mailbox.org", password=PASSWORD,
                      confirm_password=PASSWORD, full_name="Una")
    assert response.status_code == 200
    assert "Registration successful! Please check your email for verification." in response.text
    assert "Verify your email" in response.text

    response = submit(client, verification_code=last_code("una@mailbox.org"))
    assert response.status_code == 200
    assert "Email verified successfully! You can now login." in response.text
    assert "Sign in to your account" in response.text

    response = submit(client, email="una@mailbox.org", password=PASSWORD)
    assert response.status_code == 303
    assert response.headers["location"] == "/"

    feed = client.get("/")
    assert feed.status_code == 200
    assert "una@mailbox.org" in feed.text

    # signed-in users are sent away from the auth page
    assert client.get("/auth", follow_redirects=False).status_code == 303

    response = client.post("/logout", follow_redirects=False)
    assert response.headers["location"] == "/auth"
    assert client.get("/", follow_redirects=False).status_code == 303


def test_register_shows_first_validation_error(client):
    switch_mode(client, "register")
    response = submit(client, email="vera@mailbox.org", password="abc", confirm_password="abc")
    assert response.status_code == 400
    assert "Password must be at least 8 characters" in response.text

    response = submit(client, email="vera@mailbox.org", password=PASSWORD, confirm_password=PASSWORD + "x")
    assert "Passwords do not match" in response.text


def test_verification_code_format_is_checked(client):
    switch_mode(client, "verify")
    response = submit(client, email="walt@mailbox.org", verification_code="12ab56")
    assert response.status_code == 400
    assert "Verification code must contain only numbers" in response.text


def test_unconfirmed_login_shows_service_message(client):
    switch_mode(client, "register")
    submit(client, email="xavi@mailbox.org", password=PASSWORD, confirm_password=PASSWORD)
    response = sign_in(client, "xavi@mailbox.org")
    assert response.status_code == 400
    assert "Email not confirmed" in response.text


def test_resend_from_verify_mode(client):
    switch_mode(client, "register")
    submit(client, email="yves@mailbox.org", password=PASSWORD, confirm_password=PASSWORD)
    response = client.post("/auth/resend")
    assert response.status_code == 200
    assert "Verification email has been resent!" in response.text


def test_lockout_after_five_failures(client, make_user):
    make_user("zoe@mailbox.org")
    switch_mode(client, "login")
    for _ in range(4):
        response = submit(client, email="zoe@mailbox.org", password="Wrong123!")
        assert response.status_code == 400
        assert "Invalid login credentials" in response.text

    response = submit(client, email="zoe@mailbox.org", password="Wrong123!")
    assert LOCKOUT_MESSAGE in response.text

    # even the right password is refused while locked
    response = submit(client, email="zoe@mailbox.org", password=PASSWORD)
    assert response.status_code == 429
    assert "Too many attempts. Please try again in" in response.text
    assert "seconds" in response.text


def test_password_reset_through_the_form(client, make_user):
    make_user("abe@mailbox.org")
    switch_mode(client, "reset")
    response = submit(client, email="abe@mailbox.org")
    assert response.status_code == 200
    assert "Password reset instructions have been sent to your email." in response.text
    assert "Choose a new password" in response.text

    new_password = "Fresh#Pass9"
    response = submit(client, verification_code=last_code("abe@mailbox.org"),
                      password=new_password, confirm_password=new_password)
    assert response.status_code == 200
    assert "Sign in to your account" in response.text

    assert sign_in(client, "abe@mailbox.org", new_password).status_code == 303


def test_feed_post_and_profile_edit(client, make_user):
    make_user("bea@mailbox.org")
    assert sign_in(client, "bea@mailbox.org").status_code == 303

    response = client.post("/", data={"content": "First post!", "privacy": "friends"}, follow_redirects=False)
    assert response.status_code == 303
    assert "First post!" in client.get("/").text

    assert "Edit" in client.get("/profile").text
    response = client.post("/profile", data={"username": "bea", "bio": "Hello from Bea"}, follow_redirects=False)
    assert response.headers["location"] == "/profile"
    page = client.get("/profile").text
    assert "Hello from Bea" in page


def test_profile_lists_and_answers_friend_requests(client, make_user, db):
    cal = make_user("cal@mailbox.org")
    dee = make_user("dee@mailbox.org")
    friendship = FriendshipService(db).send_request(dee.id, cal.id)

    assert sign_in(client, "cal@mailbox.org").status_code == 303
    assert "dee@mailbox.org" in client.get("/profile").text

    response = client.post(f"/profile/friendships/{friendship.id}", data={"status": "accepted"},
                           follow_redirects=False)
    assert response.status_code == 303
    db.refresh(friendship)
    assert friendship.status == "accepted"
    assert "No pending requests." in client.get("/profile").text
