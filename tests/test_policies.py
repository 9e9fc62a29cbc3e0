"""
Tests for row-level authorization, exercised through the data services
"""
import pytest

from app.common.errors import NotFound, PolicyViolation
from app.core.policies import Operation, Table, get_policy, is_allowed
from app.models.friendship import FriendshipStatus
from app.models.post import PostCreate, PostUpdate, Privacy
from app.models.profile import ProfileUpdate
from app.services.friendship_service import FriendshipService
from app.services.post_service import PostService
from app.services.profile_service import ProfileService


@pytest.fixture
def people(make_user):
    owner = make_user("owner@mailbox.org")
    friend = make_user("friend@mailbox.org")
    stranger = make_user("stranger@mailbox.org")
    return owner, friend, stranger


@pytest.fixture
def posts_by_owner(db, people):
    owner, _, _ = people
    service = PostService(db)
    return {
        privacy: service.create_post(owner.id, PostCreate(content=f"{privacy.value} post", privacy=privacy))
        for privacy in Privacy
    }


def visible_contents(db, requester_id):
    return {p.content for p in PostService(db).list_feed(requester_id)}


def befriend(db, sender_id, receiver_id, status=FriendshipStatus.ACCEPTED):
    service = FriendshipService(db)
    friendship = service.send_request(sender_id, receiver_id)
    if status != FriendshipStatus.PENDING:
        friendship = service.update_status(receiver_id, friendship.id, status)
    return friendship


def test_owner_sees_all_of_their_posts(db, people, posts_by_owner):
    owner, _, _ = people
    assert visible_contents(db, owner.id) == {"public post", "friends post", "private post"}


def test_stranger_and_anonymous_see_only_public(db, people, posts_by_owner):
    _, _, stranger = people
    assert visible_contents(db, stranger.id) == {"public post"}
    assert visible_contents(db, None) == {"public post"}


@pytest.mark.parametrize("owner_sends", [True, False])
def test_accepted_friendship_in_either_direction_shows_friends_posts(db, people, posts_by_owner, owner_sends):
    owner, friend, _ = people
    if owner_sends:
        befriend(db, owner.id, friend.id)
    else:
        befriend(db, friend.id, owner.id)
    assert visible_contents(db, friend.id) == {"public post", "friends post"}


def test_pending_friendship_does_not_grant_visibility(db, people, posts_by_owner):
    owner, friend, _ = people
    befriend(db, friend.id, owner.id, status=FriendshipStatus.PENDING)
    assert visible_contents(db, friend.id) == {"public post"}


def test_rejecting_a_friendship_hides_friends_posts_on_next_read(db, people, posts_by_owner):
    owner, friend, _ = people
    friendship = befriend(db, friend.id, owner.id)
    friends_post = posts_by_owner[Privacy.FRIENDS]
    assert PostService(db).get_post(friend.id, friends_post.id).id == friends_post.id

    FriendshipService(db).update_status(owner.id, friendship.id, FriendshipStatus.REJECTED)

    assert visible_contents(db, friend.id) == {"public post"}
    with pytest.raises(NotFound):
        PostService(db).get_post(friend.id, friends_post.id)


def test_private_post_is_only_visible_to_owner_even_for_friends(db, people, posts_by_owner):
    owner, friend, _ = people
    befriend(db, owner.id, friend.id)
    private_post = posts_by_owner[Privacy.PRIVATE]
    with pytest.raises(NotFound):
        PostService(db).get_post(friend.id, private_post.id)
    assert PostService(db).get_post(owner.id, private_post.id).id == private_post.id


def test_friendship_insert_for_someone_else_is_rejected(db, people):
    owner, friend, stranger = people
    with pytest.raises(PolicyViolation):
        FriendshipService(db).send_request(stranger.id, friend.id, sender_id=owner.id)
    assert FriendshipService(db).list_friendships(owner.id) == []


def test_post_insert_for_someone_else_is_rejected(db, people):
    owner, _, stranger = people
    with pytest.raises(PolicyViolation):
        PostService(db).create_post(stranger.id, PostCreate(content="spoof", user_id=owner.id))


def test_only_parties_can_read_or_update_a_friendship(db, people):
    owner, friend, stranger = people
    friendship = befriend(db, friend.id, owner.id, status=FriendshipStatus.PENDING)
    service = FriendshipService(db)

    assert [f.id for f in service.list_friendships(stranger.id)] == []
    with pytest.raises(NotFound):
        service.update_status(stranger.id, friendship.id, FriendshipStatus.ACCEPTED)

    assert service.update_status(owner.id, friendship.id, FriendshipStatus.ACCEPTED).status == "accepted"


def test_friendship_update_may_only_touch_status(db, people):
    owner, friend, _ = people
    friendship = befriend(db, friend.id, owner.id, status=FriendshipStatus.PENDING)
    assert is_allowed(db, owner.id, Table.FRIENDSHIPS, Operation.UPDATE, friendship, changes=["status"])
    assert not is_allowed(db, owner.id, Table.FRIENDSHIPS, Operation.UPDATE, friendship, changes=["sender_id"])


def test_only_owner_updates_and_deletes_posts(db, people, posts_by_owner):
    owner, _, stranger = people
    public_post = posts_by_owner[Privacy.PUBLIC]
    service = PostService(db)

    with pytest.raises(PolicyViolation):
        service.update_post(stranger.id, public_post.id, PostUpdate(content="defaced"))
    with pytest.raises(PolicyViolation):
        service.delete_post(stranger.id, public_post.id)

    updated = service.update_post(owner.id, public_post.id, PostUpdate(privacy=Privacy.FRIENDS))
    assert updated.privacy == "friends"
    assert visible_contents(db, stranger.id) == set()


def test_profiles_are_public_but_only_owner_updates(db, people):
    owner, _, stranger = people
    service = ProfileService(db)
    assert {p.id for p in service.list_profiles(None)} >= {owner.id, stranger.id}

    with pytest.raises(PolicyViolation):
        service.update_profile(stranger.id, owner.id, ProfileUpdate(bio="hacked"))

    assert service.update_profile(owner.id, owner.id, ProfileUpdate(bio="hello")).bio == "hello"


def test_unregistered_operation_is_denied(db, people):
    owner, _, _ = people
    assert get_policy(Table.PROFILES, Operation.DELETE) is None
    profile = ProfileService(db).get_profile(owner.id)
    assert not is_allowed(db, owner.id, Table.PROFILES, Operation.DELETE, profile)
