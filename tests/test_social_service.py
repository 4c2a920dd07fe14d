import uuid

import pytest
from sqlalchemy import select

from jukeboxd.core.exceptions import (
    AlreadyFollowingError,
    NotFollowingError,
    SelfFollowError,
    UserNotFoundError,
    ValidationError,
)
from jukeboxd.db.models import Follow
from jukeboxd.services import social_service


def test_follow_creates_edge_and_updates_counts(db, alice, bob):
    assert social_service.get_follower_count(db, bob.id) == 0
    assert social_service.get_following_count(db, alice.id) == 0

    edge = social_service.follow(db, alice.id, bob.id)

    assert edge.follower_id == alice.id
    assert edge.followee_id == bob.id
    assert social_service.is_following(db, alice.id, bob.id) is True
    assert social_service.is_following(db, bob.id, alice.id) is False
    assert [u.id for u in social_service.get_followers(db, bob.id)] == [alice.id]
    assert [u.id for u in social_service.get_following(db, alice.id)] == [bob.id]
    assert social_service.get_follower_count(db, bob.id) == 1
    assert social_service.get_following_count(db, alice.id) == 1


def test_self_follow_rejected_without_writing(db, alice):
    with pytest.raises(SelfFollowError) as exc_info:
        social_service.follow(db, alice.id, alice.id)

    assert exc_info.value.message == "Users cannot follow themselves"
    assert isinstance(exc_info.value, ValidationError)
    assert db.execute(select(Follow)).first() is None


def test_is_following_self_is_false(db, alice):
    assert social_service.is_following(db, alice.id, alice.id) is False


def test_duplicate_follow_conflicts_and_keeps_single_edge(db, alice, bob):
    social_service.follow(db, alice.id, bob.id)

    with pytest.raises(AlreadyFollowingError) as exc_info:
        social_service.follow(db, alice.id, bob.id)

    assert exc_info.value.message == "User is already following this user"
    assert social_service.get_follower_count(db, bob.id) == 1


def test_follow_race_lost_at_constraint_maps_to_already_following(db, alice, bob, monkeypatch):
    social_service.follow(db, alice.id, bob.id)
    # Simulate the check-then-insert window: the pre-check sees no edge.
    real_is_following = social_service.is_following
    calls = {"n": 0}

    def stale_then_real(db_, follower_id, followee_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return False
        return real_is_following(db_, follower_id, followee_id)

    monkeypatch.setattr(social_service, "is_following", stale_then_real)

    with pytest.raises(AlreadyFollowingError):
        social_service.follow(db, alice.id, bob.id)

    db.rollback()
    assert social_service.get_follower_count(db, bob.id) == 1


def test_follow_unknown_user_is_not_found(db, alice):
    with pytest.raises(UserNotFoundError):
        social_service.follow(db, alice.id, uuid.uuid4())


def test_unfollow_removes_edge(db, alice, bob):
    social_service.follow(db, alice.id, bob.id)

    social_service.unfollow(db, alice.id, bob.id)

    assert social_service.is_following(db, alice.id, bob.id) is False
    assert social_service.get_follower_count(db, bob.id) == 0
    assert social_service.get_following_count(db, alice.id) == 0


def test_unfollow_without_edge_is_not_found(db, alice, bob):
    with pytest.raises(NotFollowingError) as exc_info:
        social_service.unfollow(db, alice.id, bob.id)

    assert exc_info.value.message == "User is not following this user"


def test_followers_listed_most_recent_edge_first(db, alice, bob, carol):
    social_service.follow(db, bob.id, alice.id)
    social_service.follow(db, carol.id, alice.id)

    followers = social_service.get_followers(db, alice.id)

    assert [u.username for u in followers] == ["carol", "bob"]


def test_follower_list_matches_count(db, alice, bob, carol):
    social_service.follow(db, bob.id, alice.id)
    social_service.follow(db, carol.id, alice.id)

    assert len(social_service.get_followers(db, alice.id)) == social_service.get_follower_count(
        db, alice.id
    )


def test_get_followers_of_unknown_user_is_not_found(db):
    with pytest.raises(UserNotFoundError):
        social_service.get_followers(db, uuid.uuid4())


def test_is_following_multiple(db, alice, bob, carol):
    social_service.follow(db, alice.id, bob.id)

    status = social_service.is_following_multiple(db, alice.id, [bob.id, carol.id])

    assert status == {bob.id: True, carol.id: False}
    assert social_service.is_following_multiple(db, alice.id, []) == {}


def test_mutual_follows(db, alice, bob, carol):
    social_service.follow(db, alice.id, bob.id)
    social_service.follow(db, bob.id, alice.id)
    social_service.follow(db, alice.id, carol.id)

    mutual = social_service.get_mutual_follows(db, alice.id)

    assert [u.id for u in mutual] == [bob.id]


def test_follow_suggestions_exclude_self_and_followed(db, alice, bob, carol):
    social_service.follow(db, alice.id, bob.id)

    suggestions = social_service.get_follow_suggestions(db, alice.id)

    assert [u.id for u in suggestions] == [carol.id]


def test_follow_suggestions_limit_validated(db, alice):
    with pytest.raises(ValidationError):
        social_service.get_follow_suggestions(db, alice.id, limit=0)


def test_profile_with_stats(db, alice, bob, carol):
    social_service.follow(db, bob.id, alice.id)
    social_service.follow(db, carol.id, alice.id)
    social_service.follow(db, alice.id, bob.id)

    profile = social_service.get_profile_with_stats(db, alice.id)

    assert profile.username == "alice"
    assert profile.follower_count == 2
    assert profile.following_count == 1


def test_delete_edges_for_user_removes_both_directions(db, alice, bob, carol):
    social_service.follow(db, alice.id, bob.id)
    social_service.follow(db, carol.id, alice.id)
    social_service.follow(db, bob.id, carol.id)

    assert social_service.count_edges_for_user(db, alice.id) == 2
    removed = social_service.delete_edges_for_user(db, alice.id)

    assert removed == 2
    assert social_service.count_edges_for_user(db, alice.id) == 0
    assert social_service.is_following(db, bob.id, carol.id) is True
