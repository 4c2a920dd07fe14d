import uuid

import pytest
from sqlalchemy import func, select

from jukeboxd.core.exceptions import AccountNotFoundError, DeletionFailedError
from jukeboxd.db.models import AccountDeletionAudit, Activity, Follow, Rating, Review, User
from jukeboxd.db.ownership import ANONYMIZED
from jukeboxd.services import (
    account_service,
    activity_service,
    feed_service,
    rating_service,
    review_service,
    social_service,
)


@pytest.fixture
def busy_alice(db, alice, bob, carol):
    """alice: 2 ratings, 1 review, 3 follow edges (2 outgoing, 1 incoming)."""
    rating_service.upsert_rating(db, alice.id, "album-1", 5)
    rating_service.upsert_rating(db, alice.id, "album-2", 1)
    review_service.upsert_review(db, alice.id, "album-1", "Timeless")
    rating_service.upsert_rating(db, bob.id, "album-1", 3)
    social_service.follow(db, alice.id, bob.id)
    social_service.follow(db, alice.id, carol.id)
    social_service.follow(db, carol.id, alice.id)
    social_service.follow(db, bob.id, carol.id)
    return alice


def _count(db, model, *criteria) -> int:
    return db.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()


def test_deletion_anonymizes_content_and_preserves_aggregates(db, busy_alice, sessions):
    user_id = busy_alice.id
    before = {
        item: (rating_service.get_average_rating(db, item), rating_service.get_rating_count(db, item))
        for item in ("album-1", "album-2")
    }

    audit = account_service.delete_account(db, user_id, sessions=sessions)

    assert db.get(User, user_id) is None
    assert audit.user_id == user_id
    assert (audit.ratings_count, audit.reviews_count, audit.follows_count) == (2, 1, 3)

    anonymized_ratings = db.execute(
        select(Rating.rating).where(Rating.user_id.is_(None)).order_by(Rating.item_id)
    ).scalars().all()
    assert anonymized_ratings == [5, 1]
    assert _count(db, Review, Review.user_id.is_(None)) == 1
    assert _count(db, Rating, Rating.user_id == user_id) == 0

    after = {
        item: (rating_service.get_average_rating(db, item), rating_service.get_rating_count(db, item))
        for item in ("album-1", "album-2")
    }
    assert after == before


def test_deletion_removes_every_edge_of_the_user(db, busy_alice, bob, carol):
    user_id = busy_alice.id

    account_service.delete_account(db, user_id)

    assert social_service.count_edges_for_user(db, user_id) == 0
    assert _count(db, Follow) == 1
    assert social_service.is_following(db, bob.id, carol.id) is True
    assert social_service.get_follower_count(db, carol.id) == 1


def test_deletion_anonymizes_activity_but_keeps_history(db, busy_alice):
    user_id = busy_alice.id
    total_events = _count(db, Activity)

    account_service.delete_account(db, user_id)

    assert _count(db, Activity) == total_events
    assert _count(db, Activity, Activity.user_id == user_id) == 0
    recent = feed_service.get_recent_activities(db)
    anonymized = [a for a in recent if a.actor == ANONYMIZED]
    assert len(anonymized) == 3


def test_reviews_of_deleted_user_read_as_anonymized(db, busy_alice):
    account_service.delete_account(db, busy_alice.id)

    reviews = review_service.list_item_reviews(db, "album-1")

    assert [r.owner for r in reviews] == [ANONYMIZED]
    assert reviews[0].content == "Timeless"


def test_deleted_user_can_be_recreated_and_rate_again(db, busy_alice, make_user):
    account_service.delete_account(db, busy_alice.id)
    newcomer = make_user("alice")

    rating_service.upsert_rating(db, newcomer.id, "album-1", 2)

    assert rating_service.get_rating_count(db, "album-1") == 3


def test_deletion_invalidates_sessions(db, busy_alice, sessions):
    session_id = sessions.create_session(busy_alice.id)

    account_service.delete_account(db, busy_alice.id, sessions=sessions)

    assert sessions.get_session(session_id) is None


def test_session_failure_does_not_abort_deletion(db, busy_alice, caplog):
    class BrokenSessions:
        def invalidate_user_sessions(self, user_id):
            raise ConnectionError("cache down")

    user_id = busy_alice.id

    with caplog.at_level("WARNING"):
        audit = account_service.delete_account(db, user_id, sessions=BrokenSessions())

    assert db.get(User, user_id) is None
    assert audit.ratings_count == 2
    assert any("Session invalidation failed" in r.message for r in caplog.records)


def test_unknown_account_raises_not_found_and_writes_nothing(db):
    missing = uuid.uuid4()

    with pytest.raises(AccountNotFoundError):
        account_service.delete_account(db, missing)

    db.rollback()
    assert _count(db, AccountDeletionAudit) == 0
    assert account_service.get_deletion_audit(db, missing) == []


def test_failure_mid_deletion_rolls_everything_back(db, busy_alice, monkeypatch):
    user_id = busy_alice.id

    def explode(db_, user_id_):
        raise RuntimeError("disk full")

    monkeypatch.setattr(activity_service, "anonymize_actor", explode)

    with pytest.raises(DeletionFailedError) as exc_info:
        account_service.delete_account(db, user_id)

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    db.rollback()
    assert db.get(User, user_id) is not None
    assert _count(db, Rating, Rating.user_id == user_id) == 2
    assert _count(db, Review, Review.user_id == user_id) == 1
    assert social_service.count_edges_for_user(db, user_id) == 3
    assert _count(db, AccountDeletionAudit) == 0


def test_audit_record_is_retrievable(db, busy_alice):
    user_id = busy_alice.id

    audit = account_service.delete_account(db, user_id)

    records = account_service.get_deletion_audit(db, user_id)
    assert [r.id for r in records] == [audit.id]
    assert records[0].follows_count == 3
