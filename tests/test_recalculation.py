"""
Tests for the recompute path (Recalculation Trigger + Profile Aggregate
Updater) against the SQLite test database.

Covered:
  - streak fields and badge rows derived from the full entry log
  - idempotence: a second pass changes nothing, earned_at included
  - deleting entries shrinks best_streak and revokes badges
  - empty history resets everything except subscription badges
  - a failing badge evaluation leaves only that badge untouched
  - refresh_all_users sweeps every known user and reports failures
  - concurrent writers for one new user, lock registry cleanup
  - the recompute is logged once, after the owning commit

Recomputes are pinned to a fixed `today` so results do not depend on the
wall clock.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from moodjournal.core.errors import ValidationError
from moodjournal.models.badge import BadgeProgress
from moodjournal.models.profile import UserProgressProfile
from moodjournal.services import profiles, recalculation
from moodjournal.services.entries import create_entry, delete_entry
from moodjournal.services.profiles import get_or_create_profile
from moodjournal.services.recalculation import recompute, refresh, refresh_all_users, user_lock
from moodjournal.services.subscriptions import set_subscription_status

_TODAY = date(2024, 1, 10)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _add(db, user_id: str, day: str, mood: str = "good", hour: int = 12) -> int:
    d = date.fromisoformat(day)
    m = create_entry(
        db=db,
        user_id=user_id,
        content=f"entry on {day}",
        mood=mood,
        created_at=datetime(d.year, d.month, d.day, hour, 0, tzinfo=timezone.utc),
    )
    return m.entry_id


def _badges(db, user_id: str) -> dict[str, BadgeProgress]:
    db.expire_all()
    return {
        row.badge_id: row
        for row in db.query(BadgeProgress).filter(BadgeProgress.user_id == user_id).all()
    }


def _profile(db, user_id: str) -> UserProgressProfile:
    db.expire_all()
    return db.get(UserProgressProfile, user_id)


# ---------------------------------------------------------------------------
# Streaks and badges from the entry log
# ---------------------------------------------------------------------------

class TestRecompute:
    def test_three_day_streak(self, db, user_id):
        for day in ("2024-01-08", "2024-01-09", "2024-01-10"):
            _add(db, user_id, day)
        result = recompute(db, user_id, today=_TODAY)

        assert result.current_streak == 3
        assert result.best_streak == 3
        assert result.last_entry_date == _TODAY
        assert result.total_entries == 3

        profile = _profile(db, user_id)
        assert profile.current_streak == 3
        assert profile.best_streak == 3
        assert profile.last_entry_date == _TODAY

        badges = _badges(db, user_id)
        assert badges["first-step"].earned is True
        assert badges["streak-3"].earned is True
        assert badges["streak-7"].earned is False
        assert float(badges["streak-7"].progress_percentage) == pytest.approx(42.86)

    def test_profile_badge_count_matches_rows(self, db, user_id):
        for day in ("2024-01-08", "2024-01-09", "2024-01-10"):
            _add(db, user_id, day)
        result = recompute(db, user_id, today=_TODAY)
        earned = [b for b in _badges(db, user_id).values() if b.earned]
        assert result.total_badges_earned == len(earned)
        assert _profile(db, user_id).total_badges_earned == len(earned)

    def test_one_row_per_catalog_badge(self, db, user_id):
        _add(db, user_id, "2024-01-10")
        recompute(db, user_id, today=_TODAY)
        recompute(db, user_id, today=_TODAY)
        rows = db.query(BadgeProgress).filter(BadgeProgress.user_id == user_id).all()
        assert len(rows) == len({r.badge_id for r in rows})

    def test_same_day_entries_count_once(self, db, user_id):
        _add(db, user_id, "2024-01-10", hour=8)
        _add(db, user_id, "2024-01-10", hour=20)
        result = recompute(db, user_id, today=_TODAY)
        assert result.current_streak == 1
        assert result.best_streak == 1
        assert result.total_entries == 2

    def test_mood_variety(self, db, user_id):
        for i, mood in enumerate(["struggling", "low", "neutral", "good", "amazing"]):
            _add(db, user_id, f"2024-01-0{i + 1}", mood=mood)
        recompute(db, user_id, today=_TODAY)
        badge = _badges(db, user_id)["mood-variety"]
        assert badge.progress_current == 5
        assert float(badge.progress_percentage) == 100.0
        assert badge.earned is True

    def test_entries_this_month_follows_last_entry(self, db, user_id):
        _add(db, user_id, "2023-12-30")
        _add(db, user_id, "2023-12-31")
        for day in ("2024-01-02", "2024-01-05", "2024-01-09"):
            _add(db, user_id, day)
        recompute(db, user_id, today=_TODAY)
        assert _badges(db, user_id)["monthly-10"].progress_current == 3

    def test_stale_streak_is_zero(self, db, user_id):
        for day in ("2024-01-01", "2024-01-02"):
            _add(db, user_id, day)
        result = recompute(db, user_id, today=_TODAY)
        assert result.current_streak == 0
        assert result.best_streak == 2


class TestIdempotence:
    def test_second_pass_changes_nothing(self, db, user_id):
        for day in ("2024-01-08", "2024-01-09", "2024-01-10"):
            _add(db, user_id, day)
        first = recompute(db, user_id, today=_TODAY)
        before = {
            k: (r.progress_current, r.progress_percentage, r.earned, r.earned_at, r.updated_at)
            for k, r in _badges(db, user_id).items()
        }
        second = recompute(db, user_id, today=_TODAY)
        after = {
            k: (r.progress_current, r.progress_percentage, r.earned, r.earned_at, r.updated_at)
            for k, r in _badges(db, user_id).items()
        }
        assert before == after
        assert second.newly_earned == []
        assert second.revoked == []
        assert (second.current_streak, second.best_streak, second.total_badges_earned) == (
            first.current_streak, first.best_streak, first.total_badges_earned,
        )

    def test_newly_earned_reported_once(self, db, user_id):
        _add(db, user_id, "2024-01-10")
        # create_entry already ran a recompute; this pass finds nothing new
        assert "first-step" not in recompute(db, user_id, today=_TODAY).newly_earned
        assert _badges(db, user_id)["first-step"].earned_at is not None


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

class TestDeletion:
    def test_deleting_middle_day_shrinks_best_streak(self, db, user_id):
        ids = [_add(db, user_id, d) for d in ("2024-01-08", "2024-01-09", "2024-01-10")]
        recompute(db, user_id, today=_TODAY)
        assert _badges(db, user_id)["streak-3"].earned is True

        delete_entry(db, ids[1])
        result = recompute(db, user_id, today=_TODAY)
        assert result.best_streak == 1
        assert result.current_streak == 1

        badge = _badges(db, user_id)["streak-3"]
        assert badge.earned is False
        assert badge.earned_at is None

    def test_deleting_only_entry_resets_everything(self, db, user_id):
        entry_id = _add(db, user_id, "2024-01-10")
        recompute(db, user_id, today=_TODAY)
        assert _badges(db, user_id)["first-step"].earned is True

        mutation = delete_entry(db, entry_id)
        assert mutation.entry is None
        assert mutation.progress.total_entries == 0
        assert "first-step" in mutation.progress.revoked

        profile = _profile(db, user_id)
        assert profile.current_streak == 0
        assert profile.best_streak == 0
        assert profile.last_entry_date is None
        assert profile.total_badges_earned == 0
        for row in _badges(db, user_id).values():
            assert row.progress_current == 0
            assert float(row.progress_percentage) == 0.0
            assert row.earned is False
            assert row.earned_at is None


# ---------------------------------------------------------------------------
# Subscription badges
# ---------------------------------------------------------------------------

class TestSubscriptionBadges:
    def test_premium_badge_follows_status(self, db, user_id):
        result = set_subscription_status(db, user_id, "active")
        assert "premium-supporter" in result.newly_earned
        assert _profile(db, user_id).is_premium is True

        result = set_subscription_status(db, user_id, "canceled")
        assert "premium-supporter" in result.revoked
        assert _profile(db, user_id).is_premium is False

    def test_premium_badge_survives_empty_history(self, db, user_id):
        set_subscription_status(db, user_id, "trialing")
        entry_id = _add(db, user_id, "2024-01-10")
        delete_entry(db, entry_id)

        badges = _badges(db, user_id)
        assert badges["premium-supporter"].earned is True
        assert badges["first-step"].earned is False
        assert _profile(db, user_id).total_badges_earned == 1

    def test_unknown_status_rejected(self, db, user_id):
        with pytest.raises(ValidationError):
            set_subscription_status(db, user_id, "gold")


# ---------------------------------------------------------------------------
# Failure containment
# ---------------------------------------------------------------------------

class TestFailures:
    def test_one_failing_badge_does_not_block_the_rest(self, db, user_id, monkeypatch):
        _add(db, user_id, "2024-01-09")
        recompute(db, user_id, today=_TODAY)
        before = _badges(db, user_id)["streak-3"].progress_current

        real = recalculation.evaluate_badge

        def flaky(defn, metrics):
            if defn.id == "streak-3":
                raise RuntimeError("boom")
            return real(defn, metrics)

        monkeypatch.setattr(recalculation, "evaluate_badge", flaky)
        _add(db, user_id, "2024-01-10")
        result = recompute(db, user_id, today=_TODAY)

        assert result.failed_badges == ["streak-3"]
        assert result.current_streak == 2
        badges = _badges(db, user_id)
        assert badges["streak-3"].progress_current == before
        assert badges["entries-5"].progress_current == 2

    def test_invalid_today_raises_before_writing(self, db, user_id):
        _add(db, user_id, "2024-01-10")
        with pytest.raises(ValidationError):
            recompute(db, user_id, today="2024-01-10")


# ---------------------------------------------------------------------------
# Sweep
# ---------------------------------------------------------------------------

class TestRefreshAll:
    def test_refresh_all_includes_every_user(self, db, user_id):
        other = f"{user_id}-b"
        _add(db, user_id, "2024-01-10")
        _add(db, other, "2024-01-09")
        sweep = refresh_all_users(db, today=_TODAY)
        by_user = {r.user_id: r for r in sweep.results}
        assert by_user[user_id].current_streak == 1
        assert by_user[other].current_streak == 1
        assert [r.user_id for r in sweep.results] == sorted(by_user)
        assert sweep.failed_users == []

    def test_failing_user_does_not_stop_the_sweep(self, db, user_id, monkeypatch):
        broken_user = f"{user_id}-a"
        _add(db, user_id, "2024-01-10")
        _add(db, broken_user, "2024-01-10")

        real = recalculation._recompute_locked

        def flaky(session, uid, today):
            if uid == broken_user:
                raise OperationalError("SELECT", {}, Exception("connection lost"))
            return real(session, uid, today)

        monkeypatch.setattr(recalculation, "_recompute_locked", flaky)
        sweep = refresh_all_users(db, today=_TODAY)

        assert sweep.failed_users == [broken_user]
        assert user_id in {r.user_id for r in sweep.results}
        assert broken_user not in {r.user_id for r in sweep.results}


# ---------------------------------------------------------------------------
# Concurrency and transaction boundaries
# ---------------------------------------------------------------------------

class TestConcurrency:
    def test_concurrent_first_entries_for_new_user(self, db, user_id):
        new_session = sessionmaker(bind=db.get_bind(), autoflush=False)
        now = datetime.now(tz=timezone.utc)
        stamps = [now, now - timedelta(days=1)]
        start = threading.Barrier(len(stamps))

        def write(stamp):
            session = new_session()
            try:
                start.wait()
                return create_entry(
                    db=session, user_id=user_id, content="same moment",
                    mood="good", created_at=stamp,
                ).entry_id
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=len(stamps)) as pool:
            ids = list(pool.map(write, stamps))
        assert len(set(ids)) == 2

        session = new_session()
        try:
            profile = _profile(session, user_id)
            stored_profile = (
                profile.current_streak, profile.best_streak,
                profile.last_entry_date, profile.total_badges_earned,
            )
            stored_badges = {
                badge_id: (row.progress_current, row.progress_percentage, row.earned)
                for badge_id, row in _badges(session, user_id).items()
            }

            result = refresh(session, user_id)

            assert result.total_entries == 2
            assert result.current_streak == 2
            assert result.newly_earned == []
            assert result.revoked == []
            profile = _profile(session, user_id)
            assert stored_profile == (
                profile.current_streak, profile.best_streak,
                profile.last_entry_date, profile.total_badges_earned,
            )
            assert stored_badges == {
                badge_id: (row.progress_current, row.progress_percentage, row.earned)
                for badge_id, row in _badges(session, user_id).items()
            }
            assert session.query(UserProgressProfile).filter(
                UserProgressProfile.user_id == user_id
            ).count() == 1
        finally:
            session.close()

    def test_profile_insert_tolerates_existing_row(self, db, user_id):
        profiles._insert_zeroed_profile(db, user_id)
        profiles._insert_zeroed_profile(db, user_id)
        profile = get_or_create_profile(db, user_id)
        db.commit()
        assert profile.current_streak == 0
        assert db.query(UserProgressProfile).filter(
            UserProgressProfile.user_id == user_id
        ).count() == 1

    def test_lock_registry_is_released(self, db, user_id):
        _add(db, user_id, "2024-01-10")
        assert user_id not in recalculation._user_locks

    def test_user_lock_is_reentrant(self, db, user_id):
        _add(db, user_id, "2024-01-10")
        with user_lock(user_id):
            assert user_id in recalculation._user_locks
            result = recompute(db, user_id, today=_TODAY)
        assert result.current_streak == 1
        assert user_id not in recalculation._user_locks


class TestRecomputeLogging:
    def test_entry_write_logs_once_after_commit(self, db, user_id, monkeypatch):
        events = []
        real_commit = Session.commit

        def tracking_commit(self):
            events.append("commit")
            return real_commit(self)

        def record(level, msg, *args):
            if msg.startswith("Recomputed"):
                events.append(logging.getLevelName(level))

        monkeypatch.setattr(Session, "commit", tracking_commit)
        monkeypatch.setattr(recalculation.logger, "log", record)
        _add(db, user_id, "2024-01-10")

        assert events == ["DEBUG", "commit", "INFO"]

    def test_standalone_recompute_logs_info(self, db, user_id, monkeypatch):
        _add(db, user_id, "2024-01-10")
        levels = []
        monkeypatch.setattr(
            recalculation.logger, "log", lambda level, msg, *args: levels.append(level),
        )
        recompute(db, user_id, today=_TODAY)
        assert levels == [logging.INFO]
