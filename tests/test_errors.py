"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
import logging

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from moodjournal.core.errors import (
    BadgeNotFoundError,
    EntryNotFoundError,
    ProfileNotFoundError,
    TransientStorageError,
    UnknownBadgeCategoryError,
    ValidationError,
)
from moodjournal.services import recalculation


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_profile_not_found(self):
        err = ProfileNotFoundError(user_id="u-1")
        assert err.http_status == 404
        assert err.code == "PROFILE_NOT_FOUND"
        assert err.to_dict()["details"]["user_id"] == "u-1"

    def test_entry_not_found(self):
        err = EntryNotFoundError(entry_id=42)
        assert err.http_status == 404
        assert "42" in err.message

    def test_badge_not_found(self):
        err = BadgeNotFoundError(badge_id="nope")
        assert err.code == "BADGE_NOT_FOUND"

    def test_unknown_category_is_validation_error(self):
        err = UnknownBadgeCategoryError(badge_id="x", category="seasonal")
        assert isinstance(err, ValidationError)
        assert err.http_status == 422
        assert err.details == {"badge_id": "x", "category": "seasonal"}

    def test_transient_storage_error(self):
        err = TransientStorageError(message="db down", user_id="u-1")
        assert err.http_status == 503
        assert err.code == "STORAGE_UNAVAILABLE"
        assert err.details["user_id"] == "u-1"

    def test_to_dict_without_details(self):
        err = TransientStorageError(message="db down")
        d = err.to_dict()
        assert d == {"code": "STORAGE_UNAVAILABLE", "message": "db down"}


# ---------------------------------------------------------------------------
# HTTP envelope
# ---------------------------------------------------------------------------

class TestErrorResponses:
    def test_request_validation_envelope(self, client, user_id):
        r = client.post(f"/users/{user_id}/entries", json={"mood": "good"})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = [e["field"] for e in body["details"]["errors"]]
        assert "content" in fields

    def test_not_found_envelope(self, client):
        body = client.delete("/entries/987654321").json()
        assert body["code"] == "ENTRY_NOT_FOUND"
        assert body["details"]["entry_id"] == 987654321

    def test_storage_failure_is_503_and_nothing_saved(self, client, user_id, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(recalculation, "recount_badges_earned", broken)
        r = client.post(
            f"/users/{user_id}/entries",
            json={"content": "lost", "mood": "low"},
        )
        assert r.status_code == 503
        assert r.json()["code"] == "STORAGE_UNAVAILABLE"

        monkeypatch.undo()
        assert client.get(f"/users/{user_id}/entries").json()["total"] == 0

    def test_commit_failure_on_entry_write_is_503(self, client, user_id, monkeypatch):
        logged = []

        def broken_commit(self):
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(Session, "commit", broken_commit)
        monkeypatch.setattr(
            recalculation.logger, "log", lambda level, msg, *args: logged.append(level),
        )
        r = client.post(
            f"/users/{user_id}/entries",
            json={"content": "unsaved", "mood": "great"},
        )
        assert r.status_code == 503
        body = r.json()
        assert body["code"] == "STORAGE_UNAVAILABLE"
        assert body["details"]["user_id"] == user_id
        assert logging.INFO not in logged

        monkeypatch.undo()
        assert client.get(f"/users/{user_id}/entries").json()["total"] == 0
        assert client.get(f"/users/{user_id}/progress").status_code == 404
