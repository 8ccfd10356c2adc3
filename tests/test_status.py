"""
Tests for the online/offline status evaluation.
"""
from datetime import datetime, timedelta, timezone
from apikey_service.core.status import KeyStatus, evaluate_status

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestEvaluateStatus:
    """Tests for evaluate_status."""

    def test_recently_used_key_is_online(self):
        last_used = NOW - timedelta(days=29)

        assert evaluate_status(True, last_used, NOW - timedelta(days=400), now=NOW) == KeyStatus.ONLINE

    def test_key_unused_past_window_is_offline(self):
        last_used = NOW - timedelta(days=31)

        assert evaluate_status(True, last_used, NOW - timedelta(days=400), now=NOW) == KeyStatus.OFFLINE

    def test_inactive_key_is_offline(self):
        """Inactive keys are offline even when used a moment ago."""
        assert evaluate_status(False, NOW, NOW, now=NOW) == KeyStatus.OFFLINE

    def test_never_used_key_falls_back_to_created_at(self):
        assert evaluate_status(True, None, NOW - timedelta(days=1), now=NOW) == KeyStatus.ONLINE
        assert evaluate_status(True, None, NOW - timedelta(days=45), now=NOW) == KeyStatus.OFFLINE

    def test_key_without_timestamps_is_offline(self):
        assert evaluate_status(True, None, None, now=NOW) == KeyStatus.OFFLINE

    def test_naive_timestamps_are_treated_as_utc(self):
        """SQLite returns naive datetimes; they must compare against aware ones."""
        last_used = (NOW - timedelta(days=2)).replace(tzinfo=None)

        assert evaluate_status(True, last_used, None, now=NOW) == KeyStatus.ONLINE

    def test_custom_window(self):
        last_used = NOW - timedelta(days=8)

        assert evaluate_status(True, last_used, None, now=NOW, window=timedelta(days=7)) == KeyStatus.OFFLINE

    def test_status_values(self):
        assert KeyStatus.ONLINE.value == "online"
        assert KeyStatus.OFFLINE.value == "offline"
