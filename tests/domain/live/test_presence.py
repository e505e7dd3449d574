"""Tests for the on-air timer and recently-online checks."""

from datetime import datetime, timedelta, timezone

import pytest

from sideroom.domain.live import ElapsedTimer, format_elapsed, is_recently_online
from sideroom.domain.live.session import StreamSessionSnapshot
from sideroom.schemas import PresenceData, SessionState


class TestFormatElapsed:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "00:00:00"),
            (59, "00:00:59"),
            (3723, "01:02:03"),
            (3723.9, "01:02:03"),
            (100 * 3600, "100:00:00"),
            (-5, "00:00:00"),
        ],
    )
    def test_format_elapsed(self, seconds, expected):
        assert format_elapsed(seconds) == expected


class TestElapsedTimer:
    def test_counts_from_activation(self, clock):
        timer = ElapsedTimer(now=clock)
        timer.set_active(True)

        clock.advance(3723)

        assert timer.tick() == "01:02:03"
        assert timer.display == "01:02:03"

    def test_inactive_timer_shows_zero(self, clock):
        timer = ElapsedTimer(now=clock)
        clock.advance(10)

        assert timer.tick() == "00:00:00"
        assert timer.is_active is False

    def test_deactivation_resets(self, clock):
        timer = ElapsedTimer(now=clock)
        timer.set_active(True)
        clock.advance(42)
        timer.tick()

        timer.set_active(False)

        assert timer.display == "00:00:00"
        assert timer.elapsed_seconds == 0.0

    def test_restart_begins_at_zero(self, clock):
        """Test a second active period does not accumulate the first."""
        timer = ElapsedTimer(now=clock)
        timer.set_active(True)
        clock.advance(600)
        timer.set_active(False)
        clock.advance(60)

        timer.set_active(True)
        clock.advance(5)

        assert timer.tick() == "00:00:05"

    def test_repeated_activation_keeps_start(self, clock):
        timer = ElapsedTimer(now=clock)
        timer.set_active(True)
        clock.advance(30)

        timer.set_active(True)

        assert timer.tick() == "00:00:30"

    def test_follows_session_snapshots(self, clock):
        timer = ElapsedTimer(now=clock)

        timer.on_session_change(
            StreamSessionSnapshot(room_id="room_1", state=SessionState.ACTIVE, is_active=True)
        )
        clock.advance(2)
        assert timer.tick() == "00:00:02"

        timer.on_session_change(StreamSessionSnapshot(room_id="room_1"))
        assert timer.is_active is False
        assert timer.display == "00:00:00"


class TestIsRecentlyOnline:
    NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_online_flag_wins(self):
        presence = PresenceData(user_id="u.member", is_online=True)
        assert is_recently_online(presence, now=self.NOW) is True

    def test_recent_last_seen(self):
        presence = PresenceData(user_id="u.member", last_seen=self.NOW - timedelta(seconds=30))
        assert is_recently_online(presence, now=self.NOW, window_seconds=120) is True

    def test_stale_last_seen(self):
        presence = PresenceData(user_id="u.member", last_seen=self.NOW - timedelta(seconds=121))
        assert is_recently_online(presence, now=self.NOW, window_seconds=120) is False

    def test_never_seen(self):
        presence = PresenceData(user_id="u.member")
        assert is_recently_online(presence, now=self.NOW) is False

    def test_naive_last_seen_is_utc(self):
        presence = PresenceData(user_id="u.member", last_seen=datetime(2024, 5, 1, 11, 59))
        assert is_recently_online(presence, now=self.NOW, window_seconds=120) is True
