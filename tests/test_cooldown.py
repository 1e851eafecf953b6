"""Tests for the per-sender cooldown tracker."""

from whatsapp_autoreply.cooldown import CooldownTracker


class TestIsOnCooldown:
    def test_unknown_sender_not_on_cooldown(self):
        tracker = CooldownTracker(5)
        assert tracker.is_on_cooldown("919876543210", now=1000.0) is False

    def test_within_window(self):
        tracker = CooldownTracker(5)
        tracker.mark_replied("alice", now=100.0)
        assert tracker.is_on_cooldown("alice", now=100.0)
        assert tracker.is_on_cooldown("alice", now=104.9)

    def test_window_boundary_is_exclusive(self):
        tracker = CooldownTracker(5)
        tracker.mark_replied("alice", now=100.0)
        assert tracker.is_on_cooldown("alice", now=105.0) is False
        assert tracker.is_on_cooldown("alice", now=200.0) is False

    def test_other_senders_unaffected(self):
        tracker = CooldownTracker(5)
        tracker.mark_replied("alice", now=100.0)
        assert tracker.is_on_cooldown("bob", now=100.0) is False

    def test_mark_replied_updates_timestamp(self):
        tracker = CooldownTracker(5)
        tracker.mark_replied("alice", now=100.0)
        tracker.mark_replied("alice", now=110.0)
        assert tracker.is_on_cooldown("alice", now=112.0)

    def test_uses_clock_when_now_omitted(self):
        times = iter([100.0, 103.0, 106.0])
        tracker = CooldownTracker(5, clock=lambda: next(times))
        tracker.mark_replied("alice")
        assert tracker.is_on_cooldown("alice")
        assert tracker.is_on_cooldown("alice") is False

    def test_changing_cooldown_applies_to_existing_entries(self):
        tracker = CooldownTracker(5)
        tracker.mark_replied("alice", now=100.0)
        tracker.cooldown_seconds = 60
        assert tracker.is_on_cooldown("alice", now=130.0)

    def test_zero_cooldown_never_blocks(self):
        tracker = CooldownTracker(0)
        tracker.mark_replied("alice", now=100.0)
        assert tracker.is_on_cooldown("alice", now=100.0) is False


class TestSweep:
    def test_no_sweep_at_threshold(self):
        tracker = CooldownTracker(5, sweep_threshold=3)
        for i in range(3):
            tracker.mark_replied(f"s{i}", now=0.0)
        assert len(tracker) == 3

    def test_sweep_removes_expired_entries_when_threshold_crossed(self):
        tracker = CooldownTracker(5, sweep_threshold=3)
        for i in range(3):
            tracker.mark_replied(f"old{i}", now=0.0)
        tracker.mark_replied("fresh", now=100.0)

        assert len(tracker) == 1
        assert "fresh" in tracker
        assert "old0" not in tracker

    def test_sweep_keeps_entries_inside_window(self):
        tracker = CooldownTracker(5, sweep_threshold=2)
        tracker.mark_replied("a", now=98.0)
        tracker.mark_replied("b", now=99.0)
        tracker.mark_replied("c", now=100.0)
        # Nothing is older than the window, so the table may exceed the threshold.
        assert len(tracker) == 3
