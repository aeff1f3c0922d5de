"""Tests for LockConfiguration and LockDefaults."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from schedlock.core.errors import InvalidConfigurationError
from schedlock.locking import LockConfiguration, LockDefaults

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


class TestLockConfiguration:
    """Construction and validation."""

    def test_fields(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW + timedelta(minutes=1))
        assert config.name == "job-A"
        assert config.lock_at_most_until == NOW + timedelta(minutes=10)
        assert config.lock_at_least_until == NOW + timedelta(minutes=1)

    def test_at_least_defaults_to_construction_time(self):
        before = datetime.now(UTC)
        config = LockConfiguration("job-A", before + timedelta(minutes=10))
        after = datetime.now(UTC)
        assert before <= config.lock_at_least_until <= after

    def test_none_at_least_means_now(self):
        before = datetime.now(UTC)
        config = LockConfiguration("job-A", before + timedelta(minutes=10), None)
        assert config.lock_at_least_until >= before

    def test_naive_instants_are_utc(self):
        config = LockConfiguration("job-A", datetime(2025, 1, 15, 12, 10), datetime(2025, 1, 15, 12, 0))
        assert config.lock_at_most_until == NOW + timedelta(minutes=10)
        assert config.lock_at_least_until.tzinfo == UTC

    def test_aware_instants_are_converted(self):
        cet = timezone(timedelta(hours=1))
        config = LockConfiguration("job-A", datetime(2025, 1, 15, 13, 10, tzinfo=cet), NOW)
        assert config.lock_at_most_until == NOW + timedelta(minutes=10)

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_invalid_name(self, name):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            LockConfiguration(name, NOW + timedelta(minutes=10), NOW)
        assert exc_info.value.key == "name"

    def test_name_length_limit(self):
        assert LockConfiguration("j" * 64, NOW + timedelta(minutes=10), NOW).name == "j" * 64
        with pytest.raises(InvalidConfigurationError) as exc_info:
            LockConfiguration("j" * 65, NOW + timedelta(minutes=10), NOW)
        assert exc_info.value.key == "name"
        assert "64" in exc_info.value.message

    def test_missing_at_most(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            LockConfiguration("job-A", None, NOW)
        assert exc_info.value.key == "lock_at_most_until"

    def test_non_datetime_instant(self):
        with pytest.raises(InvalidConfigurationError):
            LockConfiguration("job-A", "2025-01-15T12:10:00Z", NOW)

    def test_is_immutable(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW)
        with pytest.raises(AttributeError):
            config.name = "job-B"

    def test_equality_by_value(self):
        a = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW)
        b = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW)
        assert a == b
        assert hash(a) == hash(b)

    def test_str(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW)
        assert "job-A" in str(config)
        assert "2025-01-15T12:10:00+00:00" in str(config)


class TestUnlockTime:
    """unlock_time() never precedes lock_at_least_until."""

    def test_before_minimum_hold(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW + timedelta(minutes=5))
        assert config.unlock_time(NOW + timedelta(minutes=1)) == NOW + timedelta(minutes=5)

    def test_after_minimum_hold(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW + timedelta(minutes=5))
        later = NOW + timedelta(minutes=7)
        assert config.unlock_time(later) == later

    def test_exactly_at_minimum_hold(self):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW + timedelta(minutes=5))
        at = NOW + timedelta(minutes=5)
        assert config.unlock_time(at) == at

    @pytest.mark.parametrize("offset_seconds", [0, 1, 60, 299, 300, 301, 3600])
    def test_never_before_at_least_or_now(self, offset_seconds):
        config = LockConfiguration("job-A", NOW + timedelta(minutes=10), NOW + timedelta(minutes=5))
        now = NOW + timedelta(seconds=offset_seconds)
        unlock = config.unlock_time(now)
        assert unlock >= config.lock_at_least_until
        assert unlock >= now

    def test_defaults_to_current_time(self):
        config = LockConfiguration("job-A", datetime.now(UTC) + timedelta(minutes=10))
        assert config.unlock_time() <= datetime.now(UTC)


class TestLockDefaults:
    """Relative durations resolved against a reference instant."""

    def test_library_defaults(self):
        defaults = LockDefaults()
        assert defaults.lock_at_most_for == timedelta(minutes=30)
        assert defaults.lock_at_least_for == timedelta(0)

    def test_build_with_defaults(self):
        config = LockDefaults(timedelta(minutes=10), timedelta(minutes=2)).build("job-A", now=NOW)
        assert config.lock_at_most_until == NOW + timedelta(minutes=10)
        assert config.lock_at_least_until == NOW + timedelta(minutes=2)

    def test_build_overrides(self):
        config = LockDefaults().build(
            "job-A",
            lock_at_most_for=timedelta(minutes=1),
            lock_at_least_for=timedelta(seconds=30),
            now=NOW,
        )
        assert config.lock_at_most_until == NOW + timedelta(minutes=1)
        assert config.lock_at_least_until == NOW + timedelta(seconds=30)

    def test_build_uses_current_time(self):
        before = datetime.now(UTC)
        config = LockDefaults().build("job-A")
        assert config.lock_at_least_until >= before

    @pytest.mark.parametrize(
        "at_most, at_least",
        [
            (timedelta(0), timedelta(0)),
            (timedelta(minutes=-1), timedelta(0)),
            (timedelta(minutes=1), timedelta(seconds=-1)),
            (timedelta(minutes=1), timedelta(minutes=2)),
        ],
    )
    def test_invalid_durations_in_build(self, at_most, at_least):
        with pytest.raises(InvalidConfigurationError):
            LockDefaults().build("job-A", at_most, at_least, now=NOW)

    def test_invalid_defaults(self):
        with pytest.raises(InvalidConfigurationError):
            LockDefaults(lock_at_most_for=timedelta(minutes=1), lock_at_least_for=timedelta(minutes=5))

    def test_non_timedelta(self):
        with pytest.raises(InvalidConfigurationError):
            LockDefaults(lock_at_most_for=600)
