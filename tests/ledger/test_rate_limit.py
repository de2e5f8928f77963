"""Tests for per-address, per-action cooldowns."""

from unittest.mock import patch

import pytest

from sensorbridge.ledger.errors import CooldownActive
from sensorbridge.ledger.models import ActionClass
from sensorbridge.ledger.rate_limit import RateLimiter

T0 = 1_000.0


@pytest.fixture
def limiter():
    return RateLimiter(cooldown_seconds=60)


class TestCooldown:

    def test_first_action_allowed(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        assert limiter.last_action("a", ActionClass.SUBMISSION) == T0

    def test_second_action_inside_cooldown_rejected(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        with pytest.raises(CooldownActive) as exc:
            limiter.check_and_record("a", ActionClass.SUBMISSION, T0 + 10)
        assert exc.value.retry_at == T0 + 60
        # Failed attempt does not move the clock
        assert limiter.last_action("a", ActionClass.SUBMISSION) == T0

    def test_exact_boundary_allowed(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0 + 60)
        assert limiter.last_action("a", ActionClass.SUBMISSION) == T0 + 60

    def test_per_address(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        limiter.check_and_record("b", ActionClass.SUBMISSION, T0 + 1)

    def test_per_action_class(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        limiter.check_and_record("a", ActionClass.DECRYPT_REQUEST, T0 + 1)
        with pytest.raises(CooldownActive):
            limiter.check_and_record("a", ActionClass.DECRYPT_REQUEST, T0 + 2)

    def test_check_does_not_record(self, limiter):
        limiter.check("a", ActionClass.SUBMISSION, T0)
        assert limiter.last_action("a", ActionClass.SUBMISSION) is None

    def test_action_accepts_string_label(self, limiter):
        limiter.check_and_record("a", "submission", T0)
        assert limiter.last_action("a", ActionClass.SUBMISSION) == T0


class TestCooldownPolicy:

    def test_shared_duration_applies_to_all_classes(self, limiter):
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        limiter.check_and_record("a", ActionClass.DECRYPT_REQUEST, T0)
        limiter.set_cooldown(5)
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0 + 5)
        limiter.check_and_record("a", ActionClass.DECRYPT_REQUEST, T0 + 5)

    def test_set_cooldown_returns_previous(self, limiter):
        assert limiter.set_cooldown(30) == 60
        assert limiter.cooldown_seconds == 30

    def test_zero_cooldown_never_blocks(self):
        limiter = RateLimiter(cooldown_seconds=0)
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)
        limiter.check_and_record("a", ActionClass.SUBMISSION, T0)

    def test_negative_cooldown_rejected(self, limiter):
        with pytest.raises(ValueError):
            limiter.set_cooldown(-1)
        with pytest.raises(ValueError):
            RateLimiter(cooldown_seconds=-5)

    def test_rejection_logs_truncated_address(self, limiter):
        address = "5" + "x" * 47
        limiter.record(address, ActionClass.SUBMISSION, T0)
        with patch("sensorbridge.ledger.rate_limit.bt.logging") as log:
            with pytest.raises(CooldownActive):
                limiter.check(address, ActionClass.SUBMISSION, T0 + 1)
        entry = log.warning.call_args[0][0]["rate_limiter"]
        assert entry["address"] == address[:16]
