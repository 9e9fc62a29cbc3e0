"""
Tests for the auth form attempt throttle
"""
from app.common.throttle import LOCKOUT_MESSAGE, AttemptThrottle


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_throttle(clock):
    return AttemptThrottle(max_attempts=5, lockout_seconds=300, clock=clock)


def test_fifth_failure_locks_the_form():
    clock = FakeClock()
    throttle = make_throttle(clock)
    for _ in range(4):
        assert throttle.check() is None
        assert throttle.record_failure() is None
    assert throttle.record_failure() == LOCKOUT_MESSAGE
    assert throttle.locked


def test_sixth_submission_is_rejected_with_countdown():
    clock = FakeClock()
    throttle = make_throttle(clock)
    for _ in range(5):
        throttle.record_failure()

    clock.advance(60)
    assert throttle.check() == "Too many attempts. Please try again in 240 seconds"


def test_counter_resets_after_the_window():
    clock = FakeClock()
    throttle = make_throttle(clock)
    for _ in range(5):
        throttle.record_failure()

    clock.advance(300)
    assert throttle.check() is None
    assert throttle.attempts == 0
    assert not throttle.locked
    # evaluated normally again: one failure does not lock
    assert throttle.record_failure() is None


def test_success_resets_the_counter():
    throttle = make_throttle(FakeClock())
    for _ in range(4):
        throttle.record_failure()
    throttle.record_success()
    assert throttle.attempts == 0
    assert throttle.record_failure() is None


def test_state_round_trips_through_a_session_mapping():
    clock = FakeClock()
    session = {}
    throttle = make_throttle(clock)
    for _ in range(5):
        throttle.record_failure()
    throttle.save(session)

    restored = AttemptThrottle.load(session, clock=clock)
    assert restored.attempts == 5
    assert restored.locked
