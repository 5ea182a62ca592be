"""OTP issue/verify lifecycle tests."""
from __future__ import annotations

import pytest

from fraud.errors import ExpiredError, MismatchError, NotFoundError
from fraud.otp import OtpStore


@pytest.fixture
def store(clock) -> OtpStore:
    return OtpStore(validity_seconds=120, sweep_interval_seconds=60, clock=clock)


def _wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


def test_issue_sets_fixed_length_code_and_expiry(store, clock) -> None:
    challenge = store.issue("TX1")
    assert len(challenge.code) == 6
    assert challenge.code.isdigit()
    assert challenge.issued_at == clock.now
    assert (challenge.expires_at - challenge.issued_at).total_seconds() == 120
    assert challenge.expires_in == 120


def test_codes_are_zero_padded(clock, monkeypatch) -> None:
    store = OtpStore(digits=6, clock=clock)
    monkeypatch.setattr("fraud.otp.secrets.randbelow", lambda upper: 42)
    assert store.issue("TX1").code == "000042"


def test_round_trip_succeeds_exactly_once(store, clock) -> None:
    challenge = store.issue("TX1")
    clock.advance(30)

    verified_at = store.verify("TX1", challenge.code)
    assert verified_at == clock.now

    with pytest.raises(NotFoundError):
        store.verify("TX1", challenge.code)


def test_verify_unknown_subject_is_not_found(store) -> None:
    with pytest.raises(NotFoundError):
        store.verify("TX-missing", "123456")


def test_verify_after_window_is_expired(store, clock) -> None:
    challenge = store.issue("TX1")
    clock.advance(121)

    with pytest.raises(ExpiredError):
        store.verify("TX1", challenge.code)
    # Still expired (not "not found") until the sweep removes it.
    with pytest.raises(ExpiredError):
        store.verify("TX1", challenge.code)


def test_verify_exactly_at_expiry_still_succeeds(store, clock) -> None:
    challenge = store.issue("TX1")
    clock.advance(120)
    store.verify("TX1", challenge.code)


def test_mismatch_can_be_retried_within_window(store) -> None:
    challenge = store.issue("TX1")

    with pytest.raises(MismatchError):
        store.verify("TX1", _wrong(challenge.code))

    store.verify("TX1", challenge.code)


def test_new_issue_supersedes_previous_code(store, monkeypatch) -> None:
    codes = iter([111111, 222222])
    monkeypatch.setattr("fraud.otp.secrets.randbelow", lambda upper: next(codes))

    first = store.issue("TX1")
    second = store.issue("TX1")
    assert first.code == "111111"
    assert second.code == "222222"

    with pytest.raises(MismatchError):
        store.verify("TX1", first.code)
    store.verify("TX1", second.code)


def test_subjects_are_independent(store) -> None:
    a = store.issue("TX1")
    b = store.issue("user:7")
    store.verify("user:7", b.code)
    assert store.active("TX1") == a


def test_revoke_drops_challenge(store) -> None:
    challenge = store.issue("TX1")
    assert store.revoke("TX1") is True
    assert store.revoke("TX1") is False
    with pytest.raises(NotFoundError):
        store.verify("TX1", challenge.code)


def test_active_ignores_expired(store, clock) -> None:
    store.issue("TX1")
    clock.advance(121)
    assert store.active("TX1") is None
    assert "TX1" in store


def test_sweep_removes_only_expired(store, clock) -> None:
    store.issue("TX1")
    clock.advance(100)
    store.issue("TX2")
    clock.advance(30)

    assert store.sweep_expired() == 1
    assert "TX1" not in store
    assert "TX2" in store


def test_issue_sweeps_periodically(store, clock) -> None:
    store.issue("TX1")
    clock.advance(200)
    store.issue("TX2")
    assert "TX1" not in store
    assert len(store) == 1


def test_digits_must_be_positive(clock) -> None:
    with pytest.raises(ValueError):
        OtpStore(digits=0, clock=clock)
