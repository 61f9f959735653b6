"""
Unit tests for the process-wide credential store.
"""

import pytest

from core.security import CredentialState, SessionContext


def test_initial_state_follows_token():
    assert SessionContext().state is CredentialState.ABSENT
    assert SessionContext("abc").state is CredentialState.VALID


def test_install_rejects_empty_token():
    with pytest.raises(ValueError, match="empty token"):
        SessionContext().install("")


def test_expire_transitions_exactly_once():
    session = SessionContext("abc")
    calls = []
    session.subscribe(calls.append)

    assert session.expire() is True
    assert session.expire() is False

    assert session.is_expired
    assert session.token is None
    assert calls == [session]


def test_failing_listener_does_not_block_others():
    session = SessionContext("abc")
    seen = []

    def broken(_ctx):
        raise RuntimeError("listener bug")

    session.subscribe(broken)
    session.subscribe(lambda ctx: seen.append("notified"))

    assert session.expire() is True
    assert seen == ["notified"]


def test_unsubscribe_stops_notifications():
    session = SessionContext("abc")
    calls = []
    unsubscribe = session.subscribe(calls.append)
    unsubscribe()

    session.expire()

    assert calls == []


def test_reinstall_after_expiry():
    session = SessionContext("abc")
    session.expire()

    session.install("def")

    assert session.state is CredentialState.VALID
    assert session.token == "def"
    assert session.expire() is True


def test_clear_is_not_expiry():
    session = SessionContext("abc")
    calls = []
    session.subscribe(calls.append)

    session.clear()

    assert session.state is CredentialState.ABSENT
    assert calls == []


def test_rejection_of_a_replaced_token_is_ignored():
    session = SessionContext("old")
    calls = []
    session.subscribe(calls.append)
    session.install("new")

    assert session.expire("old") is False

    assert session.state is CredentialState.VALID
    assert session.token == "new"
    assert calls == []


def test_rejection_of_the_installed_token_expires():
    session = SessionContext("abc")
    assert session.expire("abc") is True
    assert session.is_expired
