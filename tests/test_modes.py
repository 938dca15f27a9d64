import pytest

from lite_session.mode import (
    ConfidentialityMode,
    CustomRole,
    Role,
    SessionBindingMode,
    TokenOutcome,
)


@pytest.mark.parametrize("role", list(Role))
def test_role_text_roundtrip(role):
    assert Role.from_text(role.to_text()) is role


def test_role_unknown_text_is_custom_not_error():
    role = Role.from_text("Gardener")
    assert role == CustomRole("Gardener")
    assert role.to_text() == "Gardener"


def test_role_text_is_case_sensitive():
    assert Role.from_text("admin") == CustomRole("admin")


def test_confidentiality_text():
    assert ConfidentialityMode.HIGH.to_text() == "ConfidentialityMode::High"
    assert ConfidentialityMode.LOW.to_text() == "ConfidentialityMode::Low"
    assert ConfidentialityMode.from_text("ConfidentialityMode::Low") is ConfidentialityMode.LOW
    assert ConfidentialityMode.from_text("ConfidentialityMode::High") is ConfidentialityMode.HIGH


def test_confidentiality_unknown_defaults_high():
    assert ConfidentialityMode.from_text("plaintext please") is ConfidentialityMode.HIGH
    assert ConfidentialityMode.from_text("") is ConfidentialityMode.HIGH


def test_session_binding_modes():
    assert SessionBindingMode.passive().is_passive
    bound = SessionBindingMode.bound("tls-session-1")
    assert not bound.is_passive
    assert bound.session_id == "tls-session-1"
    assert SessionBindingMode() == SessionBindingMode.passive()


def test_outcome_values():
    assert TokenOutcome.TOKEN_AUTHENTIC.value == "TokenAuthentic"
    assert TokenOutcome.TOKEN_REJECTED.value == "TokenRejected"
    assert TokenOutcome.SESSION_EXPIRED.value == "SessionExpired"
