import importlib


def _read_pyproject_version() -> str:
    import re
    from pathlib import Path

    txt = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text(encoding="utf-8")
    m = re.search(r"^version\s*=\s*\"([^\"]+)\"\s*$", txt, flags=re.MULTILINE)
    assert m, "Could not locate [project].version in pyproject.toml"
    return m.group(1)


def test_convenience_imports_work():
    import lite_session

    # Access via attribute (lazy import)
    assert hasattr(lite_session, "LiteSessionToken")
    assert hasattr(lite_session, "IdentityRecord")

    from lite_session import (  # noqa: F401
        ConfidentialityMode,
        Envelope,
        LiteSessionError,
        Role,
        SessionTokenIssuer,
        SessionTokenVerifier,
        TokenOutcome,
    )
    from lite_session.tokens import LiteSessionToken

    assert lite_session.LiteSessionToken is LiteSessionToken

    importlib.reload(lite_session)


def test_unknown_attribute_raises():
    import lite_session
    import pytest

    with pytest.raises(AttributeError):
        lite_session.DoesNotExist  # noqa: B018


def test_version_export_matches_pyproject():
    import lite_session

    assert lite_session.__version__ == _read_pyproject_version()
