import pytest

from fullcal.settings import _env_flag, _parse_timeout


@pytest.mark.parametrize("raw, expected", [("30", 30.0), ("2.5", 2.5), ("none", None), ("0", None), ("", None)])
def test_parse_timeout(raw, expected):
    assert _parse_timeout(raw) == expected


@pytest.mark.parametrize("raw", ["soon", "-1"])
def test_parse_timeout_rejects_garbage(raw):
    with pytest.raises(ValueError):
        _parse_timeout(raw)


def test_env_flag(monkeypatch):
    monkeypatch.setenv("FULLCAL_TEST_FLAG", "No")
    assert _env_flag("FULLCAL_TEST_FLAG", "true") is False
    monkeypatch.delenv("FULLCAL_TEST_FLAG")
    assert _env_flag("FULLCAL_TEST_FLAG", "true") is True
