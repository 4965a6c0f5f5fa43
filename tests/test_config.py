import pytest

from src.sweeper.config import Settings


def _settings() -> Settings:
    return Settings(_env_file=None)


@pytest.mark.parametrize("raw", ["27.5,-99.4", "27.5, -99.4", "[27.5, -99.4]"])
def test_service_area_center_from_env(monkeypatch: pytest.MonkeyPatch, raw: str):
    monkeypatch.setenv("SWEEPER_SERVICE_AREA_CENTER", raw)
    assert _settings().service_area_center == (27.5, -99.4)


def test_service_area_center_rejects_single_value(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SWEEPER_SERVICE_AREA_CENTER", "27.5")
    with pytest.raises(ValueError):
        _settings()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("http://a.test,http://b.test", ("http://a.test", "http://b.test")),
        ('["http://a.test", "http://b.test"]', ("http://a.test", "http://b.test")),
        ("http://a.test", ("http://a.test",)),
    ],
)
def test_allowed_origins_from_env(monkeypatch: pytest.MonkeyPatch, raw: str, expected):
    monkeypatch.setenv("SWEEPER_FRONTEND_ALLOWED_ORIGINS", raw)
    assert _settings().frontend_allowed_origins == expected


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("SWEEPER_SERVICE_AREA_CENTER", raising=False)
    settings = _settings()
    assert settings.service_area_center == (27.5306, -99.4803)
    assert settings.service_area_radius_miles == 25.0
    assert settings.routing_profile == "driving"
