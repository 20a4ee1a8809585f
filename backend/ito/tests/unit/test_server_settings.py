import pytest
from pydantic import ValidationError

from ito.server.settings import ItoServerSettings


class TestItoServerSettings:
    def test_defaults_without_env(self, monkeypatch):
        for name in ("ITO_MAX_ROOMS", "ITO_LOG_DIR", "ITO_CORS_ORIGINS", "ITO_STATIC_DIR"):
            monkeypatch.delenv(name, raising=False)

        settings = ItoServerSettings()

        assert settings.max_rooms == 500
        assert settings.static_dir is None
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_max_rooms_from_env(self, monkeypatch):
        monkeypatch.setenv("ITO_MAX_ROOMS", "3")
        assert ItoServerSettings().max_rooms == 3

    def test_cors_origins_json_array(self, monkeypatch):
        monkeypatch.setenv("ITO_CORS_ORIGINS", '["http://a.com","http://b.com"]')
        assert ItoServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("ITO_CORS_ORIGINS", "http://a.com,http://b.com")
        assert ItoServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_empty_rejected(self, monkeypatch):
        monkeypatch.setenv("ITO_CORS_ORIGINS", "")
        with pytest.raises(ValidationError, match="cors_origins"):
            ItoServerSettings()

    @pytest.mark.parametrize("value", [0, -1])
    def test_max_rooms_must_be_positive(self, value):
        with pytest.raises(ValidationError, match="max_rooms"):
            ItoServerSettings(max_rooms=value)

    def test_log_dir_empty_rejected(self):
        with pytest.raises(ValidationError, match="log_dir"):
            ItoServerSettings(log_dir="")
