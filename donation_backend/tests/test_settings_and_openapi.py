import json

from src.api.generate_openapi import build_schema, generate_openapi
from src.api.session_storage import InMemorySessionStorage, SQLiteSessionStorage, build_session_storage
from src.api.settings import get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SESSION_BACKEND", "SESSION_DB_PATH", "SIMULATED_LATENCY_SECONDS", "CORS_ALLOW_ORIGINS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        s = get_settings()
        assert s.session_backend == "memory"
        assert s.session_db_path == "./data/session.db"
        assert s.simulated_latency_seconds == 0.0
        assert s.cors_allow_origins == ["*"]
        assert s.log_level == "INFO"

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("SESSION_BACKEND", "SQLite")
        monkeypatch.setenv("SIMULATED_LATENCY_SECONDS", "1.5")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = get_settings()
        assert s.session_backend == "sqlite"
        assert s.simulated_latency_seconds == 1.5
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert s.log_level == "DEBUG"

    def test_bad_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("SESSION_BACKEND", "redis")
        monkeypatch.setenv("SIMULATED_LATENCY_SECONDS", "soon")
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        s = get_settings()
        assert s.session_backend == "memory"
        assert s.simulated_latency_seconds == 0.0
        assert s.log_level == "INFO"

        monkeypatch.setenv("SIMULATED_LATENCY_SECONDS", "-2")
        assert get_settings().simulated_latency_seconds == 0.0

    def test_storage_factory(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SESSION_BACKEND", "memory")
        assert isinstance(build_session_storage(get_settings()), InMemorySessionStorage)
        monkeypatch.setenv("SESSION_BACKEND", "sqlite")
        monkeypatch.setenv("SESSION_DB_PATH", str(tmp_path / "db" / "session.db"))
        assert isinstance(build_session_storage(get_settings()), SQLiteSessionStorage)
        assert (tmp_path / "db" / "session.db").exists()


class TestOpenAPI:
    def test_schema_lists_routes_and_tags(self):
        schema = build_schema()
        paths = schema["paths"]
        assert "/api/v1/donations/" in paths
        assert "/api/v1/donations/{donation_id}/status" in paths
        assert "/api/v1/session" in paths
        assert "/api/v1/session/login" in paths
        assert "/api/v1/stats/platform" in paths
        tag_names = {t["name"] for t in schema["tags"]}
        assert {"health", "session", "donations", "stats"} <= tag_names

    def test_generate_writes_file(self, tmp_path):
        out = tmp_path / "interfaces" / "openapi.json"
        written = generate_openapi(str(out))
        assert written == str(out)
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["info"]["title"] == "Food Donation Backend"
