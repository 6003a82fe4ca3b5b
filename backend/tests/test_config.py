from __future__ import annotations

from app.config import Settings, get_settings


def test_database_url_prefers_explicit_override():
    settings = Settings(_env_file=None, DATABASE_URL="sqlite+pysqlite:///:memory:")
    assert settings.database_url == "sqlite+pysqlite:///:memory:"


def test_database_url_built_from_parts():
    settings = Settings(
        _env_file=None,
        DATABASE_URL=None,
        DB_USER="svc",
        DB_PASSWORD="pw",
        DB_HOST="mysql",
        DB_PORT=3307,
        DB_NAME="community",
    )
    assert settings.database_url == "mysql+pymysql://svc:pw@mysql:3307/community"


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(_env_file=None, cors_origins="http://a.example, http://b.example")
    assert [str(origin).rstrip("/") for origin in settings.cors_origins] == [
        "http://a.example",
        "http://b.example",
    ]


def test_log_level_is_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_messaging_limits_have_expected_defaults():
    settings = get_settings()
    assert settings.chat_history_max_limit == 200
    assert settings.notifications_max_limit == 100
    assert settings.notification_title_max_length == 200
    assert settings.notification_body_max_length == 2000
