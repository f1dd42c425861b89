import pytest

from app.core.config import Settings


@pytest.mark.parametrize(
    ("raw_origins", "expected"),
    [
        ("https://veritext.example.com/", ["https://veritext.example.com"]),
        ("veritext.example.com", ["https://veritext.example.com"]),
        (
            "https://veritext.example.com, http://localhost:3000/",
            ["https://veritext.example.com", "http://localhost:3000"],
        ),
        (
            '["https://veritext.example.com/","http://localhost:3000"]',
            ["https://veritext.example.com", "http://localhost:3000"],
        ),
    ],
)
def test_settings_normalizes_cors_origins(monkeypatch, raw_origins, expected):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", raw_origins)

    settings = Settings()

    assert settings.cors_origins == expected


def test_settings_reads_cors_origin_regex(monkeypatch):
    monkeypatch.setenv("CORS_ALLOW_ORIGIN_REGEX", r"^https://veritext\.example\.com$")

    settings = Settings()

    assert settings.cors_origin_regex == r"^https://veritext\.example\.com$"


@pytest.mark.parametrize(
    ("api_key", "enabled"),
    [
        ("", False),
        ("   ", False),
        ("your_api_key_here", False),
        ("short-key", False),
        ("gsk_live_0123456789abcdef", True),
    ],
)
def test_rewrite_service_requires_real_key(monkeypatch, api_key, enabled):
    monkeypatch.setenv("REWRITE_API_KEY", api_key)

    settings = Settings()

    assert settings.rewrite_service_enabled is enabled


def test_rewrite_base_url_trailing_slash_stripped(monkeypatch):
    monkeypatch.setenv("REWRITE_BASE_URL", "https://rewrite.example.com/v1/")

    settings = Settings()

    assert settings.rewrite_base_url == "https://rewrite.example.com/v1"


@pytest.mark.parametrize(("raw", "expected"), [("0", 1), ("3", 3), ("50", 10), ("many", 3)])
def test_humanizer_iterations_bounded(monkeypatch, raw, expected):
    monkeypatch.setenv("HUMANIZER_MAX_ITERATIONS", raw)

    settings = Settings()

    assert settings.humanizer_max_iterations == expected


def test_text_length_defaults(monkeypatch):
    monkeypatch.delenv("TEXT_MIN_CHARS", raising=False)
    monkeypatch.delenv("TEXT_MAX_CHARS", raising=False)

    settings = Settings()

    assert settings.text_min_chars == 50
    assert settings.text_max_chars == 50_000
