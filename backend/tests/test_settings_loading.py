from __future__ import annotations

import importlib


def test_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("LLM_DEFAULT_MODEL", "llama-test")
    monkeypatch.setenv("HOME_SUGGESTIONS_MAX_STORED", "50")

    config_module = importlib.import_module("deeplearn.core.config")
    Settings = config_module.Settings

    settings = Settings()

    assert settings.groq_api_key == "gsk-test"
    assert settings.llm_default_model == "llama-test"
    assert settings.home_suggestions_max_stored == 50


def test_settings_defaults(monkeypatch):
    for name in ("GROQ_API_KEY", "LLM_CLASSIFIER_MODEL", "FEED_THREADS_COUNT", "MAX_TAGS_COUNT"):
        monkeypatch.delenv(name, raising=False)

    config_module = importlib.import_module("deeplearn.core.config")
    settings = config_module.Settings(_env_file=None)

    assert settings.api_prefix == "/api"
    assert settings.llm_classifier_model == "llama-3.1-8b-instant"
    assert settings.llm_classifier_max_tokens == 10
    assert settings.feed_threads_count == 6
    assert settings.feed_replies_per_thread == 5
    assert settings.home_max_already_covered == 30
    assert settings.max_tags_count == 30
    assert settings.home_suggestions_max_stored is None
