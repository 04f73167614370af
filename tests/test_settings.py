from voice_agent.infrastructure.config.settings import FeatureFlags, PipelineSettings


def test_defaults_match_pipeline_limits():
    settings = PipelineSettings()

    assert settings.prompt_budget.total == 32_000
    assert settings.prompt_budget.context == 6_000
    assert settings.max_identity_facts == 8
    assert settings.max_concurrent_producers == 3
    assert settings.producer_timeout_seconds == 10.0


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("VOICE_AGENT_USER_NAME", "Dana")
    monkeypatch.setenv("VOICE_AGENT_PROMPT_BUDGET", "16000")
    monkeypatch.setenv("VOICE_AGENT_MAX_CONCURRENT_PRODUCERS", "2")
    monkeypatch.setenv("VOICE_AGENT_PRODUCER_TIMEOUT", "0.5")
    monkeypatch.setenv("VOICE_AGENT_DISABLED_PRODUCERS", "curiosity, narrative,")

    settings = PipelineSettings.from_env()

    assert settings.user_name == "Dana"
    assert settings.prompt_budget.total == 16_000
    assert settings.max_concurrent_producers == 2
    assert settings.producer_timeout_seconds == 0.5
    assert settings.disabled_producers == ["curiosity", "narrative"]


def test_feature_flags_overrides_win():
    flags = FeatureFlags.from_settings(PipelineSettings(disabled_producers=["curiosity"]))

    assert not flags.is_enabled("curiosity")
    assert flags.is_enabled("narrative")

    flags.set_enabled("curiosity", True)
    flags.set_enabled("narrative", False)

    assert flags.is_enabled("curiosity")
    assert not flags.is_enabled("narrative")
