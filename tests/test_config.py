"""
Tests for environment-driven settings
"""
from ui_query.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.dump_retries == 3
        assert settings.dump_retry_interval == 1.0
        assert settings.atx_port == 7912
        assert settings.use_atx is True

    def test_values_from_environment(self):
        settings = Settings.from_env({
            "UI_QUERY_DUMP_RETRIES": "5",
            "UI_QUERY_DUMP_RETRY_INTERVAL": "0.25",
            "UI_QUERY_ATX_PORT": "9008",
            "UI_QUERY_USE_ATX": "off",
            "UI_QUERY_DUMP_TIMEOUT": "30s",
            "UI_QUERY_LOG_LEVEL": "debug",
        })
        assert settings.dump_retries == 5
        assert settings.dump_retry_interval == 0.25
        assert settings.atx_port == 9008
        assert settings.use_atx is False
        assert settings.dump_timeout == 30
        assert settings.log_level == "DEBUG"

    def test_out_of_range_values_are_clamped(self):
        settings = Settings.from_env({
            "UI_QUERY_DUMP_RETRIES": "0",
            "UI_QUERY_DUMP_RETRY_INTERVAL": "-2",
            "UI_QUERY_LOG_LEVEL": "chatty",
        })
        assert settings.dump_retries == 1
        assert settings.dump_retry_interval == 0.0
        assert settings.log_level == "INFO"

    def test_unparseable_values_use_defaults(self):
        settings = Settings.from_env({"UI_QUERY_DUMP_RETRIES": "many", "UI_QUERY_USE_ATX": "maybe"})
        assert settings.dump_retries == 3
        assert settings.use_atx is True

    def test_overrides_skip_none(self):
        settings = Settings().with_overrides(dump_retries=7, atx_port=None)
        assert settings.dump_retries == 7
        assert settings.atx_port == 7912
