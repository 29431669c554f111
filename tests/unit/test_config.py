"""
Unit tests for configuration.
"""

from rollkeep.core.config import Config, get_config, reset_config


class TestConfig:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test default settings."""
        for name in ('ROLLKEEP_DB', 'COMPENSATION_EXCEPTION', 'ALLOW_NPC_VOID_POINTS',
                     'MINIMUM_POOL_FALLBACK', 'ROLL_SEED', 'LOG_LEVEL', 'PORT'):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.db_path == 'rollkeep.db'
        assert not config.compensation_exception
        assert not config.allow_npc_void_points
        assert config.minimum_pool_fallback
        assert config.roll_seed is None
        assert config.validate()

    def test_house_rules(self, monkeypatch):
        """Test house-rule flags become normalization rules."""
        monkeypatch.setenv('COMPENSATION_EXCEPTION', '1')
        monkeypatch.setenv('MINIMUM_POOL_FALLBACK', 'false')

        config = Config()

        assert config.normalization_rules().compensation_exception
        assert not config.minimum_pool_fallback

    def test_env_file(self, tmp_path, monkeypatch):
        """Test loading settings from a .env file."""
        monkeypatch.delenv('ROLLKEEP_DB', raising=False)
        env_file = tmp_path / '.env'
        env_file.write_text('ROLLKEEP_DB=campaign.db\n')

        assert Config(str(env_file)).db_path == 'campaign.db'
        monkeypatch.delenv('ROLLKEEP_DB', raising=False)

    def test_invalid_values(self, monkeypatch):
        """Test validation of bad settings."""
        monkeypatch.setenv('LOG_LEVEL', 'LOUD')
        assert not Config().validate()

    def test_global_config(self):
        """Test the cached global config."""
        reset_config()
        assert get_config() is get_config()
        reset_config()
