"""
Configuration management for rollkeep.

Loads settings from environment variables (and an optional .env file) with
defaults for everything. House-rule toggles are turned into explicit
NormalizationRules here and handed to the roll service at construction time;
nothing in the dice engine reads configuration while rolling.
"""

import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..modules.dice.pool import NormalizationRules

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes')


class Config:
    """
    Centralized configuration for rollkeep.

    Example:
        config = Config()
        print(config.db_path)                 # rollkeep.db
        print(config.compensation_exception)  # False
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Optional path to .env file. If None, looks for .env in
                     the current working directory.
        """
        if env_file:
            load_dotenv(env_file)
            logger.info(f"Loaded configuration from {env_file}")
        else:
            env_path = Path.cwd() / '.env'
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded configuration from {env_path}")
            else:
                logger.debug("No .env file found, using environment variables and defaults")

        # === Storage ===
        self.db_path = os.getenv('ROLLKEEP_DB', 'rollkeep.db')

        # === Server Settings ===
        self.host = os.getenv('HOST', '0.0.0.0')
        self.port = int(os.getenv('PORT', '5000'))
        self.debug = _env_flag('DEBUG', 'False')

        # === Logging ===
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.log_file = os.getenv('LOG_FILE', None)

        # === House rules ===
        self.compensation_exception = _env_flag('COMPENSATION_EXCEPTION', 'False')
        self.allow_npc_void_points = _env_flag('ALLOW_NPC_VOID_POINTS', 'False')
        self.minimum_pool_fallback = _env_flag('MINIMUM_POOL_FALLBACK', 'True')

        # === Dice ===
        seed = os.getenv('ROLL_SEED')
        self.roll_seed: Optional[int] = int(seed) if seed else None

    def normalization_rules(self) -> NormalizationRules:
        """Build the explicit house-rule set for the pool normalizer."""
        return NormalizationRules(compensation_exception=self.compensation_exception)

    def validate(self) -> bool:
        """
        Validate configuration and log problems.

        Returns:
            True if config is valid, False if critical values are wrong
        """
        valid = True

        if self.log_level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            logger.error(f"Invalid LOG_LEVEL: {self.log_level}")
            valid = False

        if not (0 < self.port < 65536):
            logger.error(f"Invalid PORT: {self.port}")
            valid = False

        if self.compensation_exception:
            logger.info("House rule enabled: compensation exception (+2 when kept dice overflow)")

        return valid

    def __repr__(self) -> str:
        return (
            f"Config("
            f"db_path={self.db_path}, "
            f"host={self.host}, "
            f"port={self.port}, "
            f"compensation_exception={self.compensation_exception}, "
            f"allow_npc_void_points={self.allow_npc_void_points})"
        )


# Global config instance (lazy-loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global config instance.

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config
    _config = None


__all__ = ['Config', 'get_config', 'reset_config']
