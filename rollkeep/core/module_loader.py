"""
Module loading for rollkeep.

Builds the module list from configuration and wires it into a RecordEngine.
Modules are listed in dependency order: dice spends through the resources
ledgers, so resources comes first.
"""

import logging
from typing import List, Optional

from .config import Config, get_config
from .records import RecordEngine
from ..modules.base import Module

logger = logging.getLogger(__name__)


def load_modules(config: Config) -> List[Module]:
    """Instantiate the standard modules for a configuration."""
    from ..modules.resources import ResourcesModule
    from ..modules.dice import DiceModule

    modules = [ResourcesModule(), DiceModule.from_config(config)]
    logger.info(f"Loaded modules: {', '.join(m.name for m in modules)}")
    return modules


def create_engine(config: Optional[Config] = None,
                  db_path: Optional[str] = None) -> RecordEngine:
    """
    Open the configured record database with all modules loaded.

    Args:
        config: Configuration (defaults to get_config())
        db_path: Override for config.db_path

    Returns:
        Ready RecordEngine
    """
    config = config or get_config()
    return RecordEngine(db_path or config.db_path, modules=load_modules(config))
