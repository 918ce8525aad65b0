"""Configuration loading for the trade journal.

Settings live in ``~/.config/aijournal/config.toml``. Every key is
optional; a missing file yields the built-in defaults.

Example::

    [currency]
    symbol = "Rp"
    thousands_sep = "."
    decimal_sep = ","

    [analysis]
    engine = "local"
    min_trades = 3

    [import]
    engine = "agent"
    sample_limit = 100

    [openai]
    api_key = "sk-..."
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "aijournal"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "journal.db"

EngineType = Literal["local", "agent"]


class CurrencyConfig(BaseModel):
    """How monetary values are rendered."""

    symbol: str = Field(default="Rp", description="Currency symbol prefix")
    thousands_sep: str = Field(default=".", description="Digit group separator")
    decimal_sep: str = Field(default=",", description="Decimal separator")
    places: int = Field(default=2, ge=0, le=6, description="Maximum decimal places")

    model_config = {"frozen": True}


class AnalysisConfig(BaseModel):
    engine: EngineType = Field(default="local", description="Analysis implementation")
    min_trades: int = Field(default=3, ge=0, description="Trades required before analysis")

    model_config = {"frozen": True}


class ImportConfig(BaseModel):
    engine: EngineType = Field(default="local", description="Import implementation")
    sample_limit: int = Field(default=100, ge=1, description="Rows sent to the model")

    model_config = {"frozen": True}


class OpenAIConfig(BaseModel):
    api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    model: Optional[str] = Field(default=None, description="Model override")

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    db_path: Optional[Path] = Field(default=None, description="SQLite database path")

    model_config = {"frozen": True}


class JournalConfig(BaseModel):
    """Complete application configuration."""

    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    import_: ImportConfig = Field(default_factory=ImportConfig, alias="import")
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def db_path(self) -> Path:
        """Database path, honouring the AIJOURNAL_DB environment variable."""
        env_path = os.environ.get("AIJOURNAL_DB")
        if env_path:
            return Path(env_path).expanduser()
        if self.storage.db_path is not None:
            return self.storage.db_path.expanduser()
        return DEFAULT_DB_PATH

    @property
    def api_key(self) -> Optional[str]:
        key = self.openai.api_key
        if not key or key == "your-openai-api-key":
            return os.environ.get("OPENAI_API_KEY")
        return key


def get_config_path() -> Path:
    """Get the config file path, honouring AIJOURNAL_CONFIG."""
    env_path = os.environ.get("AIJOURNAL_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Optional[Path] = None) -> JournalConfig:
    """Load configuration from TOML.

    Args:
        config_path: Optional explicit path. Defaults to get_config_path().

    Returns:
        Parsed configuration. Falls back to defaults when the file is
        missing, unreadable or invalid.
    """
    import toml

    path = config_path or get_config_path()

    if not path.exists():
        return JournalConfig()

    try:
        raw = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning("Could not read config %s: %s. Using defaults.", path, e)
        return JournalConfig()

    try:
        return JournalConfig.model_validate(raw)
    except ValidationError as e:
        logger.warning("Invalid config %s: %s. Using defaults.", path, e)
        return JournalConfig()
