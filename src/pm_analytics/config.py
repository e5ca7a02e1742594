"""Configuration management for PM Analytics."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PM_ANALYTICS_CONFIG"


@dataclass
class AnalyticsConfig:
    """Global configuration model for PM Analytics."""
    
    # Reporting
    default_format: str = "json"  # json, csv
    currency: str = "USD"
    date_format: str = "%Y-%m-%d"
    
    # Dashboard
    recent_window_days: int = 30
    upcoming_deadline_limit: int = 5
    recommendations_per_project: int = 3
    team_performance_limit: int = 3
    
    # Files
    data_dir: str = "~/.pm_analytics"
    snapshot_file: str = "snapshot.json"
    
    # Logging
    log_level: str = "WARNING"
    
    def __post_init__(self):
        """Post-initialization setup."""
        self.data_dir = os.path.expanduser(self.data_dir)
        self.default_format = str(self.default_format).lower()
        if self.default_format not in ("json", "csv"):
            logger.warning(f"Unknown default_format {self.default_format!r}, using json")
            self.default_format = "json"
    
    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "default_format": self.default_format,
            "currency": self.currency,
            "date_format": self.date_format,
            "recent_window_days": self.recent_window_days,
            "upcoming_deadline_limit": self.upcoming_deadline_limit,
            "recommendations_per_project": self.recommendations_per_project,
            "team_performance_limit": self.team_performance_limit,
            "data_dir": self.data_dir,
            "snapshot_file": self.snapshot_file,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)
    
    @classmethod
    def from_yaml(cls, yaml_str: str) -> "AnalyticsConfig":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a YAML mapping")
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})
    
    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"
    
    def get_snapshot_path(self) -> Path:
        """Get the default record snapshot path."""
        return Path(self.data_dir) / self.snapshot_file


class Config:
    """Configuration manager for PM Analytics."""
    
    _instance: Optional[AnalyticsConfig] = None
    
    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> AnalyticsConfig:
        """Load configuration from file, falling back to defaults."""
        if cls._instance is not None and config_path is None:
            return cls._instance
        
        config = AnalyticsConfig()
        
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else config.get_config_path()
        
        if config_path.exists():
            try:
                config = AnalyticsConfig.from_yaml(config_path.read_text())
                logger.debug(f"Loaded configuration from {config_path}")
            except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using defaults.")
        else:
            logger.debug(f"No configuration at {config_path}, using defaults")
        
        cls._instance = config
        return config
    
    @classmethod
    def save(cls, config: AnalyticsConfig, config_path: Optional[Path] = None) -> Path:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()
        
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml())
        logger.info(f"Configuration saved to {config_path}")
        return config_path
    
    @classmethod
    def get(cls) -> AnalyticsConfig:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance
    
    @classmethod
    def reset(cls) -> None:
        """Drop the cached configuration."""
        cls._instance = None


def get_config() -> AnalyticsConfig:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> AnalyticsConfig:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: AnalyticsConfig, config_path: Optional[Path] = None) -> Path:
    """Save configuration to file."""
    return Config.save(config, config_path)
