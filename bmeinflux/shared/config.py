"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def get_environment() -> str:
    """Get the current environment name.

    Returns:
        Environment name from BMEINFLUX_ENV, defaults to 'bmeinflux'.
    """
    return os.getenv("BMEINFLUX_ENV", "bmeinflux")


def get_config_dir() -> Path:
    """Get the 'config' directory at the repo root."""
    return Path(__file__).parent.parent.parent / "config"


def get_config_path(
    config_name: Optional[str] = None,
    config_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Get path to a configuration file.

    Args:
        config_name: Name of config file (without path). If None, uses
            config-{environment}.yaml based on BMEINFLUX_ENV.
        config_dir: Directory containing config files. If None, uses
            the 'config' directory at the repo root.

    Returns:
        Path to the configuration file.
    """
    if config_dir is None:
        config_dir = get_config_dir()

    config_dir = Path(config_dir)

    if config_name is None:
        env = get_environment()
        config_name = f"config-{env}.yaml"

    return config_dir / config_name


def load_env(env_path: Optional[Union[str, Path]] = None) -> None:
    """Load a .env file into the process environment.

    Variables already set in the environment win over the file.
    """
    if env_path is None:
        env_path = get_config_dir() / ".env"
        if not Path(env_path).exists():
            # Fall back to python-dotenv's own search from the working directory
            load_dotenv()
            return
    load_dotenv(env_path)


def require_env(*names: str) -> dict:
    """Read required environment variables.

    Args:
        names: Variable names that must be set and non-empty.

    Returns:
        Dictionary mapping each name to its value.

    Raises:
        ConfigError: If any variable is missing, naming all of them.
    """
    values = {name: os.getenv(name) for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
    return values


def load_yaml_config(config_path: Union[str, Path]) -> dict:
    """Load YAML configuration file.

    Args:
        config_path: Path to config file.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def get_log_level(config: dict) -> str:
    """Extract log level from config, with sensible default.

    Args:
        config: Configuration dictionary.

    Returns:
        Log level string (e.g., 'INFO', 'DEBUG').
    """
    return str(config.get("log_level", "INFO")).upper()
