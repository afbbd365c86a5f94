import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, IO, Iterator, Optional

from pydantic import ValidationError

from config.models import Config
from utils.errors import ConfigError
from utils.logger import logger

# Regex for environment variable substitution
ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)\}")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
PROJECT_CONFIG_FILENAME = ".prfold.yaml"
# A directory holding one of these ends the search for a project config
PROJECT_ROOT_MARKERS = (".git", "pyproject.toml")


class EnvVarLoader(yaml.SafeLoader):
    """A SafeLoader that expands ${VAR} references in scalar values."""


def _substitute(match: "re.Match[str]") -> str:
    env_var = match.group(1)
    replacement = os.getenv(env_var)
    if replacement is None:
        raise ConfigError(f"Environment variable '{env_var}' not found for substitution in config.")
    return replacement


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Custom YAML constructor to substitute environment variables.
    e.g., ${LOG_DIR}/prfold.log becomes /var/log/prfold.log when LOG_DIR=/var/log.
    """
    value = loader.construct_scalar(node)
    return ENV_VAR_MATCHER.sub(_substitute, value)


EnvVarLoader.add_constructor("!env", _env_var_constructor)
EnvVarLoader.add_implicit_resolver("!env", re.compile(r".*\$\{\w+\}"), None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration.

    Raises:
        ConfigError: If the file cannot be parsed or a referenced variable is unset.
    """
    try:
        config = yaml.load(config_file, Loader=EnvVarLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration root must be a mapping.")
    return config


def overlay_sections(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns `base` with each section of `override` laid over it.

    Config files are one level deep (section -> settings), so a section present
    in both is merged key by key and any other value is replaced.
    """
    merged = dict(base)
    for section, settings in override.items():
        current = merged.get(section)
        if isinstance(current, dict) and isinstance(settings, dict):
            merged[section] = {**current, **settings}
        else:
            merged[section] = settings
    return merged


def _walk_up(start_dir: Path) -> Iterator[Path]:
    directory = start_dir.resolve()
    yield directory
    yield from directory.parents


def find_project_config(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the nearest .prfold.yaml at or above `start_dir`.

    The search stops at the first directory that looks like a project root,
    so a config belonging to an enclosing checkout is never picked up.
    """
    for directory in _walk_up(start_dir):
        candidate = directory / PROJECT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if any((directory / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return None
    return None


def _read_config_file(path: Path) -> Dict[str, Any]:
    logger.info(f"Loading configuration from: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return load_config(f)
    except OSError as e:
        raise ConfigError(f"Could not read config at {path}: {e}") from e


def load_settings(custom_config_path: Optional[str] = None, start_dir: Path = Path(".")) -> Config:
    """
    Builds the effective configuration.

    The packaged defaults are always read first. On top of them goes either the
    file given with --config or, when none is given, the project's .prfold.yaml.

    Raises:
        ConfigError: If a file cannot be read, parsed or validated.
    """
    settings = _read_config_file(DEFAULT_CONFIG_PATH)

    if custom_config_path:
        override_path: Optional[Path] = Path(custom_config_path)
        if not override_path.is_file():
            raise ConfigError(f"Custom config file not found at: {custom_config_path}")
    else:
        override_path = find_project_config(start_dir)

    if override_path:
        settings = overlay_sections(settings, _read_config_file(override_path))

    try:
        config = Config(**settings)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    logger.debug(f"Effective config: {config.model_dump_json()}")
    return config
