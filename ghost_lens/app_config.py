"""Application configuration module for the annotation engine."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

import jsonschema
import yaml
from dotenv import load_dotenv

from ghost_lens.logging_config import setup_logger
from ghost_lens.locale_resolver import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXTENSIONS,
    DEFAULT_LOCALE_CODES,
    DEFAULT_MAX_CANDIDATES,
)

CONFIG_FILE_NAME = '.ghost-lens.yaml'
DEFAULT_DEBOUNCE_MS = 500
DEFAULT_MAX_DISPLAY_LENGTH = 40
DEFAULT_FUNCTION_NAMES = ('t',)

# Shape of the YAML configuration file. Unknown keys are tolerated so a
# shared config file can carry settings for other tools.
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "locale_path": {"type": ["string", "null"]},
        "locale_codes": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "extensions": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "exclude_dirs": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "max_candidates": {"type": "integer", "minimum": 1},
        "debounce_ms": {"type": "integer", "minimum": 0},
        "max_display_length": {"type": "integer", "minimum": 4},
        "function_names": {
            "type": "array",
            "items": {"type": "string", "pattern": r"^[A-Za-z_$][\w$]*$"},
            "minItems": 1
        },
        "logging": {
            "type": "object",
            "properties": {
                "log_level": {"type": "string"},
                "log_file_path": {"type": ["string", "null"]},
                "log_to_console": {"type": "boolean"}
            }
        }
    }
}


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Workspace
    workspace_root: Optional[str]
    locale_path: Optional[str] = None

    # Discovery
    locale_codes: List[str] = field(default_factory=lambda: list(DEFAULT_LOCALE_CODES))
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    max_candidates: int = DEFAULT_MAX_CANDIDATES

    # Rendering and scheduling
    debounce_seconds: float = DEFAULT_DEBOUNCE_MS / 1000
    max_display_length: int = DEFAULT_MAX_DISPLAY_LENGTH
    function_names: List[str] = field(default_factory=lambda: list(DEFAULT_FUNCTION_NAMES))

    # Logging
    log_level: str = 'INFO'
    log_file_path: Optional[str] = None
    log_to_console: bool = True


def _resolve_workspace_root(workspace_root: Optional[str]) -> Optional[str]:
    """Pick the workspace root from the argument, the environment or the CWD."""
    root = workspace_root or os.environ.get('GHOST_LENS_WORKSPACE')
    if not root:
        try:
            root = os.getcwd()
        except OSError:
            return None
    return os.path.abspath(root)


def _load_dotenv_file(workspace_root: Optional[str]) -> Optional[str]:
    """Load the workspace .env file, if any, and return its path."""
    if not workspace_root:
        return None
    dotenv_path = os.path.join(workspace_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)
        return dotenv_path
    return None


def _config_file_path(workspace_root: Optional[str]) -> Optional[str]:
    """Return the configuration file location, honouring GHOST_LENS_CONFIG_FILE."""
    config_file = os.environ.get('GHOST_LENS_CONFIG_FILE')
    if not config_file:
        if not workspace_root:
            return None
        config_file = os.path.join(workspace_root, CONFIG_FILE_NAME)
    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)
    return config_file


def _load_yaml_config(config_file: Optional[str]) -> Dict[str, Any]:
    """Load and validate the YAML configuration file; any problem yields defaults."""
    config: Dict[str, Any] = {}
    if not config_file or not os.path.exists(config_file):
        return config

    if not os.access(config_file, os.R_OK):
        print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
              file=sys.stderr)
        return config

    try:
        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
        return config
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        return config

    if loaded_config is None:
        print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
              file=sys.stderr)
        return config

    try:
        jsonschema.validate(instance=loaded_config, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        print(f"Error: Configuration file '{config_file}' is invalid: {e.message}. Using defaults.",
              file=sys.stderr)
        return config

    return loaded_config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def load_app_config(workspace_root: Optional[str] = None, configure_logging: bool = True) -> AppConfig:
    """
    Load application configuration from the workspace YAML file and environment variables.

    Args:
        workspace_root: Explicit workspace root. Falls back to GHOST_LENS_WORKSPACE
            and then to the current working directory.
        configure_logging: Whether to (re)configure the package logger from the
            file's ``logging`` section.

    Returns:
        AppConfig: The loaded application configuration.
    """
    root = _resolve_workspace_root(workspace_root)

    dotenv_path = _load_dotenv_file(root)
    config_file = _config_file_path(root)
    config = _load_yaml_config(config_file)

    if configure_logging:
        logger = _setup_logger_from_config(config)
    else:
        logger = logging.getLogger('ghost_lens')

    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    if config:
        logger.info("Loaded configuration from: %s", config_file)

    # The environment wins over the file for the one option hosts usually set.
    locale_path = os.environ.get('GHOST_LENS_LOCALE_PATH', config.get('locale_path')) or None

    log_config = config.get('logging', {})

    return AppConfig(
        workspace_root=root,
        locale_path=locale_path,
        locale_codes=config.get('locale_codes', list(DEFAULT_LOCALE_CODES)),
        extensions=config.get('extensions', list(DEFAULT_EXTENSIONS)),
        exclude_dirs=config.get('exclude_dirs', list(DEFAULT_EXCLUDE_DIRS)),
        max_candidates=config.get('max_candidates', DEFAULT_MAX_CANDIDATES),
        debounce_seconds=config.get('debounce_ms', DEFAULT_DEBOUNCE_MS) / 1000,
        max_display_length=config.get('max_display_length', DEFAULT_MAX_DISPLAY_LENGTH),
        function_names=config.get('function_names', list(DEFAULT_FUNCTION_NAMES)),
        log_level=log_config.get('log_level', 'INFO').upper(),
        log_file_path=log_config.get('log_file_path'),
        log_to_console=log_config.get('log_to_console', True)
    )
