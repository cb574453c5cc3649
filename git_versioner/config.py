"""
Configuration management for Git Versioner.

Collects settings from CLI arguments, environment variables (and a .env
file) into a single Config object that is passed to every operation.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from .process import DEFAULT_TIMEOUT
from .utils import find_git_binary

# Load environment variables from .env file
load_dotenv()

VALID_LOG_LEVELS = ['DEBUG', 'VERBOSE', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def get_config_value(cli_args, field_name: str, env_key: str, default, value_type: type = str):
    """
    Get configuration value with proper precedence: CLI args > env vars > defaults.

    Args:
        cli_args: CLI arguments object or None
        field_name: Name of the CLI argument field
        env_key: Environment variable key
        default: Default value if neither CLI nor env var is set
        value_type: Type to convert the value to (str, int, float, bool)

    Returns:
        The configuration value converted to the specified type
    """
    cli_value = getattr(cli_args, field_name, None) if cli_args else None
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(env_key, '')

    if value_type == bool:
        if env_value.strip().lower() in ('true', '1', 'yes'):
            return True
        elif env_value.strip().lower() in ('false', '0', 'no'):
            return False
        return default

    if not env_value:
        return default

    try:
        return value_type(env_value)
    except (ValueError, TypeError):
        return default


def get_config_value_str(cli_args, field_name: str, env_key: str, default: str = '') -> str:
    """Get string configuration value."""
    return get_config_value(cli_args, field_name, env_key, default, str)


def get_config_value_float(cli_args, field_name: str, env_key: str, default: float = 0.0) -> float:
    """Get float configuration value."""
    return get_config_value(cli_args, field_name, env_key, default, float)


def get_config_value_bool(cli_args, field_name: str, env_key: str, default: bool = False) -> bool:
    """Get boolean configuration value."""
    return get_config_value(cli_args, field_name, env_key, default, bool)


@dataclass
class Config:
    """Settings for a single git-versioner invocation."""

    work_dir: str
    encoding: str
    git_path: str
    git_timeout: float
    log_level: str
    version_format: str = ''
    appveyor_api_url: str = ''

    @property
    def ascii_only(self) -> bool:
        return self.encoding == 'ascii'

    @property
    def encoding_errors(self) -> str:
        # ASCII output replaces characters it cannot represent with '?'
        return 'replace' if self.ascii_only else 'strict'


def load_config(cli_args=None) -> Optional[Config]:
    """
    Load and validate configuration from CLI arguments and environment variables.
    CLI arguments take precedence over environment variables.

    A missing git executable is not a validation error here; the CLI reports
    it separately with its own exit code.

    Args:
        cli_args: Parsed CLI arguments or None

    Returns:
        Config: Validated configuration object, or None if validation failed
    """
    work_dir = get_config_value_str(cli_args, 'work_dir', 'GV_WORK_DIR', os.getcwd())
    no_utf8 = get_config_value_bool(cli_args, 'no_utf8', 'GV_NO_UTF8', False)
    git_path = get_config_value_str(cli_args, 'git_path', 'GV_GIT_PATH', '')
    git_timeout = get_config_value_float(cli_args, 'timeout', 'GV_GIT_TIMEOUT', DEFAULT_TIMEOUT)
    log_level = get_config_value_str(cli_args, 'log_level', 'GV_LOG_LEVEL', 'INFO').upper()
    version_format = get_config_value_str(cli_args, 'version', 'GV_VERSION_FORMAT', '')
    appveyor_api_url = get_config_value_str(None, 'appveyor_api_url', 'APPVEYOR_API_URL', '')

    validation_errors = []

    if log_level not in VALID_LOG_LEVELS:
        validation_errors.append(f'LOG_LEVEL must be one of {VALID_LOG_LEVELS} (got: {log_level})')

    if git_timeout <= 0 or git_timeout > 600:
        validation_errors.append(f'GV_GIT_TIMEOUT must be between 0 and 600 seconds (got: {git_timeout})')

    if not os.path.isdir(work_dir):
        validation_errors.append(f'Working directory does not exist: {work_dir}')

    if validation_errors:
        logger.error('❌ Configuration Error:')
        for i, error_msg in enumerate(validation_errors, 1):
            logger.error(f'   {i}. {error_msg}')
        return None

    config = Config(
        work_dir=os.path.abspath(work_dir),
        encoding='ascii' if no_utf8 else 'utf-8',
        git_path=find_git_binary(git_path) or '',
        git_timeout=git_timeout,
        log_level=log_level,
        version_format=version_format,
        appveyor_api_url=appveyor_api_url,
    )

    logger.debug(f'WORK_DIR = {config.work_dir}')
    logger.debug(f'ENCODING = {config.encoding}')
    logger.debug(f'GIT_PATH = {config.git_path or "<not found>"}')
    logger.debug(f'GIT_TIMEOUT = {config.git_timeout}')
    logger.debug(f'VERSION_FORMAT = {config.version_format or "<default>"}')

    return config
