"""
CI notifications for Git Versioner.

Reports the computed version to TeamCity (service message on stdout) and
AppVeyor (build worker API when available, otherwise the appveyor CLI).
Notification failures are logged and never abort the run.
"""

from typing import Optional

import requests
from loguru import logger

from .process import run_process
from .substitution import DEFAULT_BUILD_FORMAT, substitute
from .utils import is_windows
from .version_info import VersionRecord

APPVEYOR_TIMEOUT = 5

# TeamCity service message escapes; '|' must be handled first
TEAMCITY_ESCAPES = (
    ('|', '||'),
    ("'", "|'"),
    ('\n', '|n'),
    ('\r', '|r'),
    ('[', '|['),
    (']', '|]'),
)


def build_version(record: VersionRecord, version_format: Optional[str] = None) -> str:
    """Expand version_format (or the default build format) for CI reporting."""
    return substitute(version_format or DEFAULT_BUILD_FORMAT, record)


def escape_teamcity_value(value: str) -> str:
    """Escape a value for use inside a TeamCity service message."""
    for char, escaped in TEAMCITY_ESCAPES:
        value = value.replace(char, escaped)
    return value


def teamcity_build_number_message(version: str) -> str:
    return f"##teamcity[buildNumber '{escape_teamcity_value(version)}']"


def notify_teamcity(record: VersionRecord, version_format: Optional[str] = None) -> str:
    """
    Print the TeamCity buildNumber service message.

    Outside TeamCity the line is harmless console output, so it is always
    printed after files are written.

    Returns:
        str: The reported version
    """
    version = build_version(record, version_format)
    print(teamcity_build_number_message(version), flush=True)
    return version


def appveyor_executable() -> str:
    return 'appveyor.exe' if is_windows() else 'appveyor'


def _update_appveyor_api(api_url: str, version: str) -> bool:
    """Set the build version through the AppVeyor build worker REST API."""
    url = f"{api_url.rstrip('/')}/api/build"
    try:
        response = requests.put(url, json={'version': version}, timeout=APPVEYOR_TIMEOUT)
        response.raise_for_status()
        return True
    except requests.exceptions.Timeout:
        logger.error('AppVeyor API request timed out')
    except requests.exceptions.ConnectionError:
        logger.error(f'Cannot connect to AppVeyor API at {api_url}')
    except requests.exceptions.HTTPError as e:
        logger.error(f'AppVeyor API error: {getattr(e.response, "status_code", "unknown")}')
    except requests.exceptions.RequestException as e:
        logger.error(f'AppVeyor API request failed: {e}')
    return False


def _update_appveyor_cli(version: str, timeout: float) -> bool:
    """Set the build version by running `appveyor UpdateBuild -Version`."""
    executable = appveyor_executable()
    args = ['UpdateBuild', '-Version', version]
    logger.info(f"Starting {executable} {' '.join(args)}")
    try:
        result = run_process(executable, args, timeout=timeout)
    except OSError as e:
        logger.error('ERROR: Cannot find Appveyor binary! Error message follows:')
        logger.error(str(e))
        return False

    if result.stdout.strip():
        logger.info(result.stdout.strip())
    if not result.ok:
        logger.error(f'{executable} exited with {result.returncode}')
        return False
    return True


def notify_appveyor(record: VersionRecord, version_format: Optional[str] = None,
                    api_url: str = '', timeout: float = APPVEYOR_TIMEOUT) -> bool:
    """
    Push the build version to AppVeyor, then print the TeamCity message too.

    Args:
        record: Version information
        version_format: Format with $Token$ placeholders or "semver"
        api_url: Value of APPVEYOR_API_URL; when set the REST API is used
        timeout: Seconds to wait for the appveyor CLI

    Returns:
        bool: True if AppVeyor accepted the version
    """
    version = build_version(record, version_format)

    if api_url:
        logger.debug(f'Updating AppVeyor build version via API: {version}')
        success = _update_appveyor_api(api_url, version)
    else:
        success = _update_appveyor_cli(version, timeout)

    if success:
        logger.info(f'✅ AppVeyor build version set to {version}')

    print(teamcity_build_number_message(version), flush=True)
    return success
