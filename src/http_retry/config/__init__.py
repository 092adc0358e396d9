"""Configuration for retrying HTTP clients.

Settings are resolved from several sources in priority order:
explicit value → environment variable → .env file → default.

Example:
    ```python
    from http_retry.config import RetrySettings

    # HTTP_RETRY_MAX_RETRIES=5 in the environment or .env
    settings = RetrySettings.from_env()
    settings.max_retries  # 5
    ```
"""

from http_retry.config.exceptions import ConfigError, SettingNotFoundError, SettingValueError
from http_retry.config.resolver import SettingResolver
from http_retry.config.settings import RetrySettings

__all__ = [
    "ConfigError",
    "RetrySettings",
    "SettingNotFoundError",
    "SettingResolver",
    "SettingValueError",
]
