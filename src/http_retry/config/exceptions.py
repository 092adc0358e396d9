"""Custom exceptions for settings resolution.

Example:
    ```python
    from http_retry.config.exceptions import SettingValueError

    try:
        settings = RetrySettings.from_env()
    except SettingValueError as e:
        print(f"Bad value for {e.setting_name}: {e}")
    ```
"""


class ConfigError(Exception):
    """Base exception for configuration errors.

    All configuration exceptions inherit from this class.
    """

    pass


class SettingNotFoundError(ConfigError):
    """Raised when a required setting cannot be resolved from any source.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class SettingValueError(ConfigError):
    """Raised when a resolved setting cannot be converted or is out of range.

    Attributes:
        setting_name: Name of the offending setting.
        value: The raw value that was rejected.
    """

    def __init__(self, message: str, setting_name: str, value: object = None):
        super().__init__(message)
        self.setting_name = setting_name
        self.value = value
