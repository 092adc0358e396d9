"""Multi-source settings resolution.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment once)
4. Default value

Example:
    ```python
    from http_retry.config import SettingResolver

    resolver = SettingResolver()

    retries = resolver.resolve_int(env_var_name="HTTP_RETRY_MAX_RETRIES", default=3, minimum=0)
    timeout = resolver.resolve_float(env_var_name="HTTP_RETRY_TIMEOUT", default=30.0)
    ```
"""

import logging
import os
from threading import Lock

from dotenv import load_dotenv

from http_retry.config.exceptions import SettingNotFoundError, SettingValueError

logger = logging.getLogger(__name__)


class SettingResolver:
    """Resolve settings from multiple sources with priority ordering.

    Values from a .env file never override variables already present in the
    environment.

    Attributes:
        _dotenv_loaded: Whether .env file has been loaded.
        _dotenv_lock: Thread lock for safe dotenv loading.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize settings resolver.

        Args:
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories for one.
            load_dotenv: Whether to load a .env file at all.
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Load the .env file once (thread-safe)."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for settings resolution")
            except Exception as e:
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Resolve a raw string setting.

        Args:
            value: Explicitly provided value (highest priority).
            env_var_name: Environment variable name to check.
            default: Default value if not found elsewhere.
            required: If True, raises SettingNotFoundError when nothing resolves.

        Returns:
            Resolved value, or None if not found and not required.

        Raises:
            SettingNotFoundError: If required=True and no source has a value.
        """
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name and env_var_name in os.environ:
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            logger.debug(f"Resolved setting from {source}: {result}")

        if required and result is None:
            error_msg = "Required setting not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise SettingNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_int(
        self,
        *,
        value: int | None = None,
        env_var_name: str | None = None,
        default: int | None = None,
        minimum: int | None = None,
    ) -> int | None:
        """Resolve an integer setting, optionally bounded below."""
        return self._resolve_number(int, value, env_var_name, default, minimum)

    def resolve_float(
        self,
        *,
        value: float | None = None,
        env_var_name: str | None = None,
        default: float | None = None,
        minimum: float | None = None,
    ) -> float | None:
        """Resolve a float setting, optionally bounded below."""
        return self._resolve_number(float, value, env_var_name, default, minimum)

    def _resolve_number(self, kind, value, env_var_name, default, minimum):
        raw = self.resolve(
            value=None if value is None else str(value),
            env_var_name=env_var_name,
            default=None if default is None else str(default),
        )
        if raw is None:
            return None

        name = env_var_name or "value"
        try:
            number = kind(raw.strip())
        except ValueError:
            raise SettingValueError(
                f"Setting {name} must be a valid {kind.__name__}, got {raw!r}",
                setting_name=name,
                value=raw,
            ) from None

        if minimum is not None and number < minimum:
            raise SettingValueError(
                f"Setting {name} must be >= {minimum}, got {number}",
                setting_name=name,
                value=raw,
            )
        return number
