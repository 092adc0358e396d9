"""Retry settings for the client factory."""

from dataclasses import dataclass

from http_retry.config.exceptions import SettingValueError
from http_retry.config.resolver import SettingResolver

MAX_RETRIES_ENV = "HTTP_RETRY_MAX_RETRIES"
BACKOFF_BASE_ENV = "HTTP_RETRY_BACKOFF_BASE"
BACKOFF_CAP_ENV = "HTTP_RETRY_BACKOFF_CAP"
TIMEOUT_ENV = "HTTP_RETRY_TIMEOUT"


@dataclass(frozen=True)
class RetrySettings:
    """Settings for a retrying client.

    Attributes:
        max_retries: Additional attempts after the first one.
        backoff_base: Base delay of the jittered exponential backoff, in seconds.
        backoff_cap: Upper bound of the backoff ceiling, in seconds.
        timeout: Overall deadline of one call (all attempts and waits), in
            seconds. Also used as the httpx I/O timeout. None disables both.

    Raises:
        SettingValueError: If ``timeout`` is zero or negative.
    """

    max_retries: int = 3
    backoff_base: float = 1.0
    backoff_cap: float = 10.0
    timeout: float | None = 30.0

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise SettingValueError(
                f"Setting {TIMEOUT_ENV} must be > 0, got {self.timeout}",
                setting_name=TIMEOUT_ENV,
                value=self.timeout,
            )

    @classmethod
    def from_env(
        cls,
        resolver: SettingResolver | None = None,
        *,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        backoff_cap: float | None = None,
        timeout: float | None = None,
    ) -> "RetrySettings":
        """Build settings from explicit overrides, the environment and .env.

        Raises:
            SettingValueError: If a value is malformed or negative, or the timeout is zero.
        """
        resolver = resolver or SettingResolver()
        return cls(
            max_retries=resolver.resolve_int(
                value=max_retries, env_var_name=MAX_RETRIES_ENV, default=cls.max_retries, minimum=0
            ),
            backoff_base=resolver.resolve_float(
                value=backoff_base, env_var_name=BACKOFF_BASE_ENV, default=cls.backoff_base, minimum=0.0
            ),
            backoff_cap=resolver.resolve_float(
                value=backoff_cap, env_var_name=BACKOFF_CAP_ENV, default=cls.backoff_cap, minimum=0.0
            ),
            timeout=resolver.resolve_float(
                value=timeout, env_var_name=TIMEOUT_ENV, default=cls.timeout, minimum=0.0
            ),
        )
