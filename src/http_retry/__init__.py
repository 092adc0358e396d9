"""http-retry - Retrying transports for httpx clients.

This library wraps any httpx transport so that every outgoing request
transparently gains retry behaviour:
- Retry loop with a bounded budget and pluggable retry decision and backoff
- Request bodies rewound between attempts, discarded responses drained
- Request-scoped cancellation and deadlines that cut backoff waits short
- Settings from the environment or a .env file
- Testing utilities for scripting inner transports

Example:
    ```python
    from http_retry import create_client

    with create_client() as client:
        response = client.get("https://api.example.com/health")
    ```
"""

from http_retry.client import create_async_client, create_client

__version__ = "0.1.0"

__all__ = ["__version__", "create_async_client", "create_client"]
