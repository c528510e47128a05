"""A helper to create asynchronous HTTP client (via `httpx.AsyncClient`)
with common configurations.
"""

from httpx import AsyncClient, Limits, Timeout

USER_AGENT = "linkaudit/1.0"


def create_http_client(
    base_url: str = "",
    max_connections: int = 8,
    connect_timeout: float = 5.0,
    request_timeout: float = 60.0,
    pool_timeout: float = 5.0,
    headers: dict[str, str] | None = None,
) -> AsyncClient:
    """Create a new `httpx.AsyncClient` with common configurations.

    Jobs are analyzed one at a time, so the connection pool is kept small.

    Args:
      - `base_url` {str}: The base URL for this client. An empty string sets no base URL.
      - `max_connections` {int}: Max connections of the connection pool.
      - `connect_timeout` {float}: The timeout for establishing a connection to the host.
      - `request_timeout` {float}: The timeout for handling a request to the host.
      - `pool_timeout` {float}: The timeout for acquiring a connection from the pool.
      - `headers` {dict[str, str] | None}: Extra headers sent with every request.
    Returns:
      - {AsyncClient}: An async HTTP client.
    """
    return AsyncClient(
        base_url=base_url,
        limits=Limits(max_connections=max_connections),
        timeout=Timeout(request_timeout, connect=connect_timeout, pool=pool_timeout),
        headers={"User-Agent": USER_AGENT, **(headers or {})},
    )
