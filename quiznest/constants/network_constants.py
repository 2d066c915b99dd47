"""Network settings for serving the QuizNest API."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
API_LOG_LEVEL: str = "info"

# Public URL discovery: a UDP "connect" to this address picks the outbound interface.
ROUTE_PROBE_ADDRESS: tuple[str, int] = ("8.8.8.8", 80)
LOOPBACK_ADDRESS: str = "127.0.0.1"
