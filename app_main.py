"""Application entry point for the QuizNest API."""

from __future__ import annotations

import socket

from quiznest.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    LOOPBACK_ADDRESS,
    ROUTE_PROBE_ADDRESS,
)
from quiznest.core.quiz_manager import QuizManager
from quiznest.server.api_server import run_api_server
from quiznest.utils.logging_config import configure_logging


def _determine_public_url(port: int) -> str:
    """Best-effort determination of the local IP for the API URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(ROUTE_PROBE_ADDRESS)
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = LOOPBACK_ADDRESS
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging, load the sample quiz, and serve the API."""
    logger = configure_logging()
    logger.info("Starting QuizNest…")

    quiz_manager = QuizManager()
    sample = quiz_manager.load_sample_quiz()
    logger.info("Sample quiz '%s' available as %s", sample.quiz_title, sample.id)

    logger.info("API available at %s", _determine_public_url(DEFAULT_PORT))
    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
