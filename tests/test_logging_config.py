import logging
import random

from quiznest.core.services.quiz_playback import QuizPlayback
from quiznest.utils.logging_config import configure_logging


def test_configure_logging_returns_package_logger():
    logger = configure_logging(logging.DEBUG)
    try:
        assert logger.name == "quiznest"
        assert logger.isEnabledFor(logging.DEBUG)
        assert logging.getLogger("quiznest.core.services.quiz_playback").isEnabledFor(logging.DEBUG)
    finally:
        logger.setLevel(logging.NOTSET)


def test_playback_events_are_logged(caplog, make_quiz):
    playback = QuizPlayback(make_quiz(1), rng=random.Random(8))
    with caplog.at_level(logging.INFO, logger="quiznest"):
        playback.start()
        options = playback.current_question().options
        playback.select_option(next(idx for idx, option in enumerate(options) if option.is_correct))
        playback.submit()
        playback.advance()
    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Started quiz 'Sample'") for message in messages)
    assert "Completed quiz 'Sample': 1/1 correct" in messages
