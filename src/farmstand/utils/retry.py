"""Re-run a command when its aggregate write lost an optimistic-concurrency race."""

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3


def process_with_retry(make_command, attempts: int = MAX_ATTEMPTS):
    """Process ``make_command()`` synchronously, rebuilding it after each version conflict.

    Each attempt reloads the aggregate inside a fresh unit of work. The last
    ``ExpectedVersionError`` propagates when every attempt conflicts.
    """
    for attempt in range(1, attempts + 1):
        command = make_command()
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            if attempt == attempts:
                raise
            logger.warning(
                "Concurrent update detected, retrying",
                command=type(command).__name__,
                attempt=attempt,
            )
