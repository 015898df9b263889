"""
Fixed-interval polling utilities.

Provides a helper that repeatedly evaluates a condition until it reports
completion, raises, or runs out of attempts.
"""

from __future__ import annotations

import time
import logging
from typing import Callable

from ovh_machine.base.exceptions import InstanceTimeoutError

logger = logging.getLogger("ovh_machine")


def wait_for_specific_or_error(
    check: Callable[[], bool],
    max_attempts: int,
    wait_interval: float,
    description: str = "condition",
) -> None:
    """Poll *check* until it returns True or raises.

    The check is called at most ``max_attempts`` times with a fixed sleep of
    ``wait_interval`` seconds after every unsuccessful attempt. Exceptions
    raised by the check propagate immediately and stop the wait.

    Args:
        check: Callable returning True when the wait is over.
        max_attempts: Maximum number of calls to *check*.
        wait_interval: Delay in seconds between two calls.
        description: What is being waited for, used in log and error messages.

    Raises:
        InstanceTimeoutError: If *check* never returned True.
    """
    for attempt in range(1, max_attempts + 1):
        if check():
            return
        logger.debug(
            "Attempt %d/%d: still waiting for %s, next check in %.1fs",
            attempt,
            max_attempts,
            description,
            wait_interval,
        )
        time.sleep(wait_interval)

    raise InstanceTimeoutError(
        f"Maximum number of retries ({max_attempts}) exceeded waiting for {description}"
    )
