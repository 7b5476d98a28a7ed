"""Wait-for-ready logic for the benchmark database."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .connection import Database, DatabaseError

if TYPE_CHECKING:
    from viewbench.config.schema import DatabaseConfig

logger = logging.getLogger(__name__)


class WaitStatus(Enum):
    """Status of a wait operation."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass
class WaitResult:
    """Result of a wait operation."""

    status: WaitStatus
    message: str
    elapsed_seconds: float
    attempts: int

    @property
    def ready(self) -> bool:
        return self.status == WaitStatus.READY


def wait_for_condition(
    check_fn: Callable[[], tuple[bool, str]],
    timeout_seconds: float = 60,
    poll_interval: float = 1,
    description: str = "condition",
) -> WaitResult:
    """Generic wait for a condition to be true.

    Args:
        check_fn: Function that returns (success, message)
        timeout_seconds: Maximum time to wait
        poll_interval: Seconds between checks
        description: Description for logging

    Returns:
        WaitResult with outcome
    """
    start_time = time.monotonic()
    attempts = 0

    while True:
        attempts += 1
        elapsed = time.monotonic() - start_time

        try:
            success, message = check_fn()
            if success:
                return WaitResult(
                    status=WaitStatus.READY,
                    message=message,
                    elapsed_seconds=elapsed,
                    attempts=attempts,
                )
        except Exception as e:
            message = str(e)

        logger.debug("Waiting for %s (attempt %d): %s", description, attempts, message)

        if elapsed >= timeout_seconds:
            return WaitResult(
                status=WaitStatus.TIMEOUT,
                message=f"Timeout after {int(elapsed)}s waiting for {description}: {message}",
                elapsed_seconds=elapsed,
                attempts=attempts,
            )

        time.sleep(poll_interval)


def wait_for_database(
    config: DatabaseConfig,
    timeout_seconds: float = 60,
    poll_interval: float = 1,
) -> WaitResult:
    """Wait until PostgreSQL accepts connections and answers ``SELECT 1``.

    Args:
        config: Database connection settings
        timeout_seconds: Maximum time to wait
        poll_interval: Seconds between checks

    Returns:
        WaitResult with outcome
    """

    def check() -> tuple[bool, str]:
        db = Database(config)
        try:
            db.connect()
            db.fetch_scalar("SELECT 1")
        except DatabaseError as e:
            return False, str(e)
        finally:
            db.close()
        return True, f"PostgreSQL at {config.safe_conninfo()} is accepting connections"

    return wait_for_condition(
        check,
        timeout_seconds=timeout_seconds,
        poll_interval=poll_interval,
        description="PostgreSQL ready",
    )
