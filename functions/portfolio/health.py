"""
Backend connectivity check with a capped number of re-checks.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from portfolio.auth import AuthClient
from portfolio.db import DbClient

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    auth_ok: bool
    db_ok: bool

    @property
    def healthy(self) -> bool:
        return self.auth_ok and self.db_ok

    def as_dict(self) -> dict:
        return {
            "status": "ok" if self.healthy else "degraded",
            "auth": self.auth_ok,
            "database": self.db_ok,
        }


def check_backend(auth: AuthClient, db: DbClient) -> HealthStatus:
    try:
        db_ok = db.ping()
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        db_ok = False
    return HealthStatus(auth_ok=auth.health(), db_ok=db_ok)


def recheck_until_healthy(
    check: Callable[[], HealthStatus],
    attempts: int = 3,
    interval: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> HealthStatus:
    """Run ``check`` up to ``attempts`` times, stopping at the first healthy result."""
    status = check()
    attempt = 1
    while not status.healthy and attempt < attempts:
        logger.info(
            "Backend not reachable (attempt %d/%d), retrying in %.1fs",
            attempt,
            attempts,
            interval,
        )
        sleep(interval)
        status = check()
        attempt += 1
    if not status.healthy:
        logger.warning("Backend still unreachable after %d attempts", attempts)
    return status
