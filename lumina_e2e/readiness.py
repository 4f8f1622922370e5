"""
Service readiness polling.

Gates the test run on backend health: every tick issues one health check per
service concurrently and the run may start only when all of them report
healthy on the same tick.

State machine::

    WAITING -> POLLING -> READY
                       -> TIMED_OUT
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Mapping, Optional

import anyio

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Awaitable[bool]]
ServiceHealth = Dict[str, bool]

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_TIMEOUT = 60.0


class ReadinessState(str, Enum):
    WAITING = "waiting"
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"


async def settle_all(
    checks: Mapping[str, HealthCheck],
    check_timeout: Optional[float] = None,
) -> ServiceHealth:
    """Run every check concurrently and collect a healthy flag per service.

    A check that raises, or does not finish within ``check_timeout`` seconds,
    marks only its own service unhealthy; the others are still evaluated.
    """
    results: ServiceHealth = {name: False for name in checks}

    async def _settle(name: str, check: HealthCheck) -> None:
        try:
            if check_timeout is None:
                healthy = await check()
            else:
                healthy = False
                with anyio.move_on_after(check_timeout):
                    healthy = await check()
            results[name] = bool(healthy)
        except Exception as exc:
            logger.debug(f"Health check for {name} failed: {exc}")
            results[name] = False

    async with anyio.create_task_group() as tg:
        for name, check in checks.items():
            tg.start_soon(_settle, name, check)

    return results


class ServiceReadinessPoller:
    """
    Polls named health checks until all are healthy or the timeout elapses.

    Usage:
        poller = ServiceReadinessPoller(checks, interval=2.0, timeout=120.0)
        if not await poller.wait():
            raise RuntimeError("Backend services failed to start within timeout period")
    """

    def __init__(
        self,
        checks: Mapping[str, HealthCheck],
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        check_timeout: Optional[float] = None,
    ) -> None:
        if not checks:
            raise ValueError("At least one health check is required")
        self.checks = dict(checks)
        self.interval = interval
        self.timeout = timeout
        self.check_timeout = check_timeout
        self.state = ReadinessState.WAITING
        self.last_health: ServiceHealth = {}
        self.ticks = 0

    async def poll_once(self) -> ServiceHealth:
        """One tick: fan out every check and keep only this snapshot."""
        self.ticks += 1
        self.last_health = await settle_all(self.checks, self.check_timeout)
        return self.last_health

    def unhealthy_services(self) -> list[str]:
        return sorted(name for name, healthy in self.last_health.items() if not healthy)

    async def wait(self) -> bool:
        """Return True on the first tick where every service is healthy.

        Returns False once ``timeout`` seconds have elapsed without such a tick.
        """
        self.state = ReadinessState.POLLING
        started = anyio.current_time()

        while anyio.current_time() - started < self.timeout:
            health = await self.poll_once()
            if all(health.values()):
                self.state = ReadinessState.READY
                logger.info(f"All {len(health)} services healthy after {self.ticks} tick(s)")
                return True

            logger.debug(f"Waiting for services: {', '.join(self.unhealthy_services())}")
            await anyio.sleep(self.interval)

        self.state = ReadinessState.TIMED_OUT
        logger.warning(
            f"Services not ready after {self.timeout:.0f}s: {', '.join(self.unhealthy_services())}"
        )
        return False
