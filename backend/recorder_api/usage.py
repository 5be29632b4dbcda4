"""
Usage tracking.

Recording is fire-and-forget: the gateway hands a UsageEvent to the
dispatcher and returns its response without waiting. Nothing is counted
or stored here; the default recorder writes a log line.
"""

import asyncio
from typing import Protocol, Set

from .logging_config import get_logger
from .models import UsageEvent

logger = get_logger("usage")


class UsageRecorder(Protocol):
    async def record(self, event: UsageEvent) -> None:
        ...


class LoggingUsageRecorder:
    """Writes each usage event to the log sink"""

    async def record(self, event: UsageEvent) -> None:
        logger.info(
            "Usage tracked: %s %s plan=%s site=%s target=%s duration=%ss",
            event.timestamp.isoformat(),
            event.caller,
            event.plan.value,
            event.site_url,
            event.target_url,
            event.duration,
        )


class UsageDispatcher:
    """Schedules recorder calls in the background and swallows their failures"""

    def __init__(self, recorder: UsageRecorder):
        self.recorder = recorder
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, event: UsageEvent) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._record(event))
        except Exception as e:
            logger.warning(f"Could not schedule usage record: {e}")
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, event: UsageEvent) -> None:
        try:
            await self.recorder.record(event)
        except Exception as e:
            logger.warning(f"Usage record failed for {event.caller}: {e}")

    async def drain(self) -> None:
        """Wait for in-flight records, used on shutdown and in tests"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)
