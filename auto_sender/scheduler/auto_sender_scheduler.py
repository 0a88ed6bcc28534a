"""
Auto-sender scheduler.

This service provides:
- A fixed-interval timer that fires a tick every ``interval_seconds``
- Per-tick snapshot of active configs, evaluated in snapshot order
- Per-config in-flight guard so overlapping ticks never double-evaluate
- Failure isolation: one config's error never reaches the loop or its peers
"""

import asyncio
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import structlog

from auto_sender.models.auto_sender import AutoSenderConfig, EvaluationOutcome, OutcomeStatus


logger = structlog.get_logger(__name__)


Evaluator = Callable[[AutoSenderConfig], Awaitable[EvaluationOutcome]]
Snapshot = Callable[[], List[AutoSenderConfig]]


class SchedulerStatus(Enum):
    """Status of the auto-sender scheduler."""
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class SchedulerStats:
    """Statistics for scheduler operations."""
    total_ticks: int = 0
    completed_ticks: int = 0
    evaluations: int = 0
    skipped_in_flight: int = 0
    loop_errors: int = 0
    last_tick_at: Optional[datetime] = None
    last_tick_duration: float = 0.0
    started_at: Optional[datetime] = None


class AutoSenderScheduler:
    """
    Timer-driven sweep loop.

    Ticks are launched as independent tasks, so a slow tick does not delay
    the timer. Stopping cancels the timer only; ticks already running finish
    on their own.
    """

    def __init__(
        self,
        evaluate: Evaluator,
        snapshot: Snapshot,
        interval_seconds: float = 0.5,
        parallel: bool = False,
    ):
        self._evaluate = evaluate
        self._snapshot = snapshot
        self.interval_seconds = interval_seconds
        self.parallel = parallel

        self.status = SchedulerStatus.STOPPED
        self.stats = SchedulerStats()
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()

        self.logger = logger.bind(service="auto_sender_scheduler")

    @property
    def is_running(self) -> bool:
        return self.status == SchedulerStatus.RUNNING

    @property
    def in_flight(self) -> Set[str]:
        return set(self._in_flight)

    def start(self) -> None:
        """Start firing ticks. No-op if already running."""
        if self.is_running:
            self.logger.warning("Auto-sender scheduler already running")
            return

        self.status = SchedulerStatus.RUNNING
        self.stats.started_at = datetime.utcnow()
        self._timer_task = asyncio.create_task(self._timer_loop())
        self.logger.info(
            "Auto-sender scheduler started",
            interval_seconds=self.interval_seconds,
            parallel=self.parallel,
        )

    async def stop(self) -> None:
        """Cancel the timer. In-flight evaluations run to completion."""
        if not self.is_running:
            return

        self.status = SchedulerStatus.STOPPED
        timer, self._timer_task = self._timer_task, None
        if timer and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass

        self.logger.info(
            "Auto-sender scheduler stopped",
            total_ticks=self.stats.total_ticks,
            pending_ticks=len(self._tick_tasks),
        )

    async def drain(self) -> None:
        """Wait for ticks that are still running."""
        if self._tick_tasks:
            await asyncio.gather(*list(self._tick_tasks), return_exceptions=True)

    async def _timer_loop(self) -> None:
        # First tick fires one interval after start
        while self.is_running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self.is_running:
                    break
                task = asyncio.create_task(self.run_tick())
                self._tick_tasks.add(task)
                task.add_done_callback(self._tick_tasks.discard)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.stats.loop_errors += 1
                self.logger.error("Error in scheduler timer loop", error=str(e))

    async def run_tick(self) -> List[EvaluationOutcome]:
        """One pass over the active configs captured at tick start."""
        started = datetime.utcnow()
        self.stats.total_ticks += 1
        self.stats.last_tick_at = started

        try:
            configs = list(self._snapshot())
        except Exception as e:
            self.stats.loop_errors += 1
            self.logger.error("Failed to snapshot active configs", error=str(e))
            return []

        if self.parallel:
            outcomes = list(await asyncio.gather(*(self.run_guarded(c) for c in configs)))
        else:
            outcomes = []
            for config in configs:
                outcomes.append(await self.run_guarded(config))

        self.stats.completed_ticks += 1
        self.stats.last_tick_duration = (datetime.utcnow() - started).total_seconds()
        return outcomes

    async def run_guarded(self, config: AutoSenderConfig) -> EvaluationOutcome:
        """
        Evaluate one config unless it is inactive or already being evaluated.

        Never raises; unexpected errors are logged and returned as a failed
        outcome.
        """
        if not config.is_active:
            return EvaluationOutcome(config_id=config.id, status=OutcomeStatus.SKIPPED, error="inactive")

        if config.id in self._in_flight:
            self.stats.skipped_in_flight += 1
            self.logger.debug("Config already in flight, skipping", config_id=config.id)
            return EvaluationOutcome(config_id=config.id, status=OutcomeStatus.SKIPPED, error="in_flight")

        self._in_flight.add(config.id)
        try:
            self.stats.evaluations += 1
            return await self._evaluate(config)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.exception(
                "Unhandled error evaluating auto-sender",
                config_id=config.id,
                config_name=config.name,
                error=str(e),
            )
            return EvaluationOutcome(
                config_id=config.id,
                status=OutcomeStatus.FAILED,
                error_code="INTERNAL_ERROR",
                error=str(e),
            )
        finally:
            self._in_flight.discard(config.id)

    def get_status(self) -> Dict[str, Any]:
        """Get current scheduler status."""
        stats = asdict(self.stats)
        for key in ("last_tick_at", "started_at"):
            if stats[key]:
                stats[key] = stats[key].isoformat()
        return {
            "status": self.status.value,
            "interval_seconds": self.interval_seconds,
            "parallel": self.parallel,
            "pending_ticks": len(self._tick_tasks),
            "in_flight": sorted(self._in_flight),
            "stats": stats,
        }
