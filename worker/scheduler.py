"""
Reminder dispatch scheduler.

Runs the reminder sweep (service-due reminders, pending notification
flush, overdue invoices) on a fixed interval. Sweeps never overlap: a
scheduled tick that finds a sweep in progress is skipped, and a manual
trigger waits for it to finish.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from motorai.services.notification_service import NotificationTransport
from motorai.utils.dates import utcnow
from sqlalchemy.ext.asyncio import async_sessionmaker

from worker.config import WorkerSettings
from worker.jobs import PassResult
from worker.jobs.invoice_overdue_job import check_overdue_invoices
from worker.jobs.notification_flush_job import send_pending_notifications
from worker.jobs.service_reminder_job import check_due_services

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep across all passes."""

    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    passes: List[PassResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.passes)

    @property
    def failed_items(self) -> int:
        return sum(result.failed for result in self.passes)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def get_pass(self, name: str) -> Optional[PassResult]:
        for result in self.passes:
            if result.name == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
            "ok": self.ok,
            "failed_items": self.failed_items,
            "passes": [result.to_dict() for result in self.passes],
        }


class ReminderDispatchScheduler:
    """Owns the sweep timer, the overlap guard and the last sweep result."""

    JOB_ID = "reminder_dispatch_sweep"

    def __init__(
        self,
        session_maker: async_sessionmaker,
        transport: NotificationTransport,
        interval_seconds: int = 3600,
        run_on_start: bool = True,
        run_passes_concurrently: bool = True,
        service_cooldown_days: int = 7,
        invoice_cooldown_days: int = 3,
        batch_size: int = 50,
        upcoming_limit: int = 3,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        if session_maker is None:
            raise RuntimeError("ReminderDispatchScheduler requires a database session factory")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.session_maker = session_maker
        self.transport = transport
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self.run_passes_concurrently = run_passes_concurrently
        self.service_cooldown_days = service_cooldown_days
        self.invoice_cooldown_days = invoice_cooldown_days
        self.batch_size = batch_size
        self.upcoming_limit = upcoming_limit

        self._scheduler = scheduler or AsyncIOScheduler()
        self._sweep_lock = asyncio.Lock()
        self._running = False
        self.last_result: Optional[SweepResult] = None

    @classmethod
    def from_settings(
        cls,
        session_maker: async_sessionmaker,
        transport: NotificationTransport,
        worker_settings: WorkerSettings,
    ) -> "ReminderDispatchScheduler":
        return cls(
            session_maker,
            transport,
            interval_seconds=worker_settings.SWEEP_INTERVAL_SECONDS,
            run_on_start=worker_settings.RUN_SWEEP_ON_START,
            run_passes_concurrently=worker_settings.RUN_PASSES_CONCURRENTLY,
            service_cooldown_days=worker_settings.SERVICE_REMINDER_COOLDOWN_DAYS,
            invoice_cooldown_days=worker_settings.INVOICE_NOTICE_COOLDOWN_DAYS,
            batch_size=worker_settings.NOTIFICATION_BATCH_SIZE,
            upcoming_limit=worker_settings.REMINDER_UPCOMING_LIMIT,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def sweep_in_progress(self) -> bool:
        return self._sweep_lock.locked()

    def start(self) -> None:
        """Schedule the sweep. Calling start() on a running scheduler does nothing."""
        if self._running:
            logger.warning("Reminder dispatch scheduler already running")
            return

        job_kwargs = {}
        if self.run_on_start:
            job_kwargs["next_run_time"] = datetime.now()

        self._scheduler.add_job(
            self._scheduled_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Reminder dispatch sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self._scheduler.start()
        self._running = True
        logger.info(
            f"Reminder dispatch scheduler started (every {self.interval_seconds}s, "
            f"run on start: {self.run_on_start})"
        )

    async def stop(self) -> None:
        """Remove the timer, let an in-flight sweep finish, then shut down."""
        if not self._running:
            return

        self._running = False
        if self._scheduler.get_job(self.JOB_ID) is not None:
            self._scheduler.remove_job(self.JOB_ID)

        if self._sweep_lock.locked():
            logger.info("Waiting for in-flight sweep to finish...")
        async with self._sweep_lock:
            pass

        self._scheduler.shutdown(wait=False)
        logger.info("Reminder dispatch scheduler stopped")

    async def trigger(self, now: Optional[datetime] = None) -> SweepResult:
        """Run a sweep now, waiting for any in-flight sweep first."""
        if self._sweep_lock.locked():
            logger.info("Sweep in progress; manual trigger will run after it")
        return await self._run_sweep("manual", now=now)

    def status(self) -> Dict[str, Any]:
        job = self._scheduler.get_job(self.JOB_ID) if self._running else None
        next_run = job.next_run_time if job is not None else None
        return {
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "sweep_in_progress": self.sweep_in_progress,
            "next_run_time": next_run.isoformat() if next_run else None,
            "last_sweep": self.last_result.to_dict() if self.last_result else None,
        }

    async def _scheduled_sweep(self) -> Optional[SweepResult]:
        if self._sweep_lock.locked():
            logger.warning("Previous sweep still running; skipping this tick")
            return None
        return await self._run_sweep("scheduled", skip_if_stopped=True)

    async def _run_sweep(
        self,
        trigger: str,
        now: Optional[datetime] = None,
        skip_if_stopped: bool = False,
    ) -> Optional[SweepResult]:
        async with self._sweep_lock:
            # A tick dispatched before stop() may only reach the lock afterwards
            if skip_if_stopped and not self._running:
                logger.info("Scheduler stopped; dropping pending scheduled sweep")
                return None

            now = now or utcnow()
            sweep = SweepResult(trigger=trigger, started_at=utcnow())
            logger.info(f"Starting {trigger} reminder sweep")

            passes = [
                (
                    "service_reminders",
                    lambda: check_due_services(
                        self.session_maker,
                        self.transport,
                        now=now,
                        cooldown_days=self.service_cooldown_days,
                        upcoming_limit=self.upcoming_limit,
                    ),
                ),
                (
                    "notification_flush",
                    lambda: send_pending_notifications(
                        self.session_maker,
                        self.transport,
                        now=now,
                        batch_size=self.batch_size,
                    ),
                ),
                (
                    "overdue_invoices",
                    lambda: check_overdue_invoices(
                        self.session_maker,
                        self.transport,
                        now=now,
                        cooldown_days=self.invoice_cooldown_days,
                    ),
                ),
            ]

            if self.run_passes_concurrently:
                sweep.passes = list(
                    await asyncio.gather(*(self._run_pass(name, run) for name, run in passes))
                )
            else:
                for name, run in passes:
                    sweep.passes.append(await self._run_pass(name, run))

            sweep.finished_at = utcnow()
            self.last_result = sweep

            summary = ", ".join(
                f"{result.name}={result.succeeded}/{result.processed}" for result in sweep.passes
            )
            logger.info(
                f"Reminder sweep finished in {sweep.duration_seconds:.2f}s ({summary}, "
                f"{sweep.failed_items} item failures)"
            )
            return sweep

    async def _run_pass(
        self, name: str, run: Callable[[], Awaitable[PassResult]]
    ) -> PassResult:
        try:
            return await run()
        except Exception as e:
            logger.error(f"Pass {name} failed: {e}", exc_info=True)
            return PassResult(name=name, error=str(e))
