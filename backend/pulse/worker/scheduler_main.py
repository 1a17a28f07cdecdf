"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from pulse.core.config import PlannerConfig, settings
from pulse.core.context import correlation_scope, new_correlation_id
from pulse.core.logging import configure_logging
from pulse.db.session import new_session
from pulse.services.ai.client import GenerationClient
from pulse.services.job_runner import run_daily_brain_for_all_users


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    enabled = settings.scheduler_enabled and settings.daily_brain_enabled
    logger.info(
        "Scheduler worker starting (scheduler_enabled=%s, daily_brain_enabled=%s)",
        settings.scheduler_enabled,
        settings.daily_brain_enabled,
    )

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running daily brain once on startup")
            run_daily_brain_job()
    else:
        logger.warning("Daily brain disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_daily_brain_job,
        trigger="cron",
        hour=settings.daily_job_hour,
        minute=settings.daily_job_minute,
        id="daily_brain_job",
        replace_existing=True,
    )
    logger.info(
        "Registered daily brain job (time=%02d:%02d %s)",
        settings.daily_job_hour,
        settings.daily_job_minute,
        settings.scheduler_timezone,
    )


def run_daily_brain_job() -> None:
    session = new_session()
    try:
        with correlation_scope(new_correlation_id("daily-brain")) as run_id:
            result = run_daily_brain_for_all_users(
                session,
                client=GenerationClient.from_settings(settings),
                config=PlannerConfig.from_settings(settings),
                request_id=run_id,
            )
        logger.info(
            "Daily brain job complete: processed=%s, success=%s, errors=%s",
            result.processed,
            result.success_count,
            result.error_count,
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Daily brain job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
