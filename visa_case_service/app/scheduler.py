"""
Batch job entry point for cron-like triggers.

    python -m visa_case_service.app.scheduler --job reminders|documents|all

Each run opens its own MongoDB connection, runs the selected jobs once and
exits non-zero when a job could not run at all. Per-case failures inside a job
are reported in its result and do not change the exit code.
"""
import argparse
import asyncio
import sys
from types import SimpleNamespace
from typing import List

from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

from visa_case_service.app.config import settings
from visa_case_service.app.observability import logger, setup_opentelemetry
from visa_case_service.app.service.document_audit import run_document_audit
from visa_case_service.app.service.exceptions import PersistenceError
from visa_case_service.app.service.reminders import run_reminder_sweep
from visa_case_service.infrastructure.database.connection import close_mongo_connection, connect_to_mongo

JOBS = ("reminders", "documents", "all")


def jobs_to_run(job: str) -> List[str]:
    return ["reminders", "documents"] if job == "all" else [job]


async def run_jobs(job: str, state=None) -> int:
    state = state if state is not None else SimpleNamespace(db=None, mongo_client=None)
    exit_code = 0
    try:
        db = await connect_to_mongo(state)
        for name in jobs_to_run(job):
            try:
                if name == "reminders":
                    result = await run_reminder_sweep(db)
                    logger.info(
                        f"Reminder sweep done: {result.triggered_count} triggered, {len(result.errors)} error(s)."
                    )
                else:
                    result = await run_document_audit(db)
                    logger.info(
                        f"Document audit done: {result.created_alert_count} created, "
                        f"{result.skipped_duplicate_count} duplicates skipped, {len(result.errors)} error(s)."
                    )
            except PersistenceError as e:
                logger.error(f"Job '{name}' failed: {e}", exc_info=True)
                exit_code = 1
    except ConnectionError as e:
        logger.error(f"Scheduler could not reach MongoDB: {e}", exc_info=True)
        exit_code = 1
    finally:
        close_mongo_connection(state)
    return exit_code


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Visa case batch jobs")
    parser.add_argument(
        "--job", "-j",
        choices=JOBS,
        default="all",
        help="Which job to run (default: all)",
    )
    args = parser.parse_args(argv)

    setup_opentelemetry(service_name=settings.SERVICE_NAME_SCHEDULER)
    PymongoInstrumentor().instrument()
    logger.info(f"Scheduler starting job(s): {args.job}")
    return asyncio.run(run_jobs(args.job))


if __name__ == '__main__':
    sys.exit(main())
