"""
Documents Background Jobs

Orphaned file sweep: removes stored files that no document row references.

Orphans appear when an upload's metadata insert fails after the bytes were
written and the cleanup also failed, or when a store call timed out but the
worker thread finished anyway. Only files older than the grace period are
considered, so uploads still in flight are never touched.

The job is idempotent; a file already gone counts as removed.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from admissions.core.config import settings
from admissions.core.database import async_session_maker
from admissions.core.exceptions import StorageFailureError
from admissions.core.scheduler import register_job
from admissions.modules.documents import repository
from admissions.modules.storage.file_store import FileStore, StoredFileNotFoundError, get_file_store

logger = logging.getLogger(__name__)

JOB_ID_SWEEP_ORPHAN_FILES = "documents_sweep_orphan_files"
SWEEP_INTERVAL_HOURS = 6
# Keys per referenced-key query
BATCH_SIZE = 500


async def sweep_orphan_files(
    store: FileStore | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Delete stored files older than the grace period that no document references.

    Returns:
        Dict with executed_at, scanned, candidates, removed (list of keys)
        and total_errors
    """
    store = store or get_file_store()
    executed_at = now or datetime.now(UTC)
    cutoff = executed_at - timedelta(hours=settings.orphan_file_grace_hours)

    logger.info(f"Starting orphan file sweep. Cutoff: {cutoff.isoformat()}")

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "scanned": 0,
        "candidates": 0,
        "removed": [],
        "total_errors": 0,
    }

    files = await store.list_files()
    results["scanned"] = len(files)

    old_keys = [f.key for f in files if f.modified_at < cutoff]
    results["candidates"] = len(old_keys)

    for start in range(0, len(old_keys), BATCH_SIZE):
        batch = old_keys[start : start + BATCH_SIZE]

        async with async_session_maker() as db:
            referenced = await repository.get_referenced_keys(db, batch)

        for key in batch:
            if key in referenced:
                continue
            try:
                await store.delete(key)
            except StoredFileNotFoundError:
                pass
            except StorageFailureError as e:
                logger.error(f"Could not remove orphaned file {key}: {e.message}")
                results["total_errors"] += 1
                continue
            results["removed"].append(key)

    logger.info(
        f"Orphan file sweep completed. Removed: {len(results['removed'])}, "
        f"Errors: {results['total_errors']}"
    )
    return results


def register_document_jobs() -> None:
    """Register document background jobs. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_SWEEP_ORPHAN_FILES,
        func=sweep_orphan_files,
        trigger=IntervalTrigger(hours=SWEEP_INTERVAL_HOURS),
    )
    logger.info(f"Registered job: {JOB_ID_SWEEP_ORPHAN_FILES} (interval: {SWEEP_INTERVAL_HOURS} hours)")
