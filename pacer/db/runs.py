"""Database operations for completed runs and their raw location data."""

import json
import logging
from datetime import timezone

from pacer.models import CompletedRun, LocationSample, StoredRun
from pacer.models.run import RunKindFromCode
from .connection import get_db_cursor, get_db_connection

logger = logging.getLogger(__name__)

_RUN_COLUMNS = """
    id, type, start_time, end_time, duration_seconds, miles, steps, rating,
    note, weather_id
"""


def save_completed_run(run: CompletedRun) -> int:
    """Save a finished run and its samples in one transaction. Returns the run id.

    The samples are stored as a single JSON document in `location_data`; the
    run row references it. Either both rows are written or neither is.
    """
    samples_json = json.dumps([sample.model_dump() for sample in run.samples])

    with get_db_connection() as conn:
        with conn.transaction():
            with conn.cursor() as cursor:
                cursor.execute(
                    "INSERT INTO location_data (json) VALUES (%s) RETURNING id",
                    (samples_json,),
                )
                location_data_id = cursor.fetchone()[0]
                cursor.execute(
                    """
                    INSERT INTO runs (
                        type, start_time, end_time, duration_seconds,
                        location_data_id, miles, steps, rating
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        run.config.code,
                        run.started_at,
                        run.ended_at,
                        run.duration_seconds,
                        location_data_id,
                        run.total_distance_miles,
                        0,
                        0,
                    ),
                )
                run_id = cursor.fetchone()[0]

    logger.info(
        f"Saved {run.config.kind} run {run_id} with {len(run.samples)} samples"
    )
    return run_id


def get_all_runs() -> list[StoredRun]:
    """Get all runs, most recent first."""
    with get_db_cursor() as cursor:
        cursor.execute(f"SELECT {_RUN_COLUMNS} FROM runs ORDER BY start_time DESC")
        rows = cursor.fetchall()
        return [_row_to_run(row) for row in rows]


def get_run_by_id(run_id: int) -> StoredRun | None:
    """Get a single run by its id, or None if it doesn't exist."""
    with get_db_cursor() as cursor:
        cursor.execute(f"SELECT {_RUN_COLUMNS} FROM runs WHERE id = %s", (run_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return _row_to_run(row)


def get_run_samples(run_id: int) -> list[LocationSample]:
    """Get the location samples recorded for a run, in arrival order."""
    with get_db_cursor() as cursor:
        cursor.execute(
            """
            SELECT ld.json
            FROM runs r
            JOIN location_data ld ON r.location_data_id = ld.id
            WHERE r.id = %s
            """,
            (run_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return []
        data = row[0]
        # jsonb comes back decoded; plain text columns do not.
        if isinstance(data, str):
            data = json.loads(data)
        return [LocationSample.model_validate(item) for item in data]


def update_run_review(run_id: int, rating: int, note: str | None) -> bool:
    """Set the post-run rating and note. Returns False if the run doesn't exist."""
    with get_db_cursor() as cursor:
        cursor.execute(
            "UPDATE runs SET rating = %s, note = %s WHERE id = %s",
            (rating, note, run_id),
        )
        updated = cursor.rowcount > 0
    if updated:
        logger.info(f"Updated review for run {run_id}: rating={rating}")
    return updated


def _row_to_run(row: tuple) -> StoredRun:
    (
        id,
        code,
        start_time,
        end_time,
        duration_seconds,
        miles,
        steps,
        rating,
        note,
        weather_id,
    ) = row
    # Ensure timezone awareness
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    if end_time.tzinfo is None:
        end_time = end_time.replace(tzinfo=timezone.utc)
    return StoredRun(
        id=id,
        kind=RunKindFromCode[code],
        started_at=start_time,
        ended_at=end_time,
        duration_seconds=duration_seconds,
        miles=miles,
        steps=steps,
        rating=rating,
        note=note,
        weather_id=weather_id,
    )
