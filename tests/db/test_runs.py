"""Tests for run database operations."""

import json
from datetime import datetime, timezone
from unittest.mock import patch, MagicMock

import pytest

from pacer.db.runs import (
    save_completed_run,
    get_all_runs,
    get_run_by_id,
    get_run_samples,
    update_run_review,
)


def _connection_cursor(mock_get_connection) -> MagicMock:
    """Wire a mocked get_db_connection and return the cursor it hands out."""
    mock_conn = MagicMock()
    mock_get_connection.return_value.__enter__.return_value = mock_conn
    return mock_conn.cursor.return_value.__enter__.return_value


def _run_row(**overrides):
    row = {
        "id": 3,
        "type": "D",
        "start_time": datetime(2024, 5, 4, 12, 0, 0),
        "end_time": datetime(2024, 5, 4, 12, 40, 0),
        "duration_seconds": 2100,
        "miles": 4.0,
        "steps": 0,
        "rating": 4,
        "note": "windy",
        "weather_id": None,
    }
    row.update(overrides)
    return tuple(row.values())


class TestSaveCompletedRun:
    @patch("pacer.db.runs.get_db_connection")
    def test_inserts_samples_then_run(
        self, mock_get_connection, completed_run_factory, sample_factory
    ):
        mock_cursor = _connection_cursor(mock_get_connection)
        mock_cursor.fetchone.side_effect = [(7,), (42,)]
        run = completed_run_factory.make(
            {"samples": tuple(sample_factory.track(0, 0.5))}
        )

        run_id = save_completed_run(run)

        assert run_id == 42
        assert mock_cursor.execute.call_count == 2

        location_sql, location_params = mock_cursor.execute.call_args_list[0][0]
        assert "INSERT INTO location_data" in location_sql
        stored = json.loads(location_params[0])
        assert len(stored) == 2
        assert stored[0]["latitude"] == pytest.approx(41.8781)

        run_sql, run_params = mock_cursor.execute.call_args_list[1][0]
        assert "INSERT INTO runs" in run_sql
        assert run_params[0] == "T"
        assert run_params[3] == 1800
        assert run_params[4] == 7
        assert run_params[5] == 3.1

    @patch("pacer.db.runs.get_db_connection")
    def test_uses_a_single_transaction(self, mock_get_connection, completed_run_factory):
        mock_conn = MagicMock()
        mock_get_connection.return_value.__enter__.return_value = mock_conn
        mock_cursor = mock_conn.cursor.return_value.__enter__.return_value
        mock_cursor.fetchone.side_effect = [(1,), (2,)]

        save_completed_run(completed_run_factory.make())

        mock_conn.transaction.assert_called_once()

    @patch("pacer.db.runs.get_db_connection")
    def test_failure_propagates(self, mock_get_connection, completed_run_factory):
        mock_cursor = _connection_cursor(mock_get_connection)
        mock_cursor.execute.side_effect = [None, RuntimeError("constraint violated")]
        mock_cursor.fetchone.return_value = (1,)

        with pytest.raises(RuntimeError, match="constraint violated"):
            save_completed_run(completed_run_factory.make())


class TestGetRuns:
    @patch("pacer.db.runs.get_db_cursor")
    def test_get_all_runs_most_recent_first(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.fetchall.return_value = [_run_row(id=2), _run_row(id=1, type="F")]
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        runs = get_all_runs()

        assert [run.id for run in runs] == [2, 1]
        assert runs[0].kind == "distance"
        assert runs[1].kind == "free"
        assert "ORDER BY start_time DESC" in mock_cursor.execute.call_args[0][0]

    @patch("pacer.db.runs.get_db_cursor")
    def test_naive_times_become_utc(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.fetchone.return_value = _run_row()
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        run = get_run_by_id(3)

        assert run is not None
        assert run.started_at.tzinfo == timezone.utc
        assert run.ended_at == datetime(2024, 5, 4, 12, 40, 0, tzinfo=timezone.utc)
        assert run.rating == 4
        assert run.note == "windy"
        assert mock_cursor.execute.call_args[0][1] == (3,)

    @patch("pacer.db.runs.get_db_cursor")
    def test_get_run_by_id_missing(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.fetchone.return_value = None
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert get_run_by_id(404) is None


class TestGetRunSamples:
    @patch("pacer.db.runs.get_db_cursor")
    def test_decoded_jsonb(self, mock_get_cursor, sample_factory):
        samples = sample_factory.track(0, 0.1)
        mock_cursor = MagicMock()
        mock_cursor.fetchone.return_value = ([s.model_dump() for s in samples],)
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert get_run_samples(1) == samples

    @patch("pacer.db.runs.get_db_cursor")
    def test_text_json(self, mock_get_cursor, sample_factory):
        samples = sample_factory.track(0)
        mock_cursor = MagicMock()
        mock_cursor.fetchone.return_value = (
            json.dumps([s.model_dump() for s in samples]),
        )
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert get_run_samples(1) == samples

    @patch("pacer.db.runs.get_db_cursor")
    def test_missing_run(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.fetchone.return_value = None
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert get_run_samples(1) == []


class TestUpdateRunReview:
    @patch("pacer.db.runs.get_db_cursor")
    def test_updates_existing_run(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.rowcount = 1
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert update_run_review(3, 5, "felt great") is True
        assert mock_cursor.execute.call_args[0][1] == (5, "felt great", 3)

    @patch("pacer.db.runs.get_db_cursor")
    def test_missing_run(self, mock_get_cursor):
        mock_cursor = MagicMock()
        mock_cursor.rowcount = 0
        mock_get_cursor.return_value.__enter__.return_value = mock_cursor

        assert update_run_review(3, 5, None) is False
