"""Tests for the async database adapters used by the tracking engine."""

from unittest.mock import patch

import pytest

from pacer.db.adapters import DbSettingsProvider, PostgresRunRepository


class TestPostgresRunRepository:
    @pytest.mark.asyncio
    @patch("pacer.db.runs.save_completed_run")
    async def test_save_runs_in_executor(self, mock_save, completed_run_factory):
        mock_save.return_value = 17
        run = completed_run_factory.make()

        assert await PostgresRunRepository().save_completed_run(run) == 17
        mock_save.assert_called_once_with(run)

    @pytest.mark.asyncio
    @patch("pacer.db.runs.save_completed_run")
    async def test_save_failure_propagates(self, mock_save, completed_run_factory):
        mock_save.side_effect = RuntimeError("connection refused")

        with pytest.raises(RuntimeError, match="connection refused"):
            await PostgresRunRepository().save_completed_run(completed_run_factory.make())


class TestDbSettingsProvider:
    @pytest.mark.asyncio
    @patch("pacer.db.settings.get_use_metric_units", return_value=True)
    @patch("pacer.db.settings.get_weather_tracking_enabled", return_value=True)
    @patch("pacer.db.settings.get_gps_interval_seconds", return_value=12)
    async def test_getters(self, _gps, _weather, _metric):
        provider = DbSettingsProvider()

        assert await provider.get_gps_interval_seconds() == 12
        assert await provider.get_weather_tracking_enabled() is True
        assert await provider.get_use_metric_units() is True
