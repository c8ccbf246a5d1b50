"""create tracking tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:12:04.218377+00:00

"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the runs, location_data, weather and settings tables."""
    # All samples of a run live in one JSON document.
    op.execute("""
        CREATE TABLE location_data (
            id SERIAL PRIMARY KEY,
            json JSONB NOT NULL
        )
    """)
    op.execute("""
        CREATE TABLE weather (
            id SERIAL PRIMARY KEY,
            date TIMESTAMP WITH TIME ZONE NOT NULL,
            temperature DOUBLE PRECISION NOT NULL,
            precipitation VARCHAR(2) CHECK (precipitation IN ('M', 'L', 'H', 'ST', 'SN')),
            wind_speed DOUBLE PRECISION,
            wind_direction VARCHAR(2) CHECK (
                wind_direction IN ('N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW')
            ),
            air_quality INTEGER,
            humidity DOUBLE PRECISION,
            uv_index INTEGER
        )
    """)
    op.execute("""
        CREATE TABLE runs (
            id SERIAL PRIMARY KEY,
            type CHAR(1) NOT NULL CHECK (type IN ('T', 'D', 'F')),
            start_time TIMESTAMP WITH TIME ZONE NOT NULL,
            end_time TIMESTAMP WITH TIME ZONE NOT NULL,
            duration_seconds INTEGER NOT NULL CHECK (duration_seconds >= 0),
            location_data_id INTEGER REFERENCES location_data(id),
            miles DOUBLE PRECISION NOT NULL,
            steps INTEGER NOT NULL DEFAULT 0,
            weather_id INTEGER REFERENCES weather(id),
            rating INTEGER NOT NULL DEFAULT 0 CHECK (rating BETWEEN 0 AND 5),
            note TEXT
        )
    """)
    op.execute("CREATE INDEX idx_runs_start_time ON runs (start_time)")
    op.execute("""
        CREATE TABLE settings (
            key VARCHAR(100) PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)


def downgrade() -> None:
    """Drop the tracking tables."""
    op.execute("DROP TABLE IF EXISTS settings")
    op.execute("DROP INDEX IF EXISTS idx_runs_start_time")
    op.execute("DROP TABLE IF EXISTS runs")
    op.execute("DROP TABLE IF EXISTS weather")
    op.execute("DROP TABLE IF EXISTS location_data")
