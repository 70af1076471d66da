"""Shared fixtures: a throwaway Wakapi database on disk."""

import sqlite3

import pytest

WAKAPI_SCHEMA = """
CREATE TABLE heartbeats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT,
    entity TEXT,
    type TEXT,
    category TEXT,
    project TEXT,
    branch TEXT,
    language TEXT,
    is_write NUMERIC,
    editor TEXT,
    operating_system TEXT,
    machine TEXT,
    user_agent TEXT,
    time TIMESTAMP,
    hash TEXT,
    origin TEXT,
    origin_id TEXT,
    created_at TIMESTAMP
)
"""


@pytest.fixture
def wakapi_db(tmp_path):
    """Return a factory writing ``(user_id, project, time)`` rows to a new Wakapi DB."""

    def make(rows, name="wakapi_db.db"):
        path = tmp_path / name
        conn = sqlite3.connect(path)
        conn.execute(WAKAPI_SCHEMA)
        conn.executemany(
            "INSERT INTO heartbeats (user_id, project, time, entity, language) VALUES (?, ?, ?, 'main.py', 'Python')",
            rows,
        )
        conn.commit()
        conn.close()
        return path

    return make
