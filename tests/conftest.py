"""Shared fixtures: a small SQLite database acting as the scraped target."""

import sqlite3

import pytest

from dbquery_exporter.config import ExporterConfig, MetricKind, MetricSpec

SCHEMA = """
CREATE TABLE sessions (id INTEGER PRIMARY KEY, region TEXT);
INSERT INTO sessions (region) VALUES ('us'), ('us'), ('us'), ('us'), ('us');
INSERT INTO sessions (region) VALUES ('eu'), ('eu'), ('eu');

CREATE TABLE readings (sensor TEXT, reading TEXT, note TEXT);
INSERT INTO readings VALUES ('a', '1.5', NULL);
INSERT INTO readings VALUES ('b', 'n/a', 'offline');
"""


@pytest.fixture
def sqlite_dsn(tmp_path):
    path = tmp_path / "exporter.db"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
    return f"sqlite:///{path}"


def metric(name, query, kind="gauge", labels=(), value="c", description=""):
    """Build a MetricSpec the way the loader would."""
    return MetricSpec(
        name=name,
        query=query,
        kind=MetricKind.parse(kind),
        type_name=kind,
        description=description or f"{name} metric",
        labels=tuple(labels),
        value=value,
    )


def make_config(dsn, *specs):
    return ExporterConfig(dsn=dsn, metrics={spec.name: spec for spec in specs})
