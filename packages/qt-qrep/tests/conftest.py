"""Pytest configuration and fixtures for qt-qrep tests."""

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pytest
from sqlalchemy import create_engine, event, text

from qt_qrep.config import get_settings
from qt_qrep.report import RawRow, Report, build_report, write_report


# =============================================================================
# ENVIRONMENT
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from the user's ~/.qrep-query-blacklist and .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("QREP_DENYLIST_FILE", str(tmp_path / "no-such-denylist"))
    monkeypatch.delenv("DSN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# REPORT FACTORIES
# =============================================================================

Row = Tuple[str, int, str, str]


@pytest.fixture
def make_report() -> Callable[..., Report]:
    """Build a report from (schema, count, fingerprint, text) tuples."""
    def _make(rows: Sequence[Row], source: str = "") -> Report:
        return build_report([RawRow(*r) for r in rows], source=source)
    return _make


@pytest.fixture
def write_rows(tmp_path) -> Callable[..., Path]:
    """Write a report built from raw tuples to tmp_path/<name>."""
    def _write(name: str, rows: Sequence[Row], directory: Optional[Path] = None) -> Path:
        report = build_report([RawRow(*r) for r in rows])
        return write_report((directory or tmp_path) / name, report.records)
    return _write


@pytest.fixture
def sample_rows() -> List[Row]:
    """A small capture, busiest first."""
    return [
        ("shop", 600, "d-select-orders", "SELECT * FROM `orders` WHERE `id` = ?"),
        ("shop", 300, "d-update-stock", "UPDATE `stock` SET `qty` = `qty` - ? WHERE `sku` = ?"),
        ("auth", 100, "d-select-user", "SELECT * FROM `users` WHERE `email` = ?"),
    ]


# =============================================================================
# DIGEST TABLE (SQLite stand-in for performance_schema)
# =============================================================================

DIGEST_ROWS = [
    {"schema_name": "shop", "count_star": 600, "digest": "d1", "digest_text": "SELECT * FROM `orders` WHERE `id` = ?"},
    {"schema_name": "shop", "count_star": 300, "digest": "d2", "digest_text": "UPDATE `stock` SET `qty` = ? WHERE `sku` = ?"},
    {"schema_name": "shop", "count_star": 250, "digest": "d3", "digest_text": "COMMIT"},
    {"schema_name": "shop", "count_star": 40, "digest": "d4", "digest_text": "SHOW WARNINGS"},
    {"schema_name": "mysql", "count_star": 900, "digest": "d5", "digest_text": "SELECT * FROM `user`"},
    {"schema_name": None, "count_star": 700, "digest": "d6", "digest_text": "SELECT ?"},
]


@pytest.fixture
def digest_engine(tmp_path):
    """SQLite engine with an attached performance_schema digest table."""
    ps_path = tmp_path / "performance_schema.db"
    engine = create_engine(f"sqlite:///{tmp_path / 'main.db'}")

    @event.listens_for(engine, "connect")
    def _attach(dbapi_conn, _record):
        dbapi_conn.execute(f"ATTACH DATABASE '{ps_path}' AS performance_schema")

    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE performance_schema.events_statements_summary_by_digest "
            "(schema_name TEXT, count_star INTEGER, digest TEXT, digest_text TEXT)"
        ))
        conn.execute(
            text(
                "INSERT INTO performance_schema.events_statements_summary_by_digest "
                "VALUES (:schema_name, :count_star, :digest, :digest_text)"
            ),
            DIGEST_ROWS,
        )
    yield engine
    engine.dispose()
