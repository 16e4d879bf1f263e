import logging

from libcatalog.utils import get_logger
from libcatalog.utils.performance import (
    SLOW_QUERY_ENV_VAR,
    PerformanceTracker,
    resolve_slow_query_ms,
    is_read,
    table_of,
)


def test_performance_tracker_records_summary(caplog):
    caplog.set_level(logging.WARNING, logger="libcatalog.tests.performance")
    tracker = PerformanceTracker(
        get_logger("tests.performance"), n_plus_one_threshold=3, sample_size=2
    )
    for i in range(3):
        tracker.record('SELECT "id" FROM "book" WHERE "id" = ?', [i], 1.5)
    assert any("Potential N+1 detected" in rec.message for rec in caplog.records)

    summary = tracker.summary()
    assert summary[0]["count"] == 3
    assert summary[0]["samples"] == ["(0,)", "(1,)"]
    assert summary[0]["average_ms"] == 1.5
    assert summary[0]["table"] == "book"
    assert any("on book" in rec.message for rec in caplog.records)


def test_repeated_identical_lookup_is_not_n_plus_one(caplog):
    caplog.set_level(logging.WARNING, logger="libcatalog.tests.performance")
    tracker = PerformanceTracker(get_logger("tests.performance"), n_plus_one_threshold=2)
    for _ in range(4):
        tracker.record('SELECT COUNT(*) FROM "genre"', [], 0.2)
    assert not caplog.records


def test_performance_tracker_reset():
    tracker = PerformanceTracker(get_logger("tests.performance"), n_plus_one_threshold=2)
    tracker.record("SELECT 1", [], 0.5)
    tracker.reset()
    assert tracker.summary() == []


def test_resolve_slow_query_ms(monkeypatch):
    monkeypatch.delenv(SLOW_QUERY_ENV_VAR, raising=False)
    assert resolve_slow_query_ms(default=100) == 100
    monkeypatch.setenv(SLOW_QUERY_ENV_VAR, "25")
    assert resolve_slow_query_ms(default=100) == 25
    assert resolve_slow_query_ms(default=100, override=5) == 5
    monkeypatch.setenv(SLOW_QUERY_ENV_VAR, "soon")
    assert resolve_slow_query_ms(default=100) == 100


def test_table_of():
    assert table_of('SELECT "id" FROM "genre" WHERE "id" = ?') == "genre"
    assert table_of('INSERT INTO "bookinstance" ("id") VALUES (?)') == "bookinstance"
    assert table_of('UPDATE "author" SET "first_name" = ?') == "author"
    assert table_of('CREATE TABLE IF NOT EXISTS "book" ("id" TEXT)') == "book"
    assert table_of("SELECT 1") is None


def test_writes_are_not_tracked(caplog):
    caplog.set_level(logging.WARNING, logger="libcatalog.tests.performance")
    tracker = PerformanceTracker(get_logger("tests.performance"), n_plus_one_threshold=2)
    for i in range(4):
        tracker.record('INSERT INTO "genre" ("id", "name") VALUES (?, ?)', [f"id-{i}", f"Genre {i}"], 0.3)
        tracker.record('DELETE FROM "genre" WHERE "id" = ?', [f"id-{i}"], 0.3)
    assert tracker.summary() == []
    assert not caplog.records


def test_interleaved_lookups_are_not_n_plus_one(caplog):
    caplog.set_level(logging.WARNING, logger="libcatalog.tests.performance")
    tracker = PerformanceTracker(get_logger("tests.performance"), n_plus_one_threshold=3)
    for i in range(6):
        tracker.record('SELECT "id", "name" FROM "genre" WHERE "name" = ?', [f"Genre {i}"], 0.1)
        tracker.record('SELECT "id", "name" FROM "genre" WHERE "id" = ?', [f"id-{i}"], 0.1)
    assert not caplog.records
    assert all(entry["count"] == 6 for entry in tracker.summary())


def test_samples_stay_bounded():
    tracker = PerformanceTracker(get_logger("tests.performance"), sample_size=3)
    for i in range(300):
        tracker.record('SELECT "id" FROM "author" WHERE "id" = ?', [f"id-{i}"], 0.1)
    (entry,) = tracker.summary()
    assert entry["count"] == 300
    assert len(entry["samples"]) == 3


def test_is_read():
    assert is_read('SELECT "id" FROM "book"')
    assert is_read("  with recent as (select 1) select * from recent")
    assert not is_read('UPDATE "book" SET "title" = ?')
    assert not is_read("BEGIN IMMEDIATE")
