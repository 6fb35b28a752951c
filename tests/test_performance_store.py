"""Tests for per-run JSON metrics storage."""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


TS = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestWriteRunMetrics:
    def test_writes_one_file_per_run(self, make_run):
        from prompt_router.performance import run_metrics_path, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir) / "nested" / "metrics"
            path = write_run_metrics(make_run("run-1", TS), directory)

            assert path == run_metrics_path(directory, "run-1")
            assert path.name == "run-1.json"
            assert json.loads(path.read_text())["runId"] == "run-1"
            # No temporary files left behind
            assert [p.name for p in directory.iterdir()] == ["run-1.json"]

    def test_rewrite_replaces_document(self, make_run):
        from prompt_router.performance import ModelPerformance, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            write_run_metrics(make_run("run-1", TS), directory)
            write_run_metrics(
                make_run(
                    "run-1",
                    TS,
                    models=[ModelPerformance(model_name="m", engine="e", execution_time=5, cost=0.5)],
                ),
                directory,
            )

            doc = json.loads((directory / "run-1.json").read_text())
            assert doc["totalCost"] == 0.5


class TestLoadRunMetrics:
    def test_missing_directory_is_empty_history(self):
        from prompt_router.performance import load_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            assert load_run_metrics(Path(tmpdir) / "does-not-exist") == []

    def test_round_trip_preserves_total_cost(self, make_run):
        from prompt_router.performance import (
            ModelPerformance,
            load_run_metrics,
            write_run_metrics,
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            models = [
                ModelPerformance(model_name="a", engine="x", execution_time=100, cost=0.1),
                ModelPerformance(model_name="b", engine="y", execution_time=200, cost=0.2),
                ModelPerformance(model_name="c", engine="z", execution_time=300, cost=0.0003),
            ]
            original = make_run("run-1", TS, models=models)
            write_run_metrics(original, directory)

            (loaded,) = load_run_metrics(directory)
            assert loaded.total_cost == original.total_cost
            assert loaded.total_cost == sum(m.cost for m in loaded.models)
            assert loaded.to_dict() == original.to_dict()

    def test_sorted_oldest_first(self, make_run):
        from prompt_router.performance import load_run_metrics, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            write_run_metrics(make_run("a-newest", TS), directory)
            write_run_metrics(make_run("z-oldest", TS - timedelta(days=2)), directory)

            assert [r.run_id for r in load_run_metrics(directory)] == ["z-oldest", "a-newest"]

    def test_malformed_files_are_skipped(self, make_run, caplog):
        from prompt_router.performance import load_run_metrics, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            write_run_metrics(make_run("good", TS), directory)
            (directory / "broken.json").write_text("{not json")
            (directory / "list.json").write_text("[]")
            (directory / "partial.json").write_text('{"prompt": "no run id"}')
            (directory / "notes.txt").write_text("ignored")

            with caplog.at_level("WARNING"):
                runs = load_run_metrics(directory)

            assert [r.run_id for r in runs] == ["good"]
            assert "broken.json" in caplog.text
            assert "partial.json" in caplog.text

    @pytest.mark.parametrize(
        "overrides",
        [
            {"models": [None]},
            {"models": "gpt-4o"},
            {"contextMetadata": "x"},
            {"userFeedback": ["bad"]},
            {"models": [{"modelName": "m", "engine": "e", "tokenUsage": 12}]},
        ],
    )
    def test_wrongly_shaped_nested_values_are_skipped(self, make_run, caplog, overrides):
        from prompt_router.performance import load_run_metrics, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            write_run_metrics(make_run("good", TS), directory)
            document = {"runId": "bad", "timestamp": "2025-03-01T12:00:00Z", "models": []}
            document.update(overrides)
            (directory / "bad.json").write_text(json.dumps(document))

            with caplog.at_level("WARNING"):
                runs = load_run_metrics(directory)

            assert [r.run_id for r in runs] == ["good"]
            assert "bad.json" in caplog.text

    def test_tracker_history_load_skips_wrongly_shaped_run(self, make_run):
        from prompt_router.performance import PerformanceTracker, write_run_metrics

        with tempfile.TemporaryDirectory() as tmpdir:
            directory = Path(tmpdir)
            write_run_metrics(make_run("good", TS), directory)
            (directory / "bad.json").write_text(
                '{"runId": "bad", "timestamp": "2025-03-01T12:00:00Z", "models": [null]}'
            )

            tracker = PerformanceTracker(metrics_dir=directory)
            assert tracker.load_historical_metrics() == 1
            assert tracker.get_run_metrics("bad") is None
