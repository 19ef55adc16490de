"""Tests for the migration CLI."""

import json
import logging

import pytest
from src.migrate import build_store, main
from src.store import DynamoDBStore, JsonlStore


def read_lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture(autouse=True)
def restore_root_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestBuildStore:
    """Tests for store selection."""

    def test_jsonl_requires_paths(self):
        with pytest.raises(ValueError):
            build_store("jsonl")

    def test_jsonl_store(self, tmp_path):
        store = build_store("jsonl", str(tmp_path / "in.jsonl"), str(tmp_path / "out"))
        assert isinstance(store, JsonlStore)

    def test_dynamodb_store(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        monkeypatch.setenv("DYNAMODB_TABLE_PREFIX", "prod_")

        store = build_store("dynamodb")

        assert isinstance(store, DynamoDBStore)
        assert store.table_name("ships") == "prod_ships"


class TestMain:
    """End-to-end runs against the JSONL store."""

    def test_dry_run(self, tmp_path, capsys):
        source = tmp_path / "visits.jsonl"
        source.write_text("\n".join(json.dumps(r) for r in [
            {"id": "v1", "ship": "MV Example", "gt": 5000,
             "inward": {"boarding": "2021-03-01T09:15:00Z"}},
            {"id": "v2", "ship": "mv example", "gt": 5000,
             "inward": {"boarding": "2021-04-01T09:15:00Z"},
             "extra": [{"boarding": "2022-01-01", "typeTrip": "Shift"}]},
            {"id": "v3"},
        ]))
        out = tmp_path / "out"

        code = main([
            "--store", "jsonl",
            "--source-file", str(source),
            "--output-dir", str(out),
            "--log-level", "WARNING",
        ])

        assert code == 0
        assert len(read_lines(out / "ships.jsonl")) == 1
        assert [v["id"] for v in read_lines(out / "visits_new.jsonl")] == ["v1", "v2"]
        assert len(read_lines(out / "trips.jsonl")) == 3
        summaries = {d["id"]: d for d in read_lines(out / "system_metadata.jsonl")}
        assert summaries["trip_summary"]["countsByYear"] == {"2021": 2, "2022": 1}

        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "success"
        assert summary["records_skipped"] == 1

    def test_failed_run_exit_code(self, tmp_path):
        code = main([
            "--store", "jsonl",
            "--source-file", str(tmp_path / "missing.jsonl"),
            "--output-dir", str(tmp_path / "out"),
        ])

        assert code == 1

    def test_invalid_threshold(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--flush-threshold", "100"])
