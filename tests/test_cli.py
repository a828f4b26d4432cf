"""Tests for CLI commands (CliRunner, files under tmp_path)."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from stampgraph.cli import main
from stampgraph.config import Settings
from stampgraph.logging_config import LOGGER_NAME, setup_logging
from stampgraph.manifest import MANIFEST_FILENAME


@pytest.fixture(autouse=True)
def _restore_logging():
    # setup_logging points the stampgraph handler at CliRunner's stderr, which
    # is closed once the invocation returns.
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def runner():
    return CliRunner()


def _pack(runner: CliRunner, sidecar_dir: Path, out: Path, *extra: str) -> dict:
    result = runner.invoke(
        main,
        ["pack", str(sidecar_dir), "src/App.tsx", "--project-root", str(sidecar_dir),
         "-o", str(out), *extra],
    )
    assert result.exit_code == 0, result.output
    (bundle,) = json.loads(out.read_text())
    return bundle


class TestManifestCommand:
    def test_writes_manifest(self, runner, sidecar_dir: Path, tmp_path: Path):
        out = tmp_path / "out"
        out.mkdir()
        result = runner.invoke(main, ["manifest", str(sidecar_dir), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert "Components: 3" in result.output
        assert "src/components/Button.tsx (2)" in result.output
        data = json.loads((out / MANIFEST_FILENAME).read_text())
        assert data["graph"]["roots"] == ["src/App.tsx"]
        assert "hashIndex" not in data

    def test_hash_index_flag(self, runner, sidecar_dir: Path, tmp_path: Path):
        result = runner.invoke(
            main, ["manifest", str(sidecar_dir), "-o", str(tmp_path), "--hash-index"]
        )
        assert result.exit_code == 0, result.output
        assert "hashIndex" in json.loads((tmp_path / MANIFEST_FILENAME).read_text())

    def test_missing_output_dir(self, runner, sidecar_dir: Path, tmp_path: Path):
        result = runner.invoke(main, ["manifest", str(sidecar_dir), "-o", str(tmp_path / "x")])
        assert result.exit_code == 1
        assert "Parent directory not found" in result.output


class TestPackCommand:
    def test_stdout(self, runner, sidecar_dir: Path):
        result = runner.invoke(
            main, ["pack", str(sidecar_dir), "App", "--project-root", str(sidecar_dir)]
        )
        assert result.exit_code == 0, result.output
        (bundle,) = json.loads(result.output)
        assert bundle["entryId"] == "src/App.tsx"
        assert bundle["depth"] == 1
        assert [m["name"] for m in bundle["meta"]["missing"]] == ["Card"]

    def test_output_file(self, runner, sidecar_dir: Path, tmp_path: Path):
        bundle = _pack(runner, sidecar_dir, tmp_path / "context.json", "--depth", "0")
        assert [n["entryId"] for n in bundle["graph"]["nodes"]] == ["src/App.tsx"]

    def test_max_nodes(self, runner, sidecar_dir: Path, tmp_path: Path):
        out = tmp_path / "context.json"
        result = runner.invoke(
            main,
            ["pack", str(sidecar_dir), "src/App.tsx", "--max-nodes", "1", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert "Truncated at 1 nodes" in result.output
        (bundle,) = json.loads(out.read_text())
        assert bundle["meta"]["truncated"] is True

    def test_unknown_entry(self, runner, sidecar_dir: Path):
        result = runner.invoke(main, ["pack", str(sidecar_dir), "src/Nope.tsx"])
        assert result.exit_code == 1
        assert "Component not found: src/Nope.tsx" in result.output

    def test_invalid_depth(self, runner, sidecar_dir: Path):
        result = runner.invoke(main, ["pack", str(sidecar_dir), "App", "--depth", "-1"])
        assert result.exit_code == 2


class TestCompareCommand:
    def _snapshots(self, runner, sidecar_dir: Path, tmp_path: Path) -> tuple[Path, Path]:
        old = tmp_path / "old.json"
        _pack(runner, sidecar_dir, old)
        bundles = json.loads(old.read_text())
        for node in bundles[0]["graph"]["nodes"]:
            if node["entryId"] == "src/Header.tsx":
                node["contract"]["exports"] = "named"
        new = tmp_path / "new.json"
        new.write_text(json.dumps(bundles))
        return old, new

    def test_pass(self, runner, sidecar_dir: Path, tmp_path: Path):
        old, _ = self._snapshots(runner, sidecar_dir, tmp_path)
        result = runner.invoke(main, ["compare", str(old), str(old)])
        assert result.exit_code == 0
        assert result.output.strip() == "PASS"

    def test_drift_exit_code(self, runner, sidecar_dir: Path, tmp_path: Path):
        old, new = self._snapshots(runner, sidecar_dir, tmp_path)
        result = runner.invoke(main, ["compare", str(old), str(new)])
        assert result.exit_code == 1
        assert result.output.startswith("DRIFT")
        assert "~ src/header.tsx" in result.output
        assert "exports: 'default' -> 'named'" in result.output

    def test_json_output(self, runner, sidecar_dir: Path, tmp_path: Path):
        old, new = self._snapshots(runner, sidecar_dir, tmp_path)
        result = runner.invoke(main, ["compare", str(old), str(new), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == "DRIFT"
        assert data["added"] == []
        assert data["removed"] == []
        assert [d["type"] for d in data["changed"][0]["deltas"]] == ["exports"]

    def test_unreadable_snapshot(self, runner, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope")
        result = runner.invoke(main, ["compare", str(bad), str(bad)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestCompareIndexCommand:
    def _indices(self, tmp_path: Path) -> tuple[Path, Path]:
        bundle_doc = [{"type": "LogicStampBundle", "graph": {"nodes": [], "edges": []}}]
        for side in ("old", "new"):
            (tmp_path / side / "src").mkdir(parents=True)
            (tmp_path / side / "src" / "context.json").write_text(json.dumps(bundle_doc))
        (tmp_path / "new" / "lib").mkdir()
        (tmp_path / "new" / "lib" / "context.json").write_text(json.dumps(bundle_doc))

        old_index = tmp_path / "old" / "context_main.json"
        old_index.write_text(json.dumps({
            "type": "LogicStampIndex",
            "folders": [{"path": "src", "contextFile": "src/context.json", "bundles": 0}],
        }))
        new_index = tmp_path / "new" / "context_main.json"
        new_index.write_text(json.dumps({
            "type": "LogicStampIndex",
            "folders": [
                {"path": "src", "contextFile": "src/context.json", "bundles": 0},
                {"path": "lib", "contextFile": "lib/context.json", "bundles": 1},
            ],
        }))
        return old_index, new_index

    def test_pass(self, runner, tmp_path: Path):
        old, _ = self._indices(tmp_path)
        result = runner.invoke(main, ["compare", "--index", str(old), str(old)])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("PASS")
        assert "[=] PASS src/context.json" in result.output

    def test_added_folder_is_drift(self, runner, tmp_path: Path):
        old, new = self._indices(tmp_path)
        result = runner.invoke(main, ["compare", "--index", str(old), str(new)])
        assert result.exit_code == 1
        assert result.output.startswith("DRIFT")
        assert "Folders: 2 (added 1, orphaned 0, drift 0, pass 1)" in result.output
        assert "Components: +1 -0 ~0" in result.output
        assert "[+] ADDED lib/context.json" in result.output

    def test_json_output(self, runner, tmp_path: Path):
        old, new = self._indices(tmp_path)
        result = runner.invoke(main, ["compare", "--index", str(new), str(old), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["status"] == "DRIFT"
        assert [f["status"] for f in data["folders"]] == ["ORPHANED", "PASS"]
        assert data["orphanedFiles"] == ["lib/context.json"]

    def test_not_an_index(self, runner, tmp_path: Path):
        path = tmp_path / "context.json"
        path.write_text("[]")
        result = runner.invoke(main, ["compare", "--index", str(path), str(path)])
        assert result.exit_code == 1
        assert "expected type 'LogicStampIndex'" in result.output


class TestValidateCommand:
    def test_valid(self, runner, sidecar_dir: Path, tmp_path: Path):
        out = tmp_path / "context.json"
        _pack(runner, sidecar_dir, out, "--depth", "2")
        result = runner.invoke(main, ["validate", str(out)])
        assert result.exit_code == 0, result.output
        assert "Valid: 1 bundle(s), 3 node(s), 3 edge(s)" in result.output

    def test_invalid(self, runner, tmp_path: Path):
        path = tmp_path / "context.json"
        path.write_text(json.dumps([{"type": "Nope"}]))
        result = runner.invoke(main, ["validate", str(path)])
        assert result.exit_code == 1
        assert "[!] Bundle 1: Invalid type" in result.output

    def test_verbose_flag(self, runner, tmp_path: Path):
        path = tmp_path / "context.json"
        path.write_text("[]")
        result = runner.invoke(main, ["-v", "validate", str(path)])
        assert result.exit_code == 0


class TestSimilarCommand:
    def test_lists_matches(self, runner, sidecar_dir: Path):
        result = runner.invoke(main, ["similar", str(sidecar_dir), "src/App.tsx"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "Same structure as src/App.tsx:"
        assert lines[1] == "  (none)"
        assert lines[2] == "Same signature as src/App.tsx:"
        assert lines[3] == "  src/Header.tsx"

    def test_unknown_entry(self, runner, sidecar_dir: Path):
        result = runner.invoke(main, ["similar", str(sidecar_dir), "src/Nope.tsx"])
        assert result.exit_code == 1


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings == Settings(depth=1, max_nodes=100, project_root=".",
                                    include_hash_index=False)

    def test_from_environment(self):
        env = {
            "STAMPGRAPH_DEPTH": "3",
            "STAMPGRAPH_MAX_NODES": "50",
            "STAMPGRAPH_PROJECT_ROOT": "/srv/app",
            "STAMPGRAPH_HASH_INDEX": "true",
        }
        with patch.dict(os.environ, env):
            settings = Settings.from_env()
        assert settings == Settings(3, 50, "/srv/app", True)

    def test_bad_integer_falls_back(self):
        assert Settings.from_env({"STAMPGRAPH_DEPTH": "deep"}).depth == 1


class TestSetupLogging:
    def test_explicit_level_wins(self):
        with patch.dict(os.environ, {"STAMPGRAPH_LOG_LEVEL": "ERROR"}):
            setup_logging("debug")
        logger = logging.getLogger(LOGGER_NAME)
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger(LOGGER_NAME).handlers) == 1
