"""End-to-end tests for the offline-sources entry point."""

import hashlib
import json
from unittest.mock import patch

import pytest

from conftest import FakeFetcher, REPO, module_json
from cli_config import GeneratorConfig
from constants import ExitCodes
from offline_sources import main, run
from resolution import DigestAlgorithmUnavailable, WorkerTaskFailure

LIB_DIR = REPO + "com/example/lib/1.0/"


def _graph(tmp_path, document):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def _project_graph(tmp_path):
    (tmp_path / "lib-1.0.jar").write_bytes(b"jar from the local cache")
    return _graph(tmp_path, {
        "repositories": [REPO],
        "configurations": [{
            "name": "runtimeClasspath",
            "dependencies": [{"id": "com.example:lib:1.0", "variant": "runtimeElements"},
                             {"id": "project :app"}],
            "artifacts": [{"id": "com.example:lib:1.0", "file": "lib-1.0.jar"}],
        }],
    })


def _fetcher():
    return FakeFetcher(
        files={LIB_DIR + "lib-1.0.module": module_json(("runtimeElements", ["lib-1.0.jar"], {}))},
        valid={LIB_DIR + "lib-1.0.jar"},
    )


class TestRun:
    """Exit codes and output."""

    @patch('offline_sources.ContentFetcher')
    def test_writes_sorted_sources_list(self, mock_fetcher, tmp_path):
        """Test a run writes the sorted sources list."""
        mock_fetcher.return_value = _fetcher()
        output = tmp_path / "sources.json"
        config = GeneratorConfig(output=str(output), graph=_project_graph(tmp_path))

        assert run(config) == ExitCodes.SUCCESS.value

        entries = json.loads(output.read_text(encoding="utf-8"))
        assert [e["dest-filename"] for e in entries] == ["lib-1.0.jar", "lib-1.0.module"]
        assert entries[0]["url"] == LIB_DIR + "lib-1.0.jar"
        assert entries[0]["dest"] == "offline-repository/com/example/lib/1.0"
        assert entries[0]["sha512"] == hashlib.sha512(b"jar from the local cache").hexdigest()

    @patch('offline_sources.ContentFetcher')
    def test_empty_graph_writes_empty_list(self, mock_fetcher, tmp_path):
        """Test an empty graph writes an empty list."""
        mock_fetcher.return_value = FakeFetcher()
        output = tmp_path / "sources.json"
        config = GeneratorConfig(output=str(output), graph=_graph(tmp_path, {}))

        assert run(config) == ExitCodes.SUCCESS.value
        assert output.read_text(encoding="utf-8") == "[\n]\n"

    def test_missing_graph_is_file_error(self, tmp_path):
        """Test a missing graph export exits with FILE_ERROR."""
        config = GeneratorConfig(output=str(tmp_path / "out.json"), graph=str(tmp_path / "nope.json"))
        assert run(config) == ExitCodes.FILE_ERROR.value

    @pytest.mark.parametrize("error", [
        WorkerTaskFailure("g:a:1", RuntimeError("boom")),
        DigestAlgorithmUnavailable("sha512"),
    ])
    def test_resolution_failure_writes_nothing(self, tmp_path, error):
        """Test resolution failures exit with RESOLUTION_ERROR and write nothing."""
        output = tmp_path / "sources.json"
        config = GeneratorConfig(output=str(output), graph=_graph(tmp_path, {}))
        with patch('offline_sources.generate', side_effect=error):
            assert run(config) == ExitCodes.RESOLUTION_ERROR.value
        assert not output.exists()

    @patch('offline_sources.write_manifest')
    def test_unwritable_output_is_file_error(self, mock_write, tmp_path):
        """Test a write failure exits with FILE_ERROR."""
        mock_write.side_effect = PermissionError("read-only")
        config = GeneratorConfig(output=str(tmp_path / "out.json"), graph=_graph(tmp_path, {}))
        assert run(config) == ExitCodes.FILE_ERROR.value


class TestMain:
    """Command line entry point."""

    @patch('offline_sources.ContentFetcher')
    def test_main_success(self, mock_fetcher, tmp_path):
        """Test main exits with SUCCESS and writes the output."""
        mock_fetcher.return_value = _fetcher()
        output = tmp_path / "sources.json"
        with pytest.raises(SystemExit) as exc_info:
            main(["-g", _project_graph(tmp_path), "-o", str(output), "--workers", "2"])
        assert exc_info.value.code == ExitCodes.SUCCESS.value
        assert output.exists()

    def test_main_without_output_is_config_error(self, tmp_path):
        """Test main exits with FILE_ERROR when output is missing."""
        with pytest.raises(SystemExit) as exc_info:
            main(["-g", str(tmp_path / "graph.json")])
        assert exc_info.value.code == ExitCodes.FILE_ERROR.value
