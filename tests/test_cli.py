"""
Tests for the command line entry point.
"""

import logging
from unittest.mock import patch

import pytest

from supadantic.cli import build_parser, main
from supadantic.constants import CacheFiles
from supadantic.sync import SyncResult


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put the original handlers back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "supadantic.yaml"
    path.write_text(
        "url: https://abc.supabase.co\n"
        "secret_key: service-role-key-0123456789abcdef\n"
        f"output: {tmp_path / 'models'}\n"
        f"cache_dir: {tmp_path / '.supadantic'}\n",
        encoding="utf-8",
    )
    return path


class TestParser:
    """Test cases for build_parser"""

    def test_sync_defaults(self):
        args = build_parser().parse_args(["sync"])

        assert args.command == "sync"
        assert args.config == "supadantic.yaml"
        assert args.env_file == ".env"
        assert not args.force
        assert not args.verbose

    def test_sync_options(self):
        args = build_parser().parse_args(["sync", "-c", "custom.yaml", "--force", "-v", "--no-color"])

        assert args.config == "custom.yaml"
        assert args.force
        assert args.verbose
        assert args.no_color

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Test cases for main"""

    def test_sync_runs_with_force(self, config_file, tmp_path):
        with patch("supadantic.cli.SchemaSync") as schema_sync:
            schema_sync.return_value.run.return_value = SyncResult(generated=["users"])
            main(["sync", "-c", str(config_file), "--env-file", str(tmp_path / "missing.env"), "--force"])

        config = schema_sync.call_args[0][0]
        assert config.url == "https://abc.supabase.co"
        schema_sync.return_value.run.assert_called_once_with(force=True)

    def test_missing_config_exits_with_error(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["sync", "-c", str(tmp_path / "missing.yaml"), "--no-color"])

        assert exc_info.value.code == 1

    def test_unexpected_error_exits_with_error(self, config_file, tmp_path):
        with patch("supadantic.cli.SchemaSync") as schema_sync:
            schema_sync.return_value.run.side_effect = RuntimeError("boom")
            with pytest.raises(SystemExit) as exc_info:
                main(["sync", "-c", str(config_file), "--env-file", str(tmp_path / "missing.env")])

        assert exc_info.value.code == 1

    def test_clean_removes_cache(self, config_file, tmp_path):
        cache_dir = tmp_path / ".supadantic"
        cache_dir.mkdir()
        (cache_dir / CacheFiles.TABLE_HASHES).write_text("{}", encoding="utf-8")

        main(["clean", "-c", str(config_file), "--env-file", str(tmp_path / "missing.env")])

        assert not cache_dir.exists()
