"""
Unit tests for the command-line entry point.

These run the real CLI in --once mode against a temporary workspace with
trivial shell build commands.
"""

import pytest

from devwatch.cli.main import apply_overrides, build_parser, main_cli
from devwatch.validation import ValidationError


def run_cli(*argv):
    with pytest.raises(SystemExit) as exc_info:
        main_cli(list(argv))
    return exc_info.value.code


@pytest.mark.unit
class TestArgumentParsing:
    """Test cases for the argument parser and overrides."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.packages == []
        assert args.quiet_window is None
        assert args.once is False
        assert args.no_initial_build is False

    def test_repeated_package_option(self):
        args = build_parser().parse_args(["-p", "core", "--package", "ui"])
        assert args.packages == ["core", "ui"]

    def test_overrides(self, config_factory):
        args = build_parser().parse_args(["--quiet-window", "50", "--no-initial-build"])
        config = apply_overrides(config_factory(), args)
        assert config.watch.quiet_window_ms == 50
        assert config.watch.skip_initial_build is True

    def test_invalid_quiet_window(self, config_factory):
        args = build_parser().parse_args(["--quiet-window", "-1"])
        with pytest.raises(ValidationError):
            apply_overrides(config_factory(), args)

    def test_once_conflicts_with_no_initial_build(self):
        assert run_cli("--once", "--no-initial-build") == 2


@pytest.mark.unit
class TestMainCli:
    """Test cases for main_cli exit codes."""

    def test_once_success(self, packages_root, write_config):
        path = write_config('[build]\ncommand = "echo {name} > built.txt"\n[history]\nenabled = false\n')

        assert run_cli("-c", str(path), "--once") == 0
        assert (packages_root / "pkg-a" / "built.txt").exists()
        assert (packages_root / "pkg-b" / "built.txt").exists()

    def test_once_failure(self, packages_root, write_config):
        path = write_config('[build]\ncommand = "exit 1"\n[history]\nenabled = false\n')
        assert run_cli("-c", str(path), "--once") == 1

    def test_package_selection(self, packages_root, write_config):
        path = write_config('[build]\ncommand = "touch built.txt"\n[history]\nenabled = false\n')

        assert run_cli("-c", str(path), "--once", "-p", "pkg-b") == 0
        assert not (packages_root / "pkg-a" / "built.txt").exists()
        assert (packages_root / "pkg-b" / "built.txt").exists()

    def test_history_written(self, packages_root, write_config, tmp_path):
        path = write_config('[build]\ncommand = "true"\n[history]\npath = "out/history.parquet"\n')

        assert run_cli("-c", str(path), "--once") == 0
        assert (tmp_path / "out" / "history.parquet").exists()

    def test_missing_config(self, tmp_path):
        assert run_cli("-c", str(tmp_path / "missing.toml"), "--once") == 1

    def test_invalid_config(self, packages_root, write_config):
        path = write_config('[build]\ncommand = ""\n')
        assert run_cli("-c", str(path), "--once") == 1

    def test_unknown_package(self, packages_root, write_config):
        path = write_config('[build]\ncommand = "true"\n')
        assert run_cli("-c", str(path), "--once", "-p", "pkg-z") == 1

    def test_invalid_package_name(self, packages_root, write_config):
        path = write_config('[build]\ncommand = "true"\n')
        assert run_cli("-c", str(path), "--once", "-p", "../etc") == 1

    def test_missing_packages_dir(self, write_config):
        path = write_config('[watch]\npackages_dir = "nowhere"\n[build]\ncommand = "true"\n')
        assert run_cli("-c", str(path), "--once") == 1
