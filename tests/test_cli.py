"""CLI tests for argument parsing, dispatch and the subcommands."""

from __future__ import annotations

import builtins as py_builtins
import importlib
import json
import logging
from io import StringIO
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

COMMANDS = ("generate", "locate", "project", "info")


def _invoke_main(argv: list[str], *, stub_subcommand: bool = False):
    """Invoke geotopo.cli.main with patches applied.

    Args:
        argv: Arguments excluding program name.
        stub_subcommand: If True, replaces subcommands with a function that
            records it was called.

    Returns:
        Namespace with: code (int), stdout (str), called (str|None), level (int|None).
    """
    import geotopo.cli as cli

    importlib.reload(cli)

    called: dict[str, bool] = {name: False for name in COMMANDS}
    level_holder: dict[str, int | None] = {"level": None}

    patchers = [
        patch(
            "geotopo.log_config.set_global_log_level",
            side_effect=lambda lvl: level_holder.__setitem__("level", lvl),
        )
    ]

    if stub_subcommand:
        for name in COMMANDS:
            patchers.append(
                patch.object(
                    cli,
                    f"{name}_command",
                    side_effect=lambda a, n=name: called.__setitem__(n, True),
                )
            )

    for p in patchers:
        p.start()

    out = SimpleNamespace(code=0, stdout="", called=None, level=None)
    saved_print = py_builtins.print
    try:
        with (
            patch("sys.stdout", new_callable=StringIO) as buf,
            patch("sys.argv", ["geotopo"] + argv),
        ):
            try:
                cli.main()
            except SystemExit as e:
                out.code = int(getattr(e, "code", 0) or 0)
            out.stdout = buf.getvalue()
            out.level = level_holder["level"]
            for name, was_called in called.items():
                if was_called:
                    out.called = name
                    break
    finally:
        # Restore global print in case --quiet modified it
        py_builtins.print = saved_print
        for p in reversed(patchers):
            p.stop()

    return out


def test_no_args_shows_help_and_exits_nonzero():
    res = _invoke_main([])
    assert res.code == 1
    assert "Available commands" in res.stdout


def test_verbose_flag_sets_debug_level_and_dispatches_info():
    res = _invoke_main(["-v", "info", "config.yml"], stub_subcommand=True)
    assert res.called == "info"
    assert res.level == logging.DEBUG


def test_default_log_level_is_info():
    res = _invoke_main(["info", "config.yml"], stub_subcommand=True)
    assert res.level == logging.INFO


def test_dispatches_each_subcommand():
    assert _invoke_main(
        ["generate", "c.yml", "-i", "inv.json"], stub_subcommand=True
    ).called == "generate"
    assert _invoke_main(["locate", "Paris"], stub_subcommand=True).called == "locate"
    assert _invoke_main(["project", "1.0", "2.0"], stub_subcommand=True).called == "project"


def test_generate_requires_inventory():
    res = _invoke_main(["generate", "config.yml"], stub_subcommand=True)
    assert res.code == 2
    assert res.called is None


def test_quiet_suppresses_print_output(temp_config_file: Path):
    res = _invoke_main(["--quiet", "info", str(temp_config_file)])
    assert res.code == 0
    assert res.stdout == ""


def test_missing_config_exits_with_config_error(tmp_path: Path):
    res = _invoke_main(["info", str(tmp_path / "missing.yml")])
    assert res.code == 2
    assert "Configuration file not found" in res.stdout


def test_invalid_config_exits_with_config_error(invalid_config_file: Path):
    res = _invoke_main(["info", str(invalid_config_file)])
    assert res.code == 2
    assert "Configuration error" in res.stdout


def test_info_prints_summary(temp_config_file: Path):
    res = _invoke_main(["info", str(temp_config_file)])
    assert res.code == 0
    assert "GEOTOPO CONFIGURATION" in res.stdout


def test_locate_resolves_and_reports_misses(temp_config_file: Path):
    res = _invoke_main(
        ["locate", "--config", str(temp_config_file), "Boston, UK", "Atlantis"]
    )

    assert res.code == 0
    assert "Boston, United Kingdom (52.9789, -0.0266) [Europe/Africa]" in res.stdout
    assert "'Atlantis': not found" in res.stdout


def test_project_reports_override(temp_config_file: Path):
    res = _invoke_main(
        ["project", "--config", str(temp_config_file), "-33.8688", "151.2093"]
    )

    assert res.code == 0
    assert "x=895.20 y=407.58" in res.stdout
    assert "hand-placed override" in res.stdout


def test_project_reports_boundary_adjustment(temp_config_file: Path):
    res = _invoke_main(["project", "--config", str(temp_config_file), "34.69", "135.50"])

    assert "boundary adjustment: japan" in res.stdout


def test_generate_end_to_end(tmp_path: Path, temp_config_file: Path, inventory_records):
    inventory = tmp_path / "inventory.json"
    inventory.write_text(json.dumps({"devices": inventory_records}))
    out_dir = tmp_path / "out"
    devices_out = tmp_path / "devices.json"
    map_out = tmp_path / "map.png"

    res = _invoke_main(
        [
            "generate",
            str(temp_config_file),
            "-i",
            str(inventory),
            "-o",
            str(out_dir),
            "--seed",
            "5",
            "--devices-out",
            str(devices_out),
            "--map",
            str(map_out),
        ]
    )

    assert res.code == 0, res.stdout
    topology = json.loads((out_dir / "topology.json").read_text())
    assert len(topology["nodes"]) == 3
    assert topology["statistics"]["active_nodes"] == 2
    devices = json.loads(devices_out.read_text())["devices"]
    assert all(1 <= len(device["links"]) <= 3 for device in devices)
    assert map_out.exists()
    assert "Nodes: 3 (2 active)" in res.stdout


def test_generate_empty_inventory_writes_nothing(tmp_path: Path, temp_config_file: Path):
    inventory = tmp_path / "inventory.json"
    inventory.write_text("[]")
    out = tmp_path / "topology.json"

    res = _invoke_main(
        ["generate", str(temp_config_file), "-i", str(inventory), "-o", str(out)]
    )

    assert res.code == 0
    assert not out.exists()
    assert "nothing written" in res.stdout


def test_generate_bad_inventory_exits_nonzero(tmp_path: Path, temp_config_file: Path):
    res = _invoke_main(
        ["generate", str(temp_config_file), "-i", str(tmp_path / "missing.json")]
    )

    assert res.code == 1
    assert "ERROR" in res.stdout
