from __future__ import annotations

import logging
from pathlib import Path

import pytest

import eziges
import eziges.cli as cli_module
from eziges.logging_config import setup_logging
from tests._iges_helpers import IgesBuilder

MODELS = Path(__file__).resolve().parent / "models"


@pytest.fixture(autouse=True)
def _reset_eziges_logger():
    yield
    logger = logging.getLogger("eziges")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_cli_inspect_reports_header_and_counts(capsys) -> None:
    code = cli_module._run_inspect(str(MODELS / "point.iges"))
    captured = capsys.readouterr()

    assert code == 0
    lines = captured.out.splitlines()
    assert f"file: {MODELS / 'point.iges'}" in lines
    assert "file_name: point.igs" in lines
    assert "system_id: EZIGES" in lines
    assert "version: 11" in lines
    assert "unit: MM" in lines
    assert "total_entities: 1" in lines
    assert "POINT: 1" in lines
    assert "primitives: 1" in lines
    assert not any(line.startswith("diagnostics[") for line in lines)


def test_cli_inspect_counts_diagnostics_by_code(tmp_path: Path, capsys) -> None:
    path = tmp_path / "mixed.igs"
    path.write_text(
        IgesBuilder()
        .add(110, [0, 0, 0, 1, 1, 1])
        .add(212, [1])
        .add(314, [1, 2, 3])
        .add(999, [1])
        .build()
    )

    code = cli_module._run_inspect(str(path))
    captured = capsys.readouterr()

    assert code == 0
    lines = captured.out.splitlines()
    # Known types are listed in code order, unknown ones after them.
    assert lines.index("LINE: 1") < lines.index("GENERAL_NOTE: 1") < lines.index("COLOR_DEFINITION: 1")
    assert lines.index("COLOR_DEFINITION: 1") < lines.index("UNKNOWN(999): 1")
    assert "primitives: 1" in lines
    assert "diagnostics[unimplemented-entity]: 2" in lines
    assert "diagnostics[unsupported-entity]: 1" in lines


def test_cli_inspect_verbose_lists_each_diagnostic(tmp_path: Path, capsys) -> None:
    path = tmp_path / "verbose.igs"
    path.write_text(IgesBuilder().add(212, [1]).add(999, [1]).build())

    code = cli_module._run_inspect(str(path), verbose=True)
    captured = capsys.readouterr()

    assert code == 0
    diagnostic_lines = [line for line in captured.out.splitlines() if line.startswith("diagnostic: ")]
    assert len(diagnostic_lines) == 2
    assert "unimplemented-entity" in diagnostic_lines[0]
    assert "unsupported-entity" in diagnostic_lines[1]


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module._run_inspect(str(tmp_path / "missing.igs"))
    captured = capsys.readouterr()

    assert code == 2
    assert "file not found" in captured.err


def test_cli_inspect_inconsistent_file(tmp_path: Path, capsys) -> None:
    path = tmp_path / "broken.igs"
    path.write_text(IgesBuilder().add(116, [1, 2, 3]).build(terminate_directory=6))

    code = cli_module._run_inspect(str(path))
    captured = capsys.readouterr()

    assert code == 2
    assert "failed to read IGES" in captured.err
    assert "inconsistent entity count" in captured.err


def test_main_dispatches_inspect(capsys) -> None:
    code = eziges.main(["--log-level", "WARNING", "inspect", str(MODELS / "line.iges")])
    captured = capsys.readouterr()

    assert code == 0
    assert "LINE: 1" in captured.out
    assert logging.getLogger("eziges").level == logging.WARNING


def test_main_without_command_prints_help(capsys) -> None:
    code = cli_module.main([])
    captured = capsys.readouterr()

    assert code == 0
    assert "inspect" in captured.out
    assert "convert" in captured.out


def test_cli_convert_writes_dxf(tmp_path: Path, capsys) -> None:
    pytest.importorskip("ezdxf")

    output = tmp_path / "line.dxf"
    code = cli_module.main(["convert", str(MODELS / "line.iges"), str(output), "--types", "110"])
    captured = capsys.readouterr()

    assert code == 0
    assert output.exists()
    assert "total_entities: 1" in captured.out
    assert "written_entities: 1" in captured.out
    assert "skipped_entities: 0" in captured.out


def test_cli_convert_strict_failure(tmp_path: Path, capsys) -> None:
    pytest.importorskip("ezdxf")

    source = tmp_path / "note.igs"
    source.write_text(IgesBuilder().add(212, [1]).build())
    code = cli_module._run_convert(str(source), str(tmp_path / "note.dxf"), strict=True)
    captured = capsys.readouterr()

    assert code == 2
    assert "GENERAL_NOTE:1" in captured.err


def test_cli_convert_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module._run_convert(str(tmp_path / "missing.igs"), str(tmp_path / "out.dxf"))
    captured = capsys.readouterr()

    assert code == 2
    assert "file not found" in captured.err


def test_setup_logging_replaces_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "eziges.log"
    setup_logging(logging.INFO)
    setup_logging(logging.DEBUG, log_file=str(log_file))

    logger = logging.getLogger("eziges")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    logging.getLogger("eziges.document").debug("hello from %s", "test")
    for handler in logger.handlers:
        handler.flush()
    assert "DEBUG eziges.document: hello from test" in log_file.read_text(encoding="utf-8")


def test_cli_convert_reports_diagnostics(tmp_path: Path, capsys) -> None:
    pytest.importorskip("ezdxf")

    source = tmp_path / "mixed.igs"
    source.write_text(IgesBuilder().add(116, [1, 2, 3]).add(999, [1]).build())
    code = cli_module._run_convert(str(source), str(tmp_path / "mixed.dxf"))
    captured = capsys.readouterr()

    assert code == 0
    assert "skipped[UNKNOWN(999)]: 1" in captured.out
    assert "diagnostics[unsupported-entity]: 1" in captured.out
