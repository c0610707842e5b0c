from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter, OrderedDict
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .convert import to_dxf
from .document import read
from .entity import EntityType
from .errors import IgesError
from .logging_config import setup_logging

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _package_version() -> str:
    try:
        return version("eziges")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eziges", description="Inspect and convert IGES files.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="ERROR",
        help="Logging level for decode diagnostics (default: ERROR).",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic IGES information.")
    inspect_parser.add_argument("path", help="Path to IGES file.")
    inspect_parser.add_argument(
        "--verbose",
        action="store_true",
        help="List every diagnostic instead of per-code counts.",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert IGES to DXF using ezdxf as the writing backend.",
    )
    convert_parser.add_argument("input_path", help="Path to IGES file.")
    convert_parser.add_argument("output_path", help="Path to output DXF file.")
    convert_parser.add_argument(
        "--types",
        default=None,
        help='Entity filter passed to query(), e.g. "LINE POINT" or "110 116".',
    )
    convert_parser.add_argument(
        "--dxf-version",
        default="R2010",
        help="DXF version for ezdxf.new(), e.g. R2000/R2010/R2018.",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any entity cannot be converted.",
    )
    return parser


def _run_inspect(path: str, *, verbose: bool = False) -> int:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return 2

    try:
        doc = read(file_path)
    except (IgesError, OSError) as exc:
        print(f"error: failed to read IGES: {exc}", file=sys.stderr)
        return 2

    counts: OrderedDict[str, int] = OrderedDict()
    for entity in doc.query():
        counts[entity.type_name] = counts.get(entity.type_name, 0) + 1
    group = doc.primitives()
    params = doc.global_parameters

    print(f"file: {file_path}")
    print(f"file_name: {params.file_name or ''}")
    print(f"system_id: {params.system_id or ''}")
    print(f"version: {doc.version or ''}")
    print(f"unit: {params.unit or ''}")
    print(f"total_entities: {len(doc.entities)}")
    for entity_type in EntityType:
        count = counts.pop(entity_type.name, 0)
        if count > 0:
            print(f"{entity_type.name}: {count}")
    for type_name, count in counts.items():
        print(f"{type_name}: {count}")
    print(f"primitives: {len(group)}")

    diagnostics = doc.diagnostics + group.diagnostics
    if verbose:
        for diagnostic in diagnostics:
            print(f"diagnostic: {diagnostic}")
    else:
        by_code = Counter(diagnostic.code for diagnostic in diagnostics)
        for code, count in sorted(by_code.items()):
            print(f"diagnostics[{code}]: {count}")
    return 0


def _run_convert(
    input_path: str,
    output_path: str,
    *,
    types: str | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> int:
    iges_path = Path(input_path)
    if not iges_path.exists():
        print(f"error: file not found: {iges_path}", file=sys.stderr)
        return 2

    try:
        result = to_dxf(
            str(iges_path),
            output_path,
            types=types,
            dxf_version=dxf_version,
            strict=strict,
        )
    except (IgesError, ImportError, OSError, ValueError) as exc:
        print(f"error: failed to convert IGES to DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"total_entities: {result.total_entities}")
    print(f"written_entities: {result.written_entities}")
    print(f"skipped_entities: {result.skipped_entities}")
    for type_name, count in result.skipped_by_type.items():
        print(f"skipped[{type_name}]: {count}")
    by_code = Counter(diagnostic.code for diagnostic in result.diagnostics)
    for code, count in sorted(by_code.items()):
        print(f"diagnostics[{code}]: {count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    if args.command == "inspect":
        return _run_inspect(args.path, verbose=bool(args.verbose))
    if args.command == "convert":
        return _run_convert(
            args.input_path,
            args.output_path,
            types=args.types,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
        )

    parser.print_help()
    return 0
