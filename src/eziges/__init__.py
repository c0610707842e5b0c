from typing import Sequence

from .context import DecodeContext, Diagnostic
from .convert import ConvertResult, to_dxf
from .document import Document, GlobalParameters, loads, read
from .entity import DirectoryRecord, Entity, EntityType
from .errors import IgesError, IgesStructureError
from .geometry import Group, Primitive, PrimitiveKind, synthesize

__all__ = [
    "read",
    "loads",
    "Document",
    "GlobalParameters",
    "DirectoryRecord",
    "Entity",
    "EntityType",
    "Primitive",
    "PrimitiveKind",
    "Group",
    "synthesize",
    "DecodeContext",
    "Diagnostic",
    "to_dxf",
    "ConvertResult",
    "IgesError",
    "IgesStructureError",
]


def main(argv: Sequence[str] | None = None) -> int:
    from eziges.cli import main as cli_main

    return cli_main(argv)
