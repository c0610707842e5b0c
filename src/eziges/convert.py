from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .context import DecodeContext, Diagnostic
from .document import Document, read
from .entity import Entity
from .geometry import Primitive, PrimitiveKind, build_primitive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]
    diagnostics: tuple[Diagnostic, ...] = ()


def to_dxf(
    source: str | Path | Document,
    output_path: str,
    *,
    types: str | int | Iterable[str | int] | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> ConvertResult:
    ezdxf = _require_ezdxf()
    source_path, doc = _resolve_document(source)

    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    modelspace = dxf_doc.modelspace()

    total = 0
    written = 0
    skipped_by_type: dict[str, int] = {}
    context = DecodeContext()

    for entity in doc.query(types):
        total += 1
        primitive, context = build_primitive(entity, context)
        if primitive is not None and _write_primitive_to_modelspace(modelspace, primitive):
            written += 1
            continue
        _count_skip(skipped_by_type, entity)

    skipped = total - written
    if strict and skipped > 0:
        summary = ", ".join(
            f"{type_name}:{count}" for type_name, count in sorted(skipped_by_type.items())
        )
        raise ValueError(f"failed to convert {skipped} entities ({summary})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))
    logger.info("wrote %d of %d entities to %s", written, total, out_path)

    return ConvertResult(
        source_path=source_path,
        output_path=str(out_path),
        total_entities=total,
        written_entities=written,
        skipped_entities=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
        diagnostics=doc.diagnostics + context.diagnostics,
    )


def _require_ezdxf():
    try:
        import ezdxf
    except ImportError as exc:
        raise ImportError(
            "ezdxf is required for IGES->DXF conversion. "
            'Install it with `pip install "eziges[dxf]"`.'
        ) from exc
    return ezdxf


def _resolve_document(source: str | Path | Document) -> tuple[str, Document]:
    if isinstance(source, Document):
        return source.path or "<memory>", source
    return str(source), read(source)


def _count_skip(skipped_by_type: dict[str, int], entity: Entity) -> None:
    type_name = entity.type_name
    skipped_by_type[type_name] = skipped_by_type.get(type_name, 0) + 1


def _write_primitive_to_modelspace(modelspace: Any, primitive: Primitive) -> bool:
    points = [point for point in primitive.points if _is_finite_point(point)]
    dxfattribs = _primitive_dxfattribs(primitive)

    if primitive.kind is PrimitiveKind.POINT_CLOUD:
        if not points:
            return False
        for point in points:
            modelspace.add_point(point, dxfattribs=dxfattribs)
        return True

    if len(points) < 2:
        return False
    if len(points) == 2 and primitive.kind is PrimitiveKind.POLYLINE:
        modelspace.add_line(points[0], points[1], dxfattribs=dxfattribs)
        return True
    modelspace.add_polyline3d(points, close=False, dxfattribs=dxfattribs)
    return True


def _primitive_dxfattribs(primitive: Primitive) -> dict[str, Any]:
    attribs: dict[str, Any] = {}
    true_color = _to_valid_true_color(primitive.color)
    if true_color is not None:
        attribs["true_color"] = true_color
    return attribs


def _to_valid_true_color(value: Any) -> int | None:
    try:
        color = int(value) & 0xFFFFFF
    except (TypeError, ValueError):
        return None
    return color


def _is_finite_point(point: tuple[float, float, float]) -> bool:
    return all(math.isfinite(value) for value in point)
