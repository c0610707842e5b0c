from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from .context import DecodeContext, Diagnostic
from .entity import Entity, EntityType, Point3D
from .errors import UnsupportedGeometryError

logger = logging.getLogger(__name__)

LINE_COLOR = 0x0000FF
POINT_COLOR = 0xFFFFFF
LINE_WIDTH = 1.0
POINT_SIZE = 5.0
ARC_DIVISIONS = 50
# The consuming scene graph is Y-up; IGES model space is Z-up.
SCENE_POSITION: Point3D = (0.0, 0.0, 0.0)
SCENE_ROTATION: Point3D = (-math.pi / 2.0, 0.0, 0.0)


class PrimitiveKind(str, Enum):
    POINT_CLOUD = "POINT_CLOUD"
    POLYLINE = "POLYLINE"
    SAMPLED_CURVE = "SAMPLED_CURVE"


@dataclass(frozen=True)
class Primitive:
    kind: PrimitiveKind
    points: tuple[Point3D, ...]
    color: int = LINE_COLOR
    width: float = LINE_WIDTH
    size: float | None = None
    position: Point3D = SCENE_POSITION
    rotation: Point3D = SCENE_ROTATION
    source: int | None = None

    def to_points(self) -> list[Point3D]:
        return list(self.points)

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for point in self.points for value in point)


@dataclass(frozen=True)
class Group:
    name: str = "IGES"
    children: tuple[Primitive, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self):
        return iter(self.children)


Handler = Callable[[Entity], Primitive]


def vector_angle(x: float, y: float) -> float:
    """Polar angle of ``(x, y)`` in ``[0, 2*pi)``."""
    return math.atan2(-y, -x) + math.pi


def sample_ellipse(
    center: tuple[float, float],
    radii: tuple[float, float],
    start_angle: float,
    end_angle: float,
    *,
    clockwise: bool = False,
    rotation: float = 0.0,
    divisions: int = ARC_DIVISIONS,
) -> list[tuple[float, float]]:
    two_pi = 2.0 * math.pi
    delta = end_angle - start_angle
    same_points = abs(delta) < 2.220446049250313e-16
    while delta < 0:
        delta += two_pi
    while delta > two_pi:
        delta -= two_pi
    if delta < 2.220446049250313e-16:
        delta = 0.0 if same_points else two_pi
    if clockwise and not same_points:
        delta = -two_pi if delta == two_pi else delta - two_pi

    cx, cy = center
    rx, ry = radii
    cos_r = math.cos(rotation)
    sin_r = math.sin(rotation)
    points: list[tuple[float, float]] = []
    for i in range(divisions + 1):
        angle = start_angle + (i / divisions) * delta
        x = cx + rx * math.cos(angle)
        y = cy + ry * math.sin(angle)
        if rotation != 0.0:
            tx = x - cx
            ty = y - cy
            x = tx * cos_r - ty * sin_r + cx
            y = tx * sin_r + ty * cos_r + cy
        points.append((x, y))
    return points


def _line_primitive(entity: Entity, points: list[Point3D], kind: PrimitiveKind) -> Primitive:
    return Primitive(
        kind=kind,
        points=tuple(points),
        source=entity.attributes.sequence_number,
    )


def _count(entity: Entity, index: int) -> int:
    # A fractional count still covers the partial last point (N=2.5 -> 3).
    value = entity.float_param(index)
    if not math.isfinite(value) or value <= 0:
        return 0
    return math.ceil(value)


def _unsupported_form(entity: Entity) -> UnsupportedGeometryError:
    return UnsupportedGeometryError(
        "unsupported-form",
        f"{entity.type_name} - TYPE {entity.type} - unsupported form number: {entity.form_number}",
    )


def _not_implemented(entity: Entity) -> UnsupportedGeometryError:
    return UnsupportedGeometryError(
        "unimplemented-entity",
        f"{entity.type_name} - TYPE {entity.type} - no geometry is generated",
    )


def draw_circular_arc(entity: Entity) -> Primitive:
    # Parameters: ZT, X1, Y1 (center), X2, Y2 (start), X3, Y3 (end).
    cx = entity.float_param(1)
    cy = entity.float_param(2)
    start_angle = vector_angle(entity.float_param(3) - cx, entity.float_param(4) - cy)
    end_angle = vector_angle(entity.float_param(5) - cx, entity.float_param(6) - cy)
    # Unit radius; the true arc radius is not carried into the curve.
    samples = sample_ellipse((cx, cy), (1.0, 1.0), start_angle, end_angle)
    points = [(x, y, 0.0) for x, y in samples]
    return _line_primitive(entity, points, PrimitiveKind.SAMPLED_CURVE)


def draw_composite_curve(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_path(entity: Entity) -> Primitive:
    # Copious data: linear path, witness line and planar curve forms only.
    form = entity.form_number
    count = _count(entity, 1)
    points: list[Point3D] = []
    if form == 12:
        # IP=2: x,y,z triples from index 2.
        for i in range(count):
            points.append(entity.point_param(2 + 3 * i))
    elif form == 40:
        # Common z at index 2, x,y pairs from index 3.
        z = entity.float_param(2)
        for i in range(count):
            points.append((entity.float_param(3 + 2 * i), entity.float_param(4 + 2 * i), z))
    elif form == 63:
        for i in range(count):
            points.append((entity.float_param(3 + 2 * i), entity.float_param(4 + 2 * i), 0.0))
    else:
        raise _unsupported_form(entity)
    return _line_primitive(entity, points, PrimitiveKind.POLYLINE)


def draw_plane(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_line(entity: Entity) -> Primitive:
    if entity.form_number not in (None, 0, 2):
        raise _unsupported_form(entity)
    points = [entity.point_param(0), entity.point_param(3)]
    return _line_primitive(entity, points, PrimitiveKind.POLYLINE)


def draw_point(entity: Entity) -> Primitive:
    return Primitive(
        kind=PrimitiveKind.POINT_CLOUD,
        points=(entity.point_param(0),),
        color=POINT_COLOR,
        size=POINT_SIZE,
        source=entity.attributes.sequence_number,
    )


def draw_surface_of_revolution(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_tabulated_cylinder(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_transformation_matrix(entity: Entity) -> Primitive:
    # Form 0 is recognized, but matrices are never applied to other entities.
    if entity.form_number != 0:
        raise _unsupported_form(entity)
    raise _not_implemented(entity)


def draw_rational_bspline_curve(entity: Entity) -> Primitive:
    if entity.form_number not in (0, 1):
        raise _unsupported_form(entity)
    upper = entity.int_param(0)
    degree = entity.int_param(1)
    points: list[Point3D] = []
    if upper is not None and degree is not None:
        # K+M+2 knots, then K+1 weights, then the control points.
        knot_span = (1 + upper - degree) + 2 * degree
        offset = 8 + knot_span + upper
        points = [entity.point_param(offset + 3 * i) for i in range(upper + 1)]
    return _line_primitive(entity, points, PrimitiveKind.POLYLINE)


def draw_rational_bspline_surface(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_curve_on_surface(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_trimmed_surface(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_general_note(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_leader(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_linear_dimension(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_color_definition(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_associativity_instance(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


def draw_property(entity: Entity) -> Primitive:
    raise _not_implemented(entity)


HANDLERS: dict[EntityType, Handler] = {
    EntityType.CIRCULAR_ARC: draw_circular_arc,
    EntityType.COMPOSITE_CURVE: draw_composite_curve,
    EntityType.COPIOUS_DATA: draw_path,
    EntityType.PLANE: draw_plane,
    EntityType.LINE: draw_line,
    EntityType.POINT: draw_point,
    EntityType.SURFACE_OF_REVOLUTION: draw_surface_of_revolution,
    EntityType.TABULATED_CYLINDER: draw_tabulated_cylinder,
    EntityType.TRANSFORMATION_MATRIX: draw_transformation_matrix,
    EntityType.RATIONAL_BSPLINE_CURVE: draw_rational_bspline_curve,
    EntityType.RATIONAL_BSPLINE_SURFACE: draw_rational_bspline_surface,
    EntityType.CURVE_ON_SURFACE: draw_curve_on_surface,
    EntityType.TRIMMED_SURFACE: draw_trimmed_surface,
    EntityType.GENERAL_NOTE: draw_general_note,
    EntityType.LEADER: draw_leader,
    EntityType.LINEAR_DIMENSION: draw_linear_dimension,
    EntityType.COLOR_DEFINITION: draw_color_definition,
    EntityType.ASSOCIATIVITY_INSTANCE: draw_associativity_instance,
    EntityType.PROPERTY: draw_property,
}


def build_primitive(
    entity: Entity, context: DecodeContext
) -> tuple[Primitive | None, DecodeContext]:
    line = entity.attributes.sequence_number
    entity_type = entity.entity_type
    if entity_type is None:
        context = context.warn(
            "unsupported-entity",
            f"unsupported entity type {entity.type}",
            line=line,
        )
        return None, context

    try:
        primitive = HANDLERS[entity_type](entity)
    except UnsupportedGeometryError as exc:
        level = logging.DEBUG if exc.code == "unimplemented-entity" else logging.WARNING
        return None, context.warn(exc.code, exc.message, line=line, level=level)

    if not primitive.is_finite():
        context = context.warn(
            "non-finite",
            f"{entity.type_name} has non-numeric coordinates",
            line=line,
        )
    return primitive, context


def synthesize(
    entities: Iterable[Entity],
    context: DecodeContext | None = None,
    *,
    name: str = "IGES",
    drop_non_finite: bool = False,
) -> Group:
    if context is None:
        context = DecodeContext()
    children: list[Primitive] = []
    for entity in entities:
        primitive, context = build_primitive(entity, context)
        if primitive is None:
            continue
        # The non-finite diagnostic is recorded either way.
        if drop_non_finite and not primitive.is_finite():
            continue
        children.append(primitive)
    logger.debug("synthesized %d primitives", len(children))
    return Group(name=name, children=tuple(children), diagnostics=context.diagnostics)
