from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum

from .fields import decode_float, decode_hollerith

Point3D = tuple[float, float, float]


class EntityType(IntEnum):
    CIRCULAR_ARC = 100
    COMPOSITE_CURVE = 102
    COPIOUS_DATA = 106
    PLANE = 108
    LINE = 110
    POINT = 116
    SURFACE_OF_REVOLUTION = 120
    TABULATED_CYLINDER = 122
    TRANSFORMATION_MATRIX = 124
    RATIONAL_BSPLINE_CURVE = 126
    RATIONAL_BSPLINE_SURFACE = 128
    CURVE_ON_SURFACE = 142
    TRIMMED_SURFACE = 144
    GENERAL_NOTE = 212
    LEADER = 214
    LINEAR_DIMENSION = 216
    COLOR_DEFINITION = 314
    ASSOCIATIVITY_INSTANCE = 402
    PROPERTY = 406

    @classmethod
    def lookup(cls, code: int | None) -> "EntityType | None":
        if code is None:
            return None
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True)
class DirectoryRecord:
    entity_type: int | None
    entity_index: int | None = None
    iges_version: int | None = None
    line_type: int | None = None
    level: int | None = None
    view: int | None = None
    transform: int | None = None
    label_display: int | None = None
    status: str = ""
    sequence_number: int | None = None
    line_weight: int | None = None
    color: int | None = None
    parameter_line: int | None = None
    form_number: int | None = None
    entity_name: str = ""
    entity_subscript: int | None = None

    @property
    def parameter_pointer(self) -> int | None:
        """First P line of this entity's parameter data.

        Standard writers store the pointer in columns 9-16; columns 105-112
        (``parameter_line``) hold the number of P lines.
        """
        return self.entity_index


@dataclass(frozen=True)
class Entity:
    """A Directory entry joined with its Parameter data.

    ``params`` holds the raw tokens; builders decode them on access because
    some fields are strings or pointers rather than reals.
    """

    type: int | None
    attributes: DirectoryRecord
    params: tuple[str, ...] = ()

    @property
    def entity_type(self) -> EntityType | None:
        return EntityType.lookup(self.type)

    @property
    def form_number(self) -> int | None:
        return self.attributes.form_number

    @property
    def type_name(self) -> str:
        entity_type = self.entity_type
        if entity_type is not None:
            return entity_type.name
        return f"UNKNOWN({self.type})"

    def float_param(self, index: int) -> float:
        if index < 0 or index >= len(self.params):
            return math.nan
        return decode_float(self.params[index])

    def int_param(self, index: int) -> int | None:
        if index < 0 or index >= len(self.params):
            return None
        value = self.float_param(index)
        if not math.isfinite(value):
            return None
        return int(value)

    def string_param(self, index: int) -> str | None:
        if index < 0 or index >= len(self.params):
            return None
        return decode_hollerith(self.params[index])

    def point_param(self, index: int) -> Point3D:
        return (
            self.float_param(index),
            self.float_param(index + 1),
            self.float_param(index + 2),
        )
