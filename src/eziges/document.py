from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Iterator

from .context import DEFAULT_FIELD_DELIMITER, DEFAULT_TERM_DELIMITER, DecodeContext, Diagnostic
from .entity import DirectoryRecord, Entity, EntityType
from .errors import IgesStructureError
from .fields import decode_fixed_int, decode_hollerith, split_records
from .geometry import Group, synthesize
from .sections import ParameterLine, SectionBuffers, split_sections

logger = logging.getLogger(__name__)

DIRECTORY_ENTRY_WIDTH = 160

# (field, index after the leading delimiter field, is a Hollerith string)
GLOBAL_FIELDS: tuple[tuple[str, int, bool], ...] = (
    ("export_id", 2, True),
    ("file_name", 3, True),
    ("system_id", 4, True),
    ("translator_version", 5, True),
    ("integer_bits", 6, False),
    ("single_exponent_bits", 7, False),
    ("single_mantissa_bits", 8, False),
    ("double_exponent_bits", 9, False),
    ("double_mantissa_bits", 10, False),
    ("receiver_id", 11, True),
    ("scale", 12, False),
    ("unit_flag", 13, False),
    ("unit", 14, True),
    ("max_line_weights", 15, False),
    ("max_line_width", 16, False),
    ("created", 17, True),
    ("resolution", 18, False),
    ("max_coordinate", 19, False),
    ("author", 20, True),
    ("organization", 21, True),
    ("iges_version", 22, False),
    ("drafting_standard", 23, False),
    ("modified", 24, True),
    ("application_protocol", 25, True),
)


@dataclass(frozen=True)
class GlobalParameters:
    field_delimiter: str = DEFAULT_FIELD_DELIMITER
    term_delimiter: str = DEFAULT_TERM_DELIMITER
    export_id: str | None = None
    file_name: str | None = None
    system_id: str | None = None
    translator_version: str | None = None
    integer_bits: str | None = None
    single_exponent_bits: str | None = None
    single_mantissa_bits: str | None = None
    double_exponent_bits: str | None = None
    double_mantissa_bits: str | None = None
    receiver_id: str | None = None
    scale: str | None = None
    unit_flag: str | None = None
    unit: str | None = None
    max_line_weights: str | None = None
    max_line_width: str | None = None
    created: str | None = None
    resolution: str | None = None
    max_coordinate: str | None = None
    author: str | None = None
    organization: str | None = None
    iges_version: str | None = None
    drafting_standard: str | None = None
    modified: str | None = None
    application_protocol: str | None = None


@dataclass(frozen=True)
class ParameterRecord:
    type_code: str
    values: tuple[str, ...]
    start_line: int | None = None


@dataclass(frozen=True)
class TerminateCounts:
    start: int | None = None
    global_: int | None = None
    directory: int | None = None
    parameter: int | None = None


def parse_start(buffer: str) -> str:
    return buffer


def parse_global(
    buffer: str, context: DecodeContext
) -> tuple[GlobalParameters, DecodeContext]:
    field_delimiter = DEFAULT_FIELD_DELIMITER
    overridden = buffer[:1] != DEFAULT_FIELD_DELIMITER
    if overridden:
        field_delimiter = decode_hollerith(buffer) or DEFAULT_FIELD_DELIMITER
    fields = buffer.split(field_delimiter)
    if overridden:
        # "1H," leaves "1H" before the first delimiter; drop it so indices line up.
        del fields[0]

    def token(index: int) -> str:
        return fields[index] if index < len(fields) else ""

    term_delimiter = decode_hollerith(token(1)) or DEFAULT_TERM_DELIMITER
    values: dict[str, str | None] = {}
    for name, index, is_string in GLOBAL_FIELDS:
        raw = token(index)
        if not is_string:
            values[name] = raw if index < len(fields) else None
            continue
        decoded = decode_hollerith(raw)
        if decoded is None and raw.strip().rstrip(term_delimiter):
            context = context.warn("hollerith", f"global field {name} is not a string: {raw!r}")
        values[name] = decoded

    parameters = GlobalParameters(
        field_delimiter=field_delimiter,
        term_delimiter=term_delimiter,
        **values,
    )
    return parameters, context.with_delimiters(field_delimiter, term_delimiter)


def parse_directory(buffer: str) -> list[DirectoryRecord]:
    records: list[DirectoryRecord] = []
    for offset in range(0, len(buffer), DIRECTORY_ENTRY_WIDTH):
        item = buffer[offset : offset + DIRECTORY_ENTRY_WIDTH]
        records.append(
            DirectoryRecord(
                entity_type=decode_fixed_int(item, 0, 8),
                entity_index=decode_fixed_int(item, 8, 8),
                iges_version=decode_fixed_int(item, 16, 8),
                line_type=decode_fixed_int(item, 24, 8),
                level=decode_fixed_int(item, 32, 8),
                view=decode_fixed_int(item, 40, 8),
                transform=decode_fixed_int(item, 48, 8),
                label_display=decode_fixed_int(item, 56, 8),
                status=item[64:72],
                sequence_number=decode_fixed_int(item, 73, 7),
                line_weight=decode_fixed_int(item, 88, 8),
                color=decode_fixed_int(item, 96, 8),
                parameter_line=decode_fixed_int(item, 104, 8),
                form_number=decode_fixed_int(item, 112, 8),
                entity_name=item[136:144].strip(),
                entity_subscript=decode_fixed_int(item, 144, 8),
            )
        )
    return records


def parse_parameter(
    buffer: str,
    context: DecodeContext,
    parameter_lines: tuple[ParameterLine, ...] = (),
) -> list[ParameterRecord]:
    offsets = [line.offset for line in parameter_lines]
    records: list[ParameterRecord] = []
    for position, tokens in split_records(buffer, context.field_delimiter, context.term_delimiter):
        start_line = None
        if offsets:
            index = bisect.bisect_right(offsets, position) - 1
            if index >= 0:
                start_line = parameter_lines[index].sequence
        records.append(
            ParameterRecord(
                type_code=tokens[0].strip(),
                values=tuple(tokens[1:]),
                start_line=start_line,
            )
        )
    return records


def parse_terminate(buffer: str) -> TerminateCounts:
    return TerminateCounts(
        start=decode_fixed_int(buffer, 1, 7),
        global_=decode_fixed_int(buffer, 9, 7),
        directory=decode_fixed_int(buffer, 17, 7),
        parameter=decode_fixed_int(buffer, 25, 7),
    )


def check_terminate(counts: TerminateCounts, directory_count: int) -> None:
    declared = counts.directory
    if declared and directory_count != declared / 2:
        raise IgesStructureError(
            f"inconsistent entity count: {directory_count} directory entries, "
            f"terminate section declares {declared} directory lines"
        )


def assemble(
    directory: list[DirectoryRecord],
    parameters: list[ParameterRecord],
    context: DecodeContext,
    *,
    check_pointers: bool = False,
) -> tuple[list[Entity], DecodeContext]:
    # Pairing is positional; the directory pointer is only ever compared.
    if len(directory) != len(parameters):
        raise IgesStructureError(
            f"{len(directory)} directory entries but {len(parameters)} parameter records"
        )

    entities: list[Entity] = []
    for record, parameter in zip(directory, parameters):
        type_code = decode_fixed_int(parameter.type_code, 0, len(parameter.type_code))
        if type_code is None:
            type_code = record.entity_type
        if check_pointers:
            context = _cross_check(record, parameter, type_code, context)
        entities.append(Entity(type=type_code, attributes=record, params=parameter.values))
    return entities, context


def _cross_check(
    record: DirectoryRecord,
    parameter: ParameterRecord,
    type_code: int | None,
    context: DecodeContext,
) -> DecodeContext:
    line = record.sequence_number
    if parameter.start_line is not None and record.parameter_pointer != parameter.start_line:
        context = context.warn(
            "pointer-mismatch",
            f"directory points at parameter line {record.parameter_pointer}, "
            f"paired record starts at line {parameter.start_line}",
            line=line,
            level=logging.DEBUG,
        )
    if type_code != record.entity_type:
        context = context.warn(
            "type-mismatch",
            f"directory type {record.entity_type} paired with parameter type {type_code}",
            line=line,
            level=logging.DEBUG,
        )
    return context


def loads(text: str, *, check_pointers: bool | None = None) -> "Document":
    if check_pointers is None:
        check_pointers = logging.getLogger("eziges").isEnabledFor(logging.DEBUG)

    context = DecodeContext()
    buffers, context = split_sections(text, context)
    start_comment = parse_start(buffers.start)
    global_parameters, context = parse_global(buffers.global_, context)

    directory = parse_directory(buffers.directory)
    parameters = parse_parameter(buffers.parameter, context, buffers.parameter_lines)
    terminate = parse_terminate(buffers.terminate)
    check_terminate(terminate, len(directory))

    entities, context = assemble(directory, parameters, context, check_pointers=check_pointers)
    logger.debug("decoded %d entities", len(entities))
    return Document(
        start_comment=start_comment,
        global_parameters=global_parameters,
        terminate=terminate,
        entities=tuple(entities),
        diagnostics=context.diagnostics,
        sections=buffers,
    )


def read(path: str | Path, **kwargs) -> "Document":
    source = Path(path)
    # Latin-1 maps every byte, so stray non-ASCII comments never abort a read.
    text = source.read_text(encoding="latin-1")
    return loads(text, **kwargs).with_path(str(source))


@dataclass(frozen=True)
class Document:
    start_comment: str = ""
    global_parameters: GlobalParameters = field(default_factory=GlobalParameters)
    terminate: TerminateCounts = field(default_factory=TerminateCounts)
    entities: tuple[Entity, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    sections: SectionBuffers | None = field(default=None, repr=False, compare=False)
    path: str | None = None

    def with_path(self, path: str) -> "Document":
        return replace(self, path=path)

    @property
    def version(self) -> str | None:
        return self.global_parameters.iges_version

    def query(self, types: str | int | Iterable[str | int] | None = None) -> Iterator[Entity]:
        codes = _normalize_types(types)
        for entity in self.entities:
            if codes is None or entity.type in codes:
                yield entity

    def primitives(
        self,
        types: str | int | Iterable[str | int] | None = None,
        *,
        drop_non_finite: bool = False,
    ) -> Group:
        context = DecodeContext(
            field_delimiter=self.global_parameters.field_delimiter,
            term_delimiter=self.global_parameters.term_delimiter,
        )
        name = self.global_parameters.file_name or (Path(self.path).name if self.path else "IGES")
        return synthesize(
            self.query(types),
            context,
            name=name,
            drop_non_finite=drop_non_finite,
        )

    def export_dxf(self, output_path: str, **kwargs):
        from .convert import to_dxf

        return to_dxf(self, output_path, **kwargs)


def _normalize_types(types: str | int | Iterable[str | int] | None) -> set[int] | None:
    if types is None:
        return None
    if isinstance(types, (str, int)):
        tokens: list[str | int] = [types] if isinstance(types, int) else types.replace(",", " ").split()
    else:
        tokens = list(types)
    codes: set[int] = set()
    for token in tokens:
        if isinstance(token, int):
            codes.add(int(token))
            continue
        name = token.strip().upper()
        if not name:
            continue
        if name.isdigit():
            codes.add(int(name))
            continue
        try:
            codes.add(int(EntityType[name]))
        except KeyError:
            raise ValueError(f"unknown entity type: {token}") from None
    return codes
