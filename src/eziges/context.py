from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)

DEFAULT_FIELD_DELIMITER = ","
DEFAULT_TERM_DELIMITER = ";"


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.code}: {self.message}"
        return f"{self.code} (line {self.line}): {self.message}"


@dataclass(frozen=True)
class DecodeContext:
    """State threaded through the decode pipeline.

    Every step receives a context and returns a new one; nothing is mutated in
    place. Two contexts derived from the same parent can be combined with
    ``merge``.
    """

    field_delimiter: str = DEFAULT_FIELD_DELIMITER
    term_delimiter: str = DEFAULT_TERM_DELIMITER
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    def warn(
        self,
        code: str,
        message: str,
        *,
        line: int | None = None,
        level: int = logging.WARNING,
    ) -> "DecodeContext":
        diagnostic = Diagnostic(code=code, message=message, line=line)
        logger.log(level, "%s", diagnostic)
        return replace(self, diagnostics=self.diagnostics + (diagnostic,))

    def with_delimiters(self, field_delimiter: str, term_delimiter: str) -> "DecodeContext":
        return replace(self, field_delimiter=field_delimiter, term_delimiter=term_delimiter)

    def merge(self, other: "DecodeContext", parent: "DecodeContext | None" = None) -> "DecodeContext":
        # Extension point: loads() runs sequentially and never merges. Callers
        # decoding parts side by side from one parent combine them here.
        # Diagnostics already present in the common parent are not duplicated.
        skip = len(parent.diagnostics) if parent is not None else 0
        return replace(self, diagnostics=self.diagnostics + other.diagnostics[skip:])

    def codes(self) -> list[str]:
        return [diagnostic.code for diagnostic in self.diagnostics]
