from __future__ import annotations


class IgesError(Exception):
    """Base class for every error raised by eziges."""


class IgesStructureError(IgesError, ValueError):
    """The section layout of a file is inconsistent and no entity can be trusted.

    Raised for a Terminate section whose Directory line count disagrees with
    the decoded records, and for Directory/Parameter record counts that cannot
    be paired.
    """


class UnsupportedGeometryError(IgesError):
    """A handler cannot build geometry for this entity.

    Carries a diagnostic code so the synthesizer can record it and move on.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
