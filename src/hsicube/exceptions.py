"""Exception hierarchy and warning categories for hsicube.

Errors subclass the matching builtin (``ValueError``, ``FileExistsError``,
``FileNotFoundError``) so callers that only know the builtins still catch
them. Degraded-but-usable metadata is reported through the warning classes
instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "DataExists",
    "DataTypeWarning",
    "HeaderExists",
    "HeaderNotFound",
    "HsicubeError",
    "InvalidArgument",
    "MalformedHeader",
    "MetadataWarning",
    "OperandIncompatible",
    "ShapeMismatch",
]


class HsicubeError(Exception):
    """Base exception for hsicube"""


class InvalidArgument(HsicubeError, ValueError):
    """A parameter failed validation"""


class ShapeMismatch(InvalidArgument):
    """Metadata dimensions disagree with the data array"""


class OperandIncompatible(InvalidArgument):
    """Arithmetic operands do not have matching sizes"""


class HeaderExists(HsicubeError, FileExistsError):
    """Refusing to overwrite an existing header file"""


class DataExists(HsicubeError, FileExistsError):
    """Refusing to overwrite an existing data file"""


class HeaderNotFound(HsicubeError, FileNotFoundError):
    """No header file was found next to the requested data file"""


class MalformedHeader(HsicubeError, ValueError):
    """A header (or the payload it describes) is structurally invalid.

    ``problems`` lists every offending key so a single report covers all of
    them.
    """

    def __init__(self, problems: str | Iterable[str]) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems: tuple[str, ...] = tuple(problems)
        super().__init__("Malformed header: " + "; ".join(self.problems))


class MetadataWarning(UserWarning):
    """Metadata was missing and a default value was substituted."""


class DataTypeWarning(UserWarning):
    """The element type of a cube's data changed."""
