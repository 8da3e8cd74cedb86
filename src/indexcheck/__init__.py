from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _load_version

from .core.context import CheckContext
from .core.einsum import CheckedEinsum
from .core.exceptions import (
    ArityMismatch,
    BackendError,
    ConsistencyError,
    IndexCheckError,
    LabelDrift,
    MalformedReference,
    ParseError,
    RankMismatch,
    SizeCheckError,
    SizeMismatch,
    UnrecognizedDirective,
)
from .core.ir import SourceLocation, TensorRef, capture_location
from .core.labels import Alpha, Literal, Named, Wildcard, parse_label
from .core.options import CheckOptions
from .core.reporter import Diagnostic, ErrorReporter
from .core.runtime import RuntimeCheck

try:
    __version__ = _load_version("indexcheck")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "CheckContext",
    "CheckOptions",
    "CheckedEinsum",
    "RuntimeCheck",
    "ErrorReporter",
    "Diagnostic",
    "TensorRef",
    "SourceLocation",
    "capture_location",
    "Alpha",
    "Literal",
    "Wildcard",
    "Named",
    "parse_label",
    "IndexCheckError",
    "ParseError",
    "ConsistencyError",
    "ArityMismatch",
    "LabelDrift",
    "SizeCheckError",
    "RankMismatch",
    "SizeMismatch",
    "UnrecognizedDirective",
    "MalformedReference",
    "BackendError",
    "__version__",
]
