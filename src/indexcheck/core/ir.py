import inspect
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from .exceptions import MalformedReference
from .labels import IndexLabel, LabelSequence, Literal, as_label_sequence, format_labels


@dataclass(frozen=True)
class SourceLocation:
    module: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None

    def describe(self) -> str:
        parts = []
        if self.file is not None:
            parts.append(f"{self.file}:{self.line}" if self.line is not None else self.file)
        elif self.line is not None:
            parts.append(f"line {self.line}")
        if self.module is not None:
            parts.append(self.module)
        return ", ".join(parts)


def capture_location(stacklevel: int = 1) -> Optional[SourceLocation]:
    """Location of the caller ``stacklevel`` frames above the function calling this."""
    frame = inspect.currentframe()
    try:
        target = frame.f_back if frame is not None else None
        for _ in range(stacklevel):
            if target is None:
                break
            target = target.f_back
        if target is None:
            return None
        return SourceLocation(
            module=target.f_globals.get("__name__"),
            file=target.f_code.co_filename,
            line=target.f_lineno,
        )
    finally:
        del frame


@dataclass(frozen=True)
class TensorRef:
    name: str
    labels: LabelSequence  # in order as written
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.name}[{format_labels(self.labels)}]"


def make_ref(
    name: Any,
    labels: Sequence[Any],
    location: Optional[SourceLocation] = None,
) -> TensorRef:
    if isinstance(name, TensorRef):
        if len(labels) > 0:
            raise MalformedReference(
                f"Labels given for {name}, which already carries its own"
            )
        return name
    if not isinstance(name, str) or not name:
        raise MalformedReference(f"Tensor name must be a non-empty string, got {name!r}")
    return TensorRef(name=name, labels=as_label_sequence(labels), location=location)


@dataclass
class Expression:
    lhs: TensorRef
    op: str  # ":=" creates the output, "=" writes into an existing one
    rhs: List[TensorRef]
    line: Optional[int] = None
    source: Optional[str] = None

    @property
    def creates_output(self) -> bool:
        return self.op == ":="

    def references(self) -> List[TensorRef]:
        """Right-hand references in order, then the left-hand one."""
        return [*self.rhs, self.lhs]


@dataclass
class Directive:
    name: str
    value: Any = None
    has_value: bool = False
    column: Optional[int] = None

    def __str__(self) -> str:
        if not self.has_value:
            return self.name
        value = self.value
        if isinstance(value, bool):
            value = "true" if value else "false"
        return f"{self.name}={value}"


DirectiveItem = Union[TensorRef, Directive]


def labels_json(labels: Sequence[IndexLabel]) -> List[Any]:
    return [label.value if isinstance(label, Literal) else str(label) for label in labels]


def json_ready(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (np.integer, np.floating)):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, dict):
        return {str(k): json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [json_ready(v) for v in value]
    return str(value)
