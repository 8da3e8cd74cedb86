from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from .exceptions import MalformedReference, RankMismatch, SizeMismatch
from .ir import SourceLocation, TensorRef
from .labels import Literal, Wildcard, as_label_sequence, format_labels
from .reporter import ErrorReporter
from .stores import SizeStore


def array_shape(array: Any) -> Tuple[int, ...]:
    shape = getattr(array, "shape", None)
    if shape is None:
        try:
            shape = np.shape(array)
        except ValueError as exc:
            raise MalformedReference(
                f"Cannot determine the shape of {type(array).__name__} value"
            ) from exc
    try:
        return tuple(int(dim) for dim in shape)
    except (TypeError, ValueError) as exc:
        raise MalformedReference(f"Unsupported shape {shape!r}") from exc


def verify_runtime(
    array: Any,
    labels: Sequence[Any],
    description: Optional[str] = None,
    location: Optional[SourceLocation] = None,
    *,
    store: SizeStore,
    reporter: ErrorReporter,
) -> Any:
    """Compare the extents of ``array`` with those recorded for its labels.

    Returns ``array`` itself so the call can sit inside an evaluation chain.
    The first extent seen for a label is recorded; later mismatches are
    reported and leave the record as it was.
    """
    labels = as_label_sequence(labels)
    shape = array_shape(array)
    if description is None:
        description = f"[{format_labels(labels)}]"

    if len(shape) != len(labels):
        reporter.report(
            RankMismatch,
            f"expected {description}, but got ndims = {len(shape)}",
            location,
            expected=len(labels),
            actual=len(shape),
        )
        return array

    for label, extent in zip(labels, shape):
        if isinstance(label, (Literal, Wildcard)):
            continue
        recorded, _ = store.claim(label, extent)
        if recorded != extent:
            reporter.report(
                SizeMismatch,
                f"{description}, index {label} now has range {extent} instead of {recorded}",
                location,
                label=label,
                expected=recorded,
                actual=extent,
            )
    return array


@dataclass
class RuntimeCheck:
    """A size check scheduled at analysis time, run once the array exists."""

    ref: TensorRef
    store: SizeStore
    reporter: ErrorReporter
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.description is None:
            self.description = str(self.ref)

    def __call__(self, array: Any) -> Any:
        return verify_runtime(
            array,
            self.ref.labels,
            self.description,
            self.ref.location,
            store=self.store,
            reporter=self.reporter,
        )
