from __future__ import annotations

from typing import Union

from .exceptions import ArityMismatch, LabelDrift
from .ir import TensorRef
from .labels import drift_distance
from .options import CheckOptions
from .reporter import ErrorReporter
from .runtime import RuntimeCheck
from .stores import LabelStore, SizeStore


def analyze_static(
    ref: TensorRef,
    *,
    options: CheckOptions,
    store: LabelStore,
    sizes: SizeStore,
    reporter: ErrorReporter,
) -> Union[TensorRef, RuntimeCheck]:
    if options.alpha:
        _compare_with_store(ref, options=options, store=store, reporter=reporter)
    if options.size:
        return RuntimeCheck(ref=ref, store=sizes, reporter=reporter)
    return ref


def _compare_with_store(
    ref: TensorRef,
    *,
    options: CheckOptions,
    store: LabelStore,
    reporter: ErrorReporter,
) -> None:
    recorded, inserted = store.claim(ref.name, ref.labels)
    if inserted:
        return

    previous = f"({', '.join(str(label) for label in recorded)})"
    if len(ref.labels) != len(recorded):
        comparison = "more" if len(ref.labels) > len(recorded) else "fewer"
        reporter.report(
            ArityMismatch,
            f"{ref} now has {comparison} indices than previous {previous}",
            ref.location,
            expected=len(recorded),
            actual=len(ref.labels),
        )
        return

    # Every position is checked so one call can surface several drifts.
    for position, (new, old) in enumerate(zip(ref.labels, recorded)):
        distance = drift_distance(new, old, options.multichar)
        if distance is not None and distance > options.tol:
            reporter.report(
                LabelDrift,
                f"{ref} now has index {new} where previously it had {old}",
                ref.location,
                new=new,
                old=old,
                position=position,
            )
