from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Union

from .checker import analyze_static
from .exceptions import UnrecognizedDirective
from .ir import (
    Directive,
    DirectiveItem,
    SourceLocation,
    TensorRef,
    capture_location,
    json_ready,
    labels_json,
    make_ref,
)
from .options import BARE_DIRECTIVES, CheckOptions
from .parser import parse_directives
from .reporter import Diagnostic, ErrorReporter
from .runtime import RuntimeCheck, verify_runtime
from .stores import LabelStore, SizeStore

logger = logging.getLogger(__name__)

StaticResult = Union[TensorRef, RuntimeCheck]


class CheckContext:
    """Options, label store, size store and reporter shared by a set of checks.

    One context replaces process-wide state: pass the same instance to every
    caller whose tensors should be checked against each other.
    """

    def __init__(
        self,
        options: Optional[CheckOptions] = None,
        *,
        log: Optional[logging.Logger] = None,
        max_diagnostics: Optional[int] = None,
    ):
        self._options = (options or CheckOptions()).normalized()
        self.labels = LabelStore()
        self.sizes = SizeStore()
        self.reporter = ErrorReporter(self._options, log=log, max_diagnostics=max_diagnostics)
        # Options changes and store resets must not interleave with a check.
        self._lock = threading.RLock()

    @property
    def options(self) -> CheckOptions:
        return self._options

    @options.setter
    def options(self, value: CheckOptions) -> None:
        with self._lock:
            self._options = value.normalized()
            self.reporter.options = self._options

    # ------------------------------------------------------------------ checks
    def check_static(
        self,
        name: Any,
        labels: Sequence[Any] = (),
        location: Optional[SourceLocation] = None,
    ) -> StaticResult:
        ref = make_ref(name, labels, location)
        if location is not None and ref.location is None:
            ref = TensorRef(name=ref.name, labels=ref.labels, location=location)
        with self._lock:
            return analyze_static(
                ref,
                options=self.options,
                store=self.labels,
                sizes=self.sizes,
                reporter=self.reporter,
            )

    def check_runtime(
        self,
        array: Any,
        labels: Sequence[Any],
        description: Optional[str] = None,
        location: Optional[SourceLocation] = None,
    ) -> Any:
        return verify_runtime(
            array,
            labels,
            description,
            location,
            store=self.sizes,
            reporter=self.reporter,
        )

    def check(
        self,
        source: Union[str, TensorRef, Sequence[DirectiveItem]],
        location: Optional[SourceLocation] = None,
    ) -> Optional[StaticResult]:
        """Apply a directive line such as ``"tol=2 size=true"`` or ``"A[i,j] B[j,k]"``.

        A line holding exactly one tensor reference returns that reference's
        static result; anything else returns ``None``.
        """
        if location is None:
            location = capture_location()
        if isinstance(source, str):
            items = parse_directives(source, location=location)
        elif isinstance(source, TensorRef):
            items = [source]
        else:
            items = list(source)
        if len(items) == 1 and isinstance(items[0], TensorRef):
            return self.check_static(items[0], location=location)
        for item in items:
            if isinstance(item, TensorRef):
                self.check_static(item, location=location)
            else:
                self.apply_directive(item, location)
        return None

    # ------------------------------------------------------------------ options
    def apply_directive(
        self,
        directive: Directive,
        location: Optional[SourceLocation] = None,
    ) -> Optional[Dict[str, Any]]:
        if directive.has_value:
            self.set_option(directive.name, directive.value, location)
            return None
        return self.set_option(directive.name, location=location)

    def set_option(
        self,
        name: str,
        value: Any = None,
        location: Optional[SourceLocation] = None,
    ) -> Optional[Dict[str, Any]]:
        if value is None and name in BARE_DIRECTIVES:
            if name == "info":
                return self.info()
            self.empty()
            return None
        with self._lock:
            accepted = value is not None and self.options.assign(name, value)
        if not accepted:
            shown = name if value is None else str(Directive(name, value, has_value=True))
            self.reporter.report(
                UnrecognizedDirective,
                f"check doesn't know what to do with {shown}",
                location,
                directive=shown,
            )
        return None

    # ------------------------------------------------------------------ state
    def info(self) -> Dict[str, Any]:
        with self._lock:
            payload = {
                "options": self.options.as_dict(),
                "labels": {
                    name: labels_json(labels) for name, labels in self.labels.snapshot().items()
                },
                "sizes": {str(label): size for label, size in self.sizes.snapshot().items()},
            }
        logger.info("index check info: %s", payload)
        return json_ready(payload)

    def empty(self) -> None:
        with self._lock:
            self.labels.clear()
            self.sizes.clear()
        logger.info("index check stores emptied")

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return self.reporter.diagnostics

    # ------------------------------------------------------------------ evaluation
    def compile(
        self,
        expression: str,
        *,
        backend: str = "numpy",
        location: Optional[SourceLocation] = None,
    ):
        from .einsum import CheckedEinsum

        if location is None:
            location = capture_location()
        return CheckedEinsum(expression, self, backend=backend, location=location)

    def einsum(
        self,
        expression: str,
        *,
        backend: str = "numpy",
        location: Optional[SourceLocation] = None,
        **operands: Any,
    ) -> Any:
        if location is None:
            location = capture_location()
        return self.compile(expression, backend=backend, location=location)(**operands)
