from __future__ import annotations

import string
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import numpy as np

from .exceptions import BackendError, MalformedReference, ParseError
from .ir import Expression, SourceLocation, TensorRef
from .labels import IndexLabel, Literal, Wildcard
from .parser import parse_expression
from .runtime import RuntimeCheck

if TYPE_CHECKING:
    from .context import CheckContext

# Map index labels to letters for einsum
EINSUM_LABELS = list(string.ascii_letters)

SUPPORTED_BACKENDS = ("numpy", "torch")


def build_subscripts(expression: Expression) -> str:
    letters: Dict[IndexLabel, str] = {}

    def _letters_for(ref: TensorRef) -> str:
        out = []
        for label in ref.labels:
            if isinstance(label, (Literal, Wildcard)):
                raise ParseError(
                    f"{ref}: index '{label}' cannot be evaluated by einsum",
                    line=expression.line,
                )
            if label not in letters:
                if len(letters) >= len(EINSUM_LABELS):
                    raise ParseError(
                        f"Too many distinct indices for einsum (limit {len(EINSUM_LABELS)})",
                        line=expression.line,
                    )
                letters[label] = EINSUM_LABELS[len(letters)]
            out.append(letters[label])
        return "".join(out)

    inputs = ",".join(_letters_for(ref) for ref in expression.rhs)
    output = _letters_for(expression.lhs)
    return f"{inputs}->{output}"


class CheckedEinsum:
    """An einsum expression whose references are checked against a context.

    Construction is analysis time: every right-hand reference and then the
    left-hand one go through the static check.  When size checking is on at
    that moment, the returned run-time checks are kept and run around every
    evaluation: inputs before the einsum call, the result after it.
    """

    def __init__(
        self,
        expression: Union[str, Expression],
        context: "CheckContext",
        *,
        backend: str = "numpy",
        location: Optional[SourceLocation] = None,
    ):
        backend = (backend or "numpy").lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported backend: {backend}")
        if isinstance(expression, str):
            expression = parse_expression(expression, location=location)
        self.expression = expression
        self.context = context
        self.backend = backend
        self.input_checks = [context.check_static(ref, location=location) for ref in expression.rhs]
        self.output_check = context.check_static(expression.lhs, location=location)
        # references are recorded even when the expression cannot be evaluated
        self.subscripts = build_subscripts(expression)

    @property
    def runtime_checks(self) -> List[RuntimeCheck]:
        checks = [*self.input_checks, self.output_check]
        return [check for check in checks if isinstance(check, RuntimeCheck)]

    def __call__(self, **operands: Any) -> Any:
        arrays = []
        for ref, check in zip(self.expression.rhs, self.input_checks):
            array = _operand(operands, ref)
            if isinstance(check, RuntimeCheck):
                check(array)
            arrays.append(array)

        target = None
        if not self.expression.creates_output:
            target = _operand(operands, self.expression.lhs)

        if self.backend == "torch":
            result = self._evaluate_torch(arrays, target)
        else:
            result = self._evaluate_numpy(arrays, target)

        # the output extent may only be known once evaluation has run
        if isinstance(self.output_check, RuntimeCheck):
            self.output_check(result)
        return result

    def _evaluate_numpy(self, arrays: List[Any], target: Any) -> Any:
        try:
            if target is None:
                return np.einsum(self.subscripts, *arrays)
            np.einsum(self.subscripts, *arrays, out=target)
            return target
        except (TypeError, ValueError) as exc:
            raise BackendError(f"einsum failed for {self.expression.source}: {exc}") from exc

    def _evaluate_torch(self, arrays: List[Any], target: Any) -> Any:
        try:  # pragma: no cover - import/availability depends on environment
            import torch
        except ImportError as exc:  # pragma: no cover
            raise BackendError("PyTorch backend requested but torch is not installed") from exc
        try:
            result = torch.einsum(self.subscripts, *arrays)
            if target is None:
                return result
            target.copy_(result)
            return target
        except (RuntimeError, TypeError, ValueError) as exc:
            raise BackendError(f"einsum failed for {self.expression.source}: {exc}") from exc


def _operand(operands: Dict[str, Any], ref: TensorRef) -> Any:
    if ref.name not in operands:
        raise MalformedReference(f"No array supplied for {ref}")
    return operands[ref.name]
