import numpy as np
import pytest

from indexcheck import (
    BackendError,
    CheckContext,
    CheckedEinsum,
    CheckOptions,
    MalformedReference,
    ParseError,
    RuntimeCheck,
    SizeMismatch,
)
from indexcheck.core.einsum import build_subscripts
from indexcheck.core.parser import parse_expression


def _matrices(rows: int, inner: int, cols: int):
    rng = np.random.default_rng(0)
    return rng.normal(size=(rows, inner)), rng.normal(size=(inner, cols))


def test_build_subscripts_maps_labels_to_letters():
    expr = parse_expression("A[row,col] := B[row,k] * C[k,col]")
    assert build_subscripts(expr) == "ab,bc->ac"


def test_literal_indices_cannot_be_evaluated():
    with pytest.raises(ParseError, match="cannot be evaluated"):
        build_subscripts(parse_expression("A[i] := B[i,1]"))


def test_unevaluable_expression_is_still_checked():
    ctx = CheckContext()
    ctx.check_static("B", ["i", "a"])
    with pytest.raises(ParseError, match="cannot be evaluated"):
        ctx.compile("A[i] := B[i,z] * C[1]")
    assert [diag.kind for diag in ctx.diagnostics] == ["LabelDrift"]
    assert set(ctx.labels) == {"A", "B", "C"}


def test_matrix_product_matches_numpy():
    ctx = CheckContext()
    b, c = _matrices(2, 3, 4)
    out = ctx.einsum("A[i,j] := B[i,k] * C[k,j]", B=b, C=c)
    np.testing.assert_allclose(out, b @ c)
    assert set(ctx.labels) == {"A", "B", "C"}
    assert ctx.diagnostics == []


def test_static_checks_run_at_construction():
    ctx = CheckContext()
    ctx.check_static("C", ["k", "j"])
    checked = CheckedEinsum("A[i,j] := B[i,k] * C[k,zz]", ctx)
    # no runtime checks are spliced in while size checking is off
    assert checked.runtime_checks == []
    assert ctx.diagnostics == []
    CheckedEinsum("A[i,j] := B[i,k] * C[k,z]", ctx)
    assert [diag.kind for diag in ctx.diagnostics] == ["LabelDrift"]


def test_size_checks_wrap_evaluation():
    ctx = CheckContext(CheckOptions(size=True))
    checked = ctx.compile("A[i,j] := B[i,k] * C[k,j]")
    assert len(checked.runtime_checks) == 3
    assert all(isinstance(check, RuntimeCheck) for check in checked.runtime_checks)

    b, c = _matrices(2, 3, 2)
    checked(B=b, C=c)
    assert ctx.info()["sizes"] == {"i": 2, "k": 3, "j": 2}

    b5, c5 = _matrices(2, 5, 2)
    out = checked(B=b5, C=c5)
    np.testing.assert_allclose(out, b5 @ c5)
    messages = [diag.message for diag in ctx.diagnostics]
    assert messages == [
        "B[i,k], index k now has range 5 instead of 3",
        "C[k,j], index k now has range 5 instead of 3",
    ]


def test_output_size_is_checked_after_evaluation():
    ctx = CheckContext(CheckOptions(size=True))
    ctx.check_runtime(np.zeros(3), ["j"])
    b, c = _matrices(2, 3, 4)
    ctx.einsum("A[i,j] := B[i,k] * C[k,j]", B=b, C=c)
    kinds = [diag.kind for diag in ctx.diagnostics]
    assert kinds == ["SizeMismatch", "SizeMismatch"]
    assert ctx.diagnostics[-1].message.startswith("A[i,j], index j")


def test_throw_aborts_before_evaluation():
    ctx = CheckContext(CheckOptions(size=True, throw=True))
    checked = ctx.compile("A[i,j] := B[i,k] * C[k,j]")
    b, c = _matrices(2, 3, 2)
    checked(B=b, C=c)
    _, bad_c = _matrices(2, 4, 2)
    with pytest.raises(SizeMismatch):
        checked(B=b, C=bad_c)


def test_inplace_assignment_writes_into_output():
    ctx = CheckContext()
    b, c = _matrices(3, 2, 3)
    target = np.zeros((3, 3))
    result = ctx.einsum("A[i,j] = B[i,k] C[k,j]", A=target, B=b, C=c)
    assert result is target
    np.testing.assert_allclose(target, b @ c)


def test_trace_and_scalar_output():
    ctx = CheckContext(CheckOptions(size=True))
    m = np.arange(9.0).reshape(3, 3)
    total = ctx.einsum("T[] := M[i,i]", M=m)
    assert float(total) == pytest.approx(np.trace(m))
    assert ctx.diagnostics == []


def test_missing_operand_is_malformed():
    ctx = CheckContext()
    with pytest.raises(MalformedReference, match="No array supplied for C"):
        ctx.einsum("A[i,j] := B[i,k] * C[k,j]", B=np.zeros((2, 2)))


def test_evaluator_failures_are_wrapped():
    ctx = CheckContext()
    with pytest.raises(BackendError, match="einsum failed"):
        ctx.einsum("A[i,j] := B[i,k] * C[k,j]", B=np.zeros((2, 3)), C=np.zeros((4, 2)))


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError, match="Unsupported backend"):
        CheckedEinsum("A[i] := B[i]", CheckContext(), backend="tpu")
