import pytest
from hypothesis import given
from hypothesis import strategies as st

from indexcheck import (
    Alpha,
    ArityMismatch,
    CheckContext,
    CheckOptions,
    LabelDrift,
    MalformedReference,
    Named,
    RuntimeCheck,
    SourceLocation,
    TensorRef,
)


def _context(**options) -> CheckContext:
    return CheckContext(CheckOptions(**options))


def _kinds(ctx: CheckContext):
    return [diag.kind for diag in ctx.diagnostics]


def test_first_use_records_labels_and_returns_reference():
    ctx = _context()
    result = ctx.check_static("A", ["i", "j"])
    assert isinstance(result, TensorRef)
    assert result.name == "A"
    assert ctx.labels.get("A") == (Alpha("i"), Alpha("j"))
    assert ctx.diagnostics == []


def test_nearby_letters_are_accepted():
    ctx = _context()
    ctx.check_static("A", ["i", "j"])
    ctx.check_static("A", ["i", "k"])
    assert ctx.diagnostics == []
    # the first use stays the contract
    assert ctx.labels.get("A") == (Alpha("i"), Alpha("j"))


def test_distant_letters_report_drift():
    ctx = _context()
    ctx.check_static("A", ["i", "z"])
    ctx.check_static("A", ["i", "a"])
    assert _kinds(ctx) == ["LabelDrift"]
    assert ctx.diagnostics[0].message == "A[i,a] now has index a where previously it had z"
    assert ctx.labels.get("A") == (Alpha("i"), Alpha("z"))


def test_every_position_is_checked():
    ctx = _context()
    ctx.check_static("B", ["a", "b", "c"])
    ctx.check_static("B", ["x", "b", "y"])
    assert _kinds(ctx) == ["LabelDrift", "LabelDrift"]
    assert "index x where previously it had a" in ctx.diagnostics[0].message
    assert "index y where previously it had c" in ctx.diagnostics[1].message


@pytest.mark.parametrize(
    "second, word",
    [
        (["i"], "fewer"),
        (["i", "j", "k"], "more"),
    ],
)
def test_arity_mismatch(second, word):
    ctx = _context()
    ctx.check_static("A", ["i", "j"])
    ctx.check_static("A", second)
    assert _kinds(ctx) == ["ArityMismatch"]
    assert f"now has {word} indices than previous (i, j)" in ctx.diagnostics[0].message
    assert ctx.labels.get("A") == (Alpha("i"), Alpha("j"))


def test_arity_mismatch_skips_letter_comparison():
    ctx = _context()
    ctx.check_static("A", ["a", "b"])
    ctx.check_static("A", ["z"])
    assert _kinds(ctx) == ["ArityMismatch"]


def test_literals_wildcards_and_names_are_exempt():
    ctx = _context()
    ctx.check_static("T", ["a", "a", "a", "batch"])
    ctx.check_static("T", [1, "_", "z", "zeta"])
    # only the alpha/alpha pair at position 2 is compared
    assert _kinds(ctx) == ["LabelDrift"]
    assert ctx.diagnostics[0].message.endswith("index z where previously it had a")


def test_leading_multichar_policy_compares_names():
    ctx = _context(multichar="leading")
    ctx.check_static("T", ["batch", "i"])
    ctx.check_static("T", ["zeta", "i"])
    assert _kinds(ctx) == ["LabelDrift"]


def test_tolerance_is_configurable():
    ctx = _context(tol=0)
    ctx.check_static("A", ["i", "j"])
    ctx.check_static("A", ["i", "k"])
    assert _kinds(ctx) == ["LabelDrift"]

    relaxed = _context(tol=25)
    relaxed.check_static("A", ["z"])
    relaxed.check_static("A", ["a"])
    assert relaxed.diagnostics == []


def test_alpha_disabled_skips_store():
    ctx = _context(alpha=False)
    assert isinstance(ctx.check_static("A", ["i", "j"]), TensorRef)
    ctx.check_static("A", ["z"])
    assert len(ctx.labels) == 0
    assert ctx.diagnostics == []


def test_repeated_successful_check_is_idempotent():
    ctx = _context()
    ctx.check_static("A", ["i", "j"])
    before = ctx.info()
    for _ in range(3):
        ctx.check_static("A", ["i", "j"])
    assert ctx.info() == before
    assert ctx.diagnostics == []


def test_empty_resets_to_first_use():
    ctx = _context()
    ctx.check_static("A", ["i", "z"])
    ctx.check_static("A", ["i", "a"])
    assert len(ctx.diagnostics) == 1
    ctx.empty()
    ctx.reporter.clear()
    ctx.check_static("A", ["i", "z"])
    ctx.check_static("A", ["i", "a"])
    assert len(ctx.diagnostics) == 1
    assert ctx.options == CheckOptions()


def test_reference_with_extra_labels_is_malformed():
    ctx = _context()
    ref = TensorRef("A", (Alpha("i"),))
    with pytest.raises(MalformedReference, match="already carries"):
        ctx.check_static(ref, ["x"])
    assert "A" not in ctx.labels
    assert ctx.check_static(ref) == ref

def test_throw_raises_typed_errors_without_touching_store():
    ctx = _context(throw=True)
    location = SourceLocation(module="model", file="model.py", line=12)
    ctx.check_static("A", ["i", "z"])
    with pytest.raises(LabelDrift) as excinfo:
        ctx.check_static("A", ["i", "a"], location)
    err = excinfo.value
    assert err.new == Alpha("a")
    assert err.old == Alpha("z")
    assert err.position == 1
    assert err.location == location
    assert "(model.py:12, model)" in str(err)

    with pytest.raises(ArityMismatch) as excinfo:
        ctx.check_static("A", ["i"])
    assert (excinfo.value.expected, excinfo.value.actual) == (2, 1)
    assert ctx.labels.get("A") == (Alpha("i"), Alpha("z"))
    assert ctx.diagnostics == []


def test_size_option_schedules_runtime_check():
    ctx = _context(size=True)
    result = ctx.check_static("A", ["i", "j"])
    assert isinstance(result, RuntimeCheck)
    assert result.description == "A[i,j]"


def test_location_is_attached_to_diagnostics():
    ctx = _context()
    location = SourceLocation(file="net.py", line=3)
    ctx.check_static("A", ["a"])
    ctx.check_static("A", ["q"], location)
    assert ctx.diagnostics[0].location == location
    assert ctx.diagnostics[0].format().startswith("net.py:3: ")


_label_tokens = st.lists(
    st.sampled_from(["i", "j", "k", "a", "z", "batch", "_", 0, 1]),
    min_size=0,
    max_size=5,
)


@given(_label_tokens)
def test_first_use_stores_labels_exactly(tokens):
    ctx = _context()
    ctx.check_static("X", tokens)
    stored = ctx.labels.get("X")
    assert [str(label) for label in stored] == [str(token) for token in tokens]
    assert ctx.diagnostics == []


@given(_label_tokens, _label_tokens)
def test_length_change_always_reports_arity(first, second):
    ctx = _context()
    ctx.check_static("X", first)
    ctx.check_static("X", second)
    kinds = _kinds(ctx)
    if len(first) != len(second):
        assert kinds == ["ArityMismatch"]
    else:
        assert "ArityMismatch" not in kinds
    assert len(ctx.labels.get("X")) == len(first)


def test_named_labels_are_stored_as_named():
    ctx = _context()
    ctx.check_static("Emb", ["batch", "d"])
    assert ctx.labels.get("Emb") == (Named("batch"), Alpha("d"))
