from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict

from .labels import MULTICHAR_EXEMPT, MULTICHAR_POLICIES

BARE_DIRECTIVES = ("info", "empty")


@dataclass
class CheckOptions:
    """
    Policy switches shared by the analysis-time and run-time checks.

    Key behaviors:
    * ``alpha`` turns on the analysis-time comparison of index letters.
    * ``tol`` is how far apart two letters may be before a changed letter is an
      error: ``B[j,k]`` after ``B[j,j]`` passes, ``B[a,z]`` after ``B[a,b]`` does not.
    * ``size`` asks front-ends to splice run-time extent checks around evaluation.
    * ``throw`` raises on the first mismatch instead of logging it.
    * ``multichar`` is ``"exempt"`` (multi-character labels are never compared)
      or ``"leading"`` (their first characters are compared like single letters).
    """

    alpha: bool = True
    tol: int = 3
    size: bool = False
    throw: bool = False
    multichar: str = MULTICHAR_EXEMPT

    def normalized(self) -> "CheckOptions":
        tol = self.tol
        if isinstance(tol, bool) or not isinstance(tol, int):
            raise ValueError(f"tol must be an integer, got {self.tol!r}")
        if tol < 0:
            raise ValueError("tol must be non-negative")
        multichar = (self.multichar or MULTICHAR_EXEMPT).lower()
        if multichar not in MULTICHAR_POLICIES:
            raise ValueError(f"Unsupported multichar policy: {self.multichar}")
        return replace(
            self,
            alpha=bool(self.alpha),
            tol=tol,
            size=bool(self.size),
            throw=bool(self.throw),
            multichar=multichar,
        )

    def assign(self, name: str, value: Any) -> bool:
        """Set one option from a directive; ``False`` if the name or value is not accepted."""
        if name in ("alpha", "size", "throw"):
            if not isinstance(value, bool):
                return False
            setattr(self, name, value)
            return True
        if name == "tol":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return False
            self.tol = value
            return True
        if name == "multichar":
            if not isinstance(value, str) or value.lower() not in MULTICHAR_POLICIES:
                return False
            self.multichar = value.lower()
            return True
        return False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
