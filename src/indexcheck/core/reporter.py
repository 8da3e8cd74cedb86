from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Type

from .exceptions import IndexCheckError
from .ir import SourceLocation
from .options import CheckOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str
    location: Optional[SourceLocation] = None

    def format(self) -> str:
        if self.location is None:
            return self.message
        where = self.location.describe()
        return f"{where}: {self.message}" if where else self.message


class ErrorReporter:
    """Turns a detected mismatch into an exception or an ERROR log record.

    With ``options.throw`` set the typed error is raised and aborts the caller.
    Otherwise the message is logged, remembered in :attr:`diagnostics`, and
    control returns to the caller unchanged.

    Diagnostics are kept until :meth:`clear`. Long-running hosts can pass
    ``max_diagnostics`` to keep only the most recent ones.
    """

    def __init__(
        self,
        options: CheckOptions,
        *,
        log: Optional[logging.Logger] = None,
        max_diagnostics: Optional[int] = None,
    ):
        if max_diagnostics is not None and max_diagnostics < 1:
            raise ValueError("max_diagnostics must be positive")
        self.options = options
        self.log = log or logger
        self._diagnostics: Deque[Diagnostic] = deque(maxlen=max_diagnostics)
        self._lock = threading.Lock()

    def report(
        self,
        error_cls: Type[IndexCheckError],
        message: str,
        location: Optional[SourceLocation] = None,
        **details: Any,
    ) -> Diagnostic:
        if self.options.throw:
            raise error_cls(message, location=location, **details)
        diagnostic = Diagnostic(kind=error_cls.__name__, message=message, location=location)
        self.log.error(message, extra=_location_extra(location, error_cls.__name__))
        with self._lock:
            self._diagnostics.append(diagnostic)
        return diagnostic

    @property
    def diagnostics(self) -> List[Diagnostic]:
        with self._lock:
            return list(self._diagnostics)

    def clear(self) -> None:
        with self._lock:
            self._diagnostics.clear()


def _location_extra(location: Optional[SourceLocation], kind: str) -> Dict[str, Any]:
    # LogRecord already owns "module", "filename" and "lineno"
    extra: Dict[str, Any] = {"check_kind": kind}
    if location is not None:
        extra["check_module"] = location.module
        extra["check_file"] = location.file
        extra["check_line"] = location.line
    return extra
