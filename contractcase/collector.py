"""
Step Collector

Records the pass/fail outcome of every step of a case run and mirrors each
step to the log.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AssertionOutcome:
    """One recorded step. Never modified after creation."""
    step: int
    message: str
    passed: bool
    expected: Any = None
    actual: Any = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "message": self.message,
            "passed": self.passed,
            "expected": _printable(self.expected),
            "actual": _printable(self.actual),
            "timestamp": self.timestamp,
        }


def _printable(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class Collector:
    """Append-only step log for one case run."""

    def __init__(self, case_name: str, label: str = ""):
        self.case_name = case_name
        self.label = label
        self._outcomes: List[AssertionOutcome] = []

    def _tag(self) -> str:
        return f"[{self.case_name}:{self.label}]" if self.label else f"[{self.case_name}]"

    def _record(self, message: str, passed: bool, expected: Any = None, actual: Any = None) -> AssertionOutcome:
        outcome = AssertionOutcome(
            step=len(self._outcomes) + 1,
            message=message,
            passed=passed,
            expected=expected,
            actual=actual,
        )
        self._outcomes.append(outcome)
        return outcome

    def log_step_pass(self, message: str) -> AssertionOutcome:
        logger.info("%s PASS %s", self._tag(), message)
        return self._record(message, True)

    def log_step_fail(self, message: str, error: Optional[BaseException] = None) -> AssertionOutcome:
        if error is not None:
            message = f"{message}: {type(error).__name__}: {error}"
        logger.error("%s FAIL %s", self._tag(), message)
        return self._record(message, False)

    def assert_equal(self, expected: Any, actual: Any, message: Optional[str] = None) -> bool:
        """
        Record whether expected == actual. Mismatches are recorded, not raised,
        so the remaining fields of a result are still checked.
        """
        passed = expected == actual
        text = message or f"expected {expected!r}, actual {actual!r}"
        if passed:
            logger.info("%s PASS %s", self._tag(), text)
        else:
            logger.error("%s FAIL %s (expected %r, actual %r)", self._tag(), text, expected, actual)
        self._record(text, passed, expected, actual)
        return passed

    def assert_true(self, value: Any, message: str) -> bool:
        return self.assert_equal(True, bool(value), message)

    @property
    def outcomes(self) -> Tuple[AssertionOutcome, ...]:
        return tuple(self._outcomes)

    @property
    def failures(self) -> Tuple[AssertionOutcome, ...]:
        return tuple(o for o in self._outcomes if not o.passed)

    @property
    def passed(self) -> bool:
        return not self.failures

    def summary(self) -> Dict[str, int]:
        failed = len(self.failures)
        return {
            "steps": len(self._outcomes),
            "passed": len(self._outcomes) - failed,
            "failed": failed,
        }
