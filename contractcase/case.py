"""
Contract Verification Cases

A case deploys a contract, invokes it and checks the result against one row of
its data source. ContractCase provides the shared fixture setup (fresh chain,
funded accounts, collector) and turns the run into a CaseResult.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from .client import ChainClient
from .collector import AssertionOutcome, Collector
from .config import CaseConfig
from .datasource import DataSource, ExpectedParameters
from .exceptions import CaseFailedError, ContractCaseException
from .logger import get_logger

logger = get_logger(__name__)


class CaseStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"   # an assertion did not hold
    ERROR = "error"     # an exception stopped the case


@dataclass
class CaseResult:
    case_name: str
    label: str
    status: CaseStatus
    outcomes: Tuple[AssertionOutcome, ...] = ()
    error: Optional[BaseException] = None
    duration: float = 0.0
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status is CaseStatus.PASSED

    def describe(self) -> str:
        text = f"{self.case_name}[{self.label}] {self.status.value.upper()}"
        failed = [o.message for o in self.outcomes if not o.passed]
        if failed:
            text += ": " + "; ".join(failed)
        return text

    def raise_for_failures(self) -> None:
        """
        Raises:
            CaseFailedError: the case did not pass (chained to the original error)
        """
        if self.passed:
            return
        raise CaseFailedError(self) from self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case": self.case_name,
            "label": self.label,
            "status": self.status.value,
            "duration": round(self.duration, 6),
            "params": dict(self.params),
            "error": f"{type(self.error).__name__}: {self.error}" if self.error else None,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class ContractCase:
    """
    Base class for data-driven contract verification cases.

    Subclasses set `name`, `data_source` and `required_params`, and
    implement `run()`. Lifecycle of `execute()`:

        prepare()  -> fresh ChainClient, deployer account, Collector
        before()   -> read the row's parameters (fails fast on missing keys)
        run()      -> deploy, invoke, assert
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    data_source: ClassVar[Optional[DataSource]] = None
    required_params: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, config: Optional[CaseConfig] = None):
        self.config = config or CaseConfig()
        self.client: Optional[ChainClient] = None
        self.collector: Optional[Collector] = None
        self.deployer: str = ""
        self.params: Optional[ExpectedParameters] = None

    def prepare(self, label: str = "") -> None:
        """Fresh fixtures for every run; nothing is shared between rows."""
        self.collector = Collector(self.name or type(self).__name__, label)
        self.client = ChainClient(self.config.chain)
        self.deployer = self.client.default_account

    def before(self, params: ExpectedParameters) -> None:
        self.params = params
        for key in self.required_params:
            setattr(self, key, params.require(key))

    def run(self) -> None:
        raise NotImplementedError

    def execute(self, params: ExpectedParameters) -> CaseResult:
        """
        Run the case for one data row.

        Exceptions never escape silently: they are logged with traceback,
        recorded as a failed step and reported as CaseStatus.ERROR.
        """
        started = time.monotonic()
        self.collector = Collector(self.name or type(self).__name__, params.label)
        error: Optional[BaseException] = None
        try:
            self.prepare(params.label)
            self.before(params)
            self.run()
        except ContractCaseException as e:
            error = e
            logger.error("%s[%s] ERROR %s", self.name, params.label, e)
            self.collector.log_step_fail("Case aborted", e)
        except Exception as e:
            error = e
            logger.exception("%s[%s] ERROR unexpected exception", self.name, params.label)
            self.collector.log_step_fail("Case aborted", e)

        if error is not None:
            status = CaseStatus.ERROR
        elif self.collector.passed:
            status = CaseStatus.PASSED
        else:
            status = CaseStatus.FAILED

        result = CaseResult(
            case_name=self.name,
            label=params.label,
            status=status,
            outcomes=self.collector.outcomes,
            error=error,
            duration=time.monotonic() - started,
            params=dict(params),
        )
        logger.info("%s[%s] %s", self.name, params.label, status.value.upper())
        return result
