"""
contractcase Case Lifecycle Test Suite

Covers:
- AssemblyReturnsCase pass / fail / error paths
- CaseResult reporting and raise_for_failures
"""

import pytest

from contractcase.case import CaseResult, CaseStatus, ContractCase
from contractcase.cases import CASES, AssemblyReturnsCase
from contractcase.cases.assembly_returns import normalize_hex, to_hex
from contractcase.config import CaseConfig, ChainConfig
from contractcase.contracts import AssemblyReturns
from contractcase.datasource import ExpectedParameters
from contractcase.exceptions import (
    CaseFailedError,
    ConfigurationError,
    DeploymentError,
    MissingParameterError,
)

B_HEX = "616263" + "00" * 29
C_HEX = "646566" + "00" * 29


@pytest.fixture
def config():
    return CaseConfig(chain=ChainConfig(account_count=2))


def row(label="row-1", **values):
    return ExpectedParameters(values, label=label)


class TestHexHelpers:

    def test_normalize(self):
        assert normalize_hex("0xABcd") == "abcd"
        assert normalize_hex(" abcd ") == "abcd"

    def test_to_hex(self):
        assert to_hex(b"\x0a\xff") == "0aff"


class TestAssemblyReturnsCase:

    def test_registered(self):
        assert CASES["function.AssemblyReturnsTest"] is AssemblyReturnsCase

    def test_passes(self, config):
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX, C=C_HEX))
        assert result.status is CaseStatus.PASSED
        assert result.passed
        # deploy + five (log, assert) pairs
        assert len(result.outcomes) == 11
        assert all(o.passed for o in result.outcomes)
        assert "contractAddress" in result.outcomes[0].message
        result.raise_for_failures()

    def test_prefixed_uppercase_expectations_pass(self, config):
        result = AssemblyReturnsCase(config).execute(
            row(B="0x" + B_HEX.upper(), C="0X" + C_HEX.upper()),
        )
        assert result.passed

    def test_wrong_value_fails(self, config):
        result = AssemblyReturnsCase(config).execute(row(B="00" * 32, C=C_HEX))
        assert result.status is CaseStatus.FAILED
        assert result.error is None
        failed = [o for o in result.outcomes if not o.passed]
        assert len(failed) == 1
        assert failed[0].expected == "00" * 32
        assert failed[0].actual == B_HEX
        # remaining steps still ran
        assert len(result.outcomes) == 11
        with pytest.raises(CaseFailedError) as exc_info:
            result.raise_for_failures()
        assert exc_info.value.result is result
        assert "FAILED" in str(exc_info.value)

    def test_missing_parameter_is_an_error(self, config):
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX))
        assert result.status is CaseStatus.ERROR
        assert isinstance(result.error, MissingParameterError)
        assert not result.outcomes[-1].passed

    def test_deployment_failure_is_an_error(self, config, monkeypatch):
        def fail(cls, client, sender=None, gas=None):
            raise DeploymentError("deploy refused")

        monkeypatch.setattr(AssemblyReturns, "deploy", classmethod(fail))
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX, C=C_HEX))
        assert result.status is CaseStatus.ERROR
        assert "deploy refused" in result.outcomes[-1].message
        with pytest.raises(CaseFailedError) as exc_info:
            result.raise_for_failures()
        assert isinstance(exc_info.value.__cause__, DeploymentError)

    def test_unexpected_exception_is_an_error(self, config, monkeypatch):
        def fail(cls, client, sender=None, gas=None):
            raise RuntimeError("node vanished")

        monkeypatch.setattr(AssemblyReturns, "deploy", classmethod(fail))
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX, C=C_HEX))
        assert result.status is CaseStatus.ERROR
        assert isinstance(result.error, RuntimeError)

    def test_each_run_gets_a_fresh_chain(self, config):
        case = AssemblyReturnsCase(config)
        case.execute(row(B=B_HEX, C=C_HEX))
        first = case.client
        case.execute(row(B=B_HEX, C=C_HEX))
        assert case.client is not first
        assert case.client.block_number == 1


class TestSetupFailures:

    @pytest.mark.parametrize("key", ["0xnothex", "0x1234"])
    def test_bad_deployer_key_is_an_error(self, key):
        config = CaseConfig(chain=ChainConfig(account_count=1, deployer_key=key))
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX, C=C_HEX))
        assert result.status is CaseStatus.ERROR
        assert isinstance(result.error, ConfigurationError)
        assert len(result.outcomes) == 1
        assert "Invalid deployer key" in result.outcomes[0].message
        with pytest.raises(CaseFailedError):
            result.raise_for_failures()

    def test_chain_construction_failure_is_an_error(self, config, monkeypatch):
        def broken(self, *args, **kwargs):
            raise RuntimeError("no database")

        monkeypatch.setattr("contractcase.case.ChainClient.__init__", broken)
        result = AssemblyReturnsCase(config).execute(row(B=B_HEX, C=C_HEX))
        assert result.status is CaseStatus.ERROR
        assert isinstance(result.error, RuntimeError)
        assert result.label == "row-1"


class TestContractCaseBase:

    def test_run_not_implemented(self, config):
        class Bare(ContractCase):
            name = "bare"

        result = Bare(config).execute(row())
        assert result.status is CaseStatus.ERROR
        assert isinstance(result.error, NotImplementedError)

    def test_required_params_become_attributes(self, config):
        class Echo(ContractCase):
            name = "echo"
            required_params = ("X",)

            def run(self):
                self.collector.assert_equal("1", self.X, "X")

        result = Echo(config).execute(row(X="1"))
        assert result.passed
        assert result.params == {"X": "1"}


class TestCaseResult:

    def test_to_dict(self):
        result = CaseResult(case_name="c", label="r", status=CaseStatus.ERROR, error=ValueError("bad"))
        data = result.to_dict()
        assert data["status"] == "error"
        assert data["error"] == "ValueError: bad"
        assert data["outcomes"] == []

    def test_describe(self):
        result = CaseResult(case_name="c", label="r", status=CaseStatus.PASSED)
        assert result.describe() == "c[r] PASSED"
