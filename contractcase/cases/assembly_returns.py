"""
AssemblyReturns case: inline assembly assigns and returns values of several types.
"""

from ..case import ContractCase
from ..contracts import AssemblyReturns
from ..datasource import DataSource, DataSourceType

EXPECTED_ADDRESS = "0x1212121212121212121212121212121212121212"


def to_hex(value: bytes) -> str:
    """Lowercase hex without 0x prefix."""
    return bytes(value).hex()


def normalize_hex(value: str) -> str:
    value = value.strip().lower()
    return value[2:] if value.startswith("0x") else value


class AssemblyReturnsCase(ContractCase):

    name = "function.AssemblyReturnsTest"
    description = "Assembly assigns and returns uint, bytes32, bytes32, bool and address"
    data_source = DataSource(
        type=DataSourceType.CSV,
        file="assembly_returns.csv",
        author="liweic",
        show_name="function.AssemblyReturnsTest-AssemblyReturns",
    )
    required_params = ("B", "C")

    def run(self) -> None:
        contract = AssemblyReturns.deploy(self.client, sender=self.deployer)
        tx = contract.transaction_receipt
        self.collector.log_step_pass(
            f"AssemblyReturns deploy successfully. contractAddress: {contract.contract_address}, "
            f"hash: {tx.transaction_hash}"
        )

        result = contract.f()

        self.collector.log_step_pass(f"AssemblyReturns first return value: {result.a}")
        self.collector.assert_equal(2, result.a, "first return value is 2")

        b = to_hex(result.b)
        self.collector.log_step_pass(f"AssemblyReturns second return value: {b}")
        self.collector.assert_equal(normalize_hex(self.B), b, "second return value matches B")

        c = to_hex(result.c)
        self.collector.log_step_pass(f"AssemblyReturns third return value: {c}")
        self.collector.assert_equal(normalize_hex(self.C), c, "third return value matches C")

        self.collector.log_step_pass(f"AssemblyReturns fourth return value: {result.d}")
        self.collector.assert_equal(True, result.d, "fourth return value is true")

        self.collector.log_step_pass(f"AssemblyReturns fifth return value: {result.e}")
        self.collector.assert_equal(EXPECTED_ADDRESS, str(result.e), "fifth return value is the 0x12.. address")
