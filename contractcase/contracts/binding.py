"""
Contract Bindings

Typed wrappers around a contract's ABI and creation bytecode, in the shape of
generated bindings: a class per contract with `deploy()` returning a handle
that knows its address and deployment receipt.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError as ABIDecodingError, EncodingError as ABIEncodingError
from eth_utils import encode_hex, function_signature_to_4byte_selector

from ..client import ChainClient, TransactionReceipt
from ..exceptions import DecodingError, DeploymentError, ContractError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ContractFunction:
    """One ABI function entry."""
    name: str
    input_types: Tuple[str, ...] = ()
    output_types: Tuple[str, ...] = ()
    output_names: Tuple[str, ...] = ()
    state_mutability: str = "nonpayable"

    @classmethod
    def from_abi(cls, entry: Dict[str, Any]) -> "ContractFunction":
        outputs = entry.get("outputs", [])
        return cls(
            name=entry["name"],
            input_types=tuple(item["type"] for item in entry.get("inputs", [])),
            output_types=tuple(item["type"] for item in outputs),
            output_names=tuple(item.get("name", "") for item in outputs),
            state_mutability=entry.get("stateMutability", "nonpayable"),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    @property
    def is_read_only(self) -> bool:
        return self.state_mutability in ("view", "pure")

    def encode_input(self, *args) -> bytes:
        if len(args) != len(self.input_types):
            raise ContractError(
                f"{self.signature} takes {len(self.input_types)} arguments, got {len(args)}"
            )
        try:
            return self.selector + encode(list(self.input_types), list(args))
        except ABIEncodingError as e:
            raise ContractError(f"Cannot encode arguments for {self.signature}: {e}") from e

    def decode_output(self, data: bytes) -> Tuple[Any, ...]:
        """
        Decode return data into a tuple matching output_types.

        Raises:
            DecodingError: data is shorter than or inconsistent with the ABI
        """
        try:
            return tuple(decode(list(self.output_types), data))
        except ABIDecodingError as e:
            raise DecodingError(
                f"Cannot decode {self.signature} output {encode_hex(data)} "
                f"as ({','.join(self.output_types)}): {e}"
            ) from e


def parse_abi(abi: Sequence[Dict[str, Any]]) -> Dict[str, ContractFunction]:
    return {
        entry["name"]: ContractFunction.from_abi(entry)
        for entry in abi
        if entry.get("type", "function") == "function"
    }


class ContractBinding:
    """
    Base class for contract bindings.

    Subclasses set ABI (solc JSON ABI entries) and BINARY (creation code).
    """

    ABI: ClassVar[List[Dict[str, Any]]] = []
    BINARY: ClassVar[bytes] = b""

    def __init__(self, client: ChainClient, contract_address: str,
                 transaction_receipt: Optional[TransactionReceipt] = None):
        self.client = client
        self.contract_address = contract_address
        self._receipt = transaction_receipt
        self.functions = parse_abi(self.ABI)

    @classmethod
    def deploy(cls, client: ChainClient, sender: Optional[str] = None, gas: Optional[int] = None):
        """
        Deploy the contract and wait for its receipt.

        Raises:
            DeploymentError: the creation transaction failed or left no code
        """
        if not cls.BINARY:
            raise DeploymentError(f"{cls.__name__} has no creation bytecode")

        tx_hash = client.send_transaction(data=cls.BINARY, sender=sender, gas=gas)
        receipt = client.wait_for_receipt(tx_hash)
        if not receipt.succeeded or not receipt.contract_address:
            reason = f": {receipt.revert_reason}" if receipt.revert_reason else ""
            raise DeploymentError(f"{cls.__name__} deployment failed in {tx_hash}{reason}")
        if not client.get_code(receipt.contract_address):
            raise DeploymentError(f"{cls.__name__} deployed no code at {receipt.contract_address}")

        logger.debug("%s deployed at %s", cls.__name__, receipt.contract_address)
        return cls(client, receipt.contract_address, receipt)

    @classmethod
    def load(cls, client: ChainClient, contract_address: str):
        """Bind to an already deployed contract."""
        return cls(client, contract_address)

    @property
    def transaction_receipt(self) -> Optional[TransactionReceipt]:
        """Deployment receipt; None for contracts bound with load()."""
        return self._receipt

    def _function(self, name: str) -> ContractFunction:
        try:
            return self.functions[name]
        except KeyError:
            raise ContractError(f"{type(self).__name__} has no function '{name}'") from None

    def call_function(self, name: str, *args) -> Tuple[Any, ...]:
        fn = self._function(name)
        output = self.client.call(self.contract_address, fn.encode_input(*args))
        return fn.decode_output(output)

    def transact_function(self, name: str, *args, value: int = 0) -> TransactionReceipt:
        fn = self._function(name)
        tx_hash = self.client.send_transaction(
            data=fn.encode_input(*args), to=self.contract_address, value=value,
        )
        return self.client.wait_for_receipt(tx_hash)
