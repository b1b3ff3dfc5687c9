"""
In-process EVM Executor for contractcase

Direct integration with py-evm (Shanghai rules) over an in-memory database.
Acts as a single-node development chain: every transaction is mined into its
own block and the state root is carried from one execution to the next.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple

from eth.constants import (
    BLANK_ROOT_HASH,
    CREATE_CONTRACT_ADDRESS,
    GENESIS_DIFFICULTY,
    ZERO_ADDRESS,
)
from eth.db.atomic import AtomicDB
from eth.vm.execution_context import ExecutionContext
from eth.vm.forks.shanghai.computation import ShanghaiComputation
from eth.vm.forks.shanghai.state import ShanghaiState
from eth.vm.message import Message
from eth.vm.transaction_context import BaseTransactionContext
from eth_typing import Address
from eth_utils import keccak, to_checksum_address
import rlp

from ..constants import (
    BLOCK_HASH_HISTORY,
    DEFAULT_BLOCK_GAS_LIMIT,
    DEFAULT_CHAIN_ID,
    GAS_INITCODE_WORD,
    GAS_TX,
    GAS_TX_CREATE,
    GAS_TX_DATA_NONZERO,
    GAS_TX_DATA_ZERO,
    MAX_REFUND_QUOTIENT,
)
from ..exceptions import InsufficientFundsError, IntrinsicGasError, NonceError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class EVMResult:
    """Minimal EVM execution result."""
    success: bool
    gas_used: int
    output: bytes
    logs: List[Tuple[bytes, List[bytes], bytes]] = field(default_factory=list)  # (address, topics, data)
    error: Optional[str] = None
    created_address: Optional[bytes] = None


@dataclass(frozen=True)
class MinedBlock:
    number: int
    hash: bytes
    parent_hash: bytes
    state_root: bytes
    timestamp: int
    transaction_hash: bytes


def compute_create_address(sender: Address, nonce: int) -> Address:
    """
    CREATE address: keccak256(rlp([sender, nonce]))[-20:]
    """
    return Address(keccak(rlp.encode([sender, nonce]))[12:])


def intrinsic_gas(data: bytes, is_create: bool) -> int:
    """Gas charged before any code runs."""
    gas = GAS_TX
    zero_bytes = data.count(0)
    gas += zero_bytes * GAS_TX_DATA_ZERO
    gas += (len(data) - zero_bytes) * GAS_TX_DATA_NONZERO
    if is_create:
        gas += GAS_TX_CREATE
        gas += GAS_INITCODE_WORD * ((len(data) + 31) // 32)
    return gas


def _topic_bytes(topic) -> bytes:
    if isinstance(topic, int):
        return topic.to_bytes(32, 'big')
    return bytes(topic)


class EVMExecutor:
    """
    EVM executor backed by py-evm.

    Accounts, code and storage all live in py-evm's own account database;
    the executor only tracks the state root and the chain of mined blocks.
    """

    def __init__(
        self,
        chain_id: int = DEFAULT_CHAIN_ID,
        block_gas_limit: int = DEFAULT_BLOCK_GAS_LIMIT,
        genesis_timestamp: int = 1,
    ):
        self.chain_id = chain_id
        self.block_gas_limit = block_gas_limit
        self.db = AtomicDB()
        self.state_root = BLANK_ROOT_HASH
        self.blocks: List[MinedBlock] = []
        self._genesis_timestamp = genesis_timestamp
        genesis_hash = keccak(rlp.encode([b'', 0, self.state_root]))
        self.blocks.append(MinedBlock(
            number=0,
            hash=genesis_hash,
            parent_hash=b'\x00' * 32,
            state_root=self.state_root,
            timestamp=genesis_timestamp,
            transaction_hash=b'',
        ))

    # --- chain head -------------------------------------------------------

    @property
    def head(self) -> MinedBlock:
        return self.blocks[-1]

    @property
    def block_number(self) -> int:
        return self.head.number

    def _prev_hashes(self) -> List[bytes]:
        """Ancestor hashes of the pending block, most recent first."""
        recent = self.blocks[-BLOCK_HASH_HISTORY:]
        return [block.hash for block in reversed(recent)]

    def _execution_context(self) -> ExecutionContext:
        number = self.block_number + 1
        return ExecutionContext(
            coinbase=ZERO_ADDRESS,
            timestamp=self._genesis_timestamp + number,
            block_number=number,
            difficulty=GENESIS_DIFFICULTY,
            mix_hash=b'\x00' * 32,
            gas_limit=self.block_gas_limit,
            prev_hashes=self._prev_hashes(),
            chain_id=self.chain_id,
            base_fee_per_gas=0,
        )

    def _state(self) -> ShanghaiState:
        return ShanghaiState(self.db, self._execution_context(), self.state_root)

    def mine(self, transaction_hash: bytes) -> MinedBlock:
        """Seal the pending block around one transaction."""
        parent = self.head
        number = parent.number + 1
        block_hash = keccak(rlp.encode([parent.hash, number, self.state_root, transaction_hash]))
        block = MinedBlock(
            number=number,
            hash=block_hash,
            parent_hash=parent.hash,
            state_root=self.state_root,
            timestamp=self._genesis_timestamp + number,
            transaction_hash=transaction_hash,
        )
        self.blocks.append(block)
        return block

    # --- accounts ---------------------------------------------------------

    def fund(self, address: Address, amount: int) -> None:
        state = self._state()
        state.set_balance(address, amount)
        state.persist()
        self.state_root = state.state_root

    def get_balance(self, address: Address) -> int:
        return self._state().get_balance(address)

    def get_nonce(self, address: Address) -> int:
        return self._state().get_nonce(address)

    def get_code(self, address: Address) -> bytes:
        return self._state().get_code(address)

    def get_storage(self, address: Address, slot: int) -> int:
        return self._state().get_storage(address, slot)

    # --- execution --------------------------------------------------------

    def _apply(
        self,
        state: ShanghaiState,
        sender: Address,
        to: Optional[Address],
        value: int,
        data: bytes,
        gas: int,
        gas_price: int,
        nonce: int,
    ):
        tx_context = BaseTransactionContext(gas_price=gas_price, origin=sender)
        if to is None:
            message = Message(
                gas=gas,
                to=CREATE_CONTRACT_ADDRESS,
                sender=sender,
                value=value,
                data=b'',
                code=data,
                create_address=compute_create_address(sender, nonce),
            )
            return ShanghaiComputation.apply_create_message(state, message, tx_context)

        message = Message(
            gas=gas,
            to=to,
            sender=sender,
            value=value,
            data=data,
            code=state.get_code(to),
        )
        return ShanghaiComputation.apply_message(state, message, tx_context)

    @staticmethod
    def _collect_logs(computation) -> List[Tuple[bytes, List[bytes], bytes]]:
        logs = []
        for address, topics, data in computation.get_log_entries():
            logs.append((address, [_topic_bytes(t) for t in topics], bytes(data)))
        return logs

    def execute(
        self,
        sender: Address,
        to: Optional[Address],
        value: int,
        data: bytes,
        gas: int,
        gas_price: int,
        nonce: Optional[int] = None,
    ) -> EVMResult:
        """
        Execute a state-changing transaction.

        Args:
            sender: 20-byte sender address
            to: 20-byte recipient (None for contract creation)
            value: Wei value to send
            data: Call data, or init code for contract creation
            gas: Gas limit
            gas_price: Gas price in wei
            nonce: Expected sender nonce (defaults to the account nonce)

        Returns:
            EVMResult with execution details

        Raises:
            NonceError, IntrinsicGasError, InsufficientFundsError: the transaction
            is invalid and was not applied.
        """
        is_create = to is None
        state = self._state()

        account_nonce = state.get_nonce(sender)
        if nonce is not None and nonce != account_nonce:
            raise NonceError(f"Nonce mismatch for {to_checksum_address(sender)}: "
                             f"expected {account_nonce}, got {nonce}")

        base_gas = intrinsic_gas(data, is_create)
        if gas < base_gas:
            raise IntrinsicGasError(f"Gas limit {gas} below intrinsic gas {base_gas}")
        if gas > self.block_gas_limit:
            raise IntrinsicGasError(f"Gas limit {gas} exceeds block gas limit {self.block_gas_limit}")

        upfront_cost = gas * gas_price + value
        balance = state.get_balance(sender)
        if balance < upfront_cost:
            raise InsufficientFundsError(
                f"{to_checksum_address(sender)} has {balance} wei, needs {upfront_cost}"
            )

        state.delta_balance(sender, -gas * gas_price)
        state.increment_nonce(sender)

        computation = self._apply(
            state, sender, to, value, data, gas - base_gas, gas_price, account_nonce,
        )

        gas_remaining = computation.get_gas_remaining()
        gas_used = gas - gas_remaining
        refund = min(computation.get_gas_refund(), gas_used // MAX_REFUND_QUOTIENT)
        gas_used -= refund
        state.delta_balance(sender, (gas - gas_used) * gas_price)

        state.persist()
        self.state_root = state.state_root

        error = None
        if computation.is_error:
            error = str(computation.error) or type(computation.error).__name__
            logger.debug("Transaction from %s failed: %s", to_checksum_address(sender), error)

        created_address = None
        if is_create and not computation.is_error:
            created_address = computation.msg.storage_address

        return EVMResult(
            success=not computation.is_error,
            gas_used=gas_used,
            output=bytes(computation.output),
            logs=self._collect_logs(computation) if not computation.is_error else [],
            error=error,
            created_address=created_address,
        )

    def call(
        self,
        sender: Address,
        to: Address,
        data: bytes,
        value: int = 0,
        gas: int = 10_000_000,
    ) -> EVMResult:
        """
        Execute read-only call (eth_call).

        Runs against the pending block on a fresh state; nothing is persisted.
        """
        state = self._state()
        computation = self._apply(
            state, sender, to, value, data, gas, 0, state.get_nonce(sender),
        )
        error = None
        if computation.is_error:
            error = str(computation.error) or type(computation.error).__name__
        return EVMResult(
            success=not computation.is_error,
            gas_used=gas - computation.get_gas_remaining(),
            output=bytes(computation.output),
            logs=self._collect_logs(computation) if not computation.is_error else [],
            error=error,
        )
