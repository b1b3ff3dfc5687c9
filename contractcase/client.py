"""
Blockchain Client

Web3-style client over the in-process EVM: funded development accounts,
transaction submission with receipts, read-only calls and state queries.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError as ABIDecodingError
from eth_keys import keys
from eth_utils import (
    ValidationError,
    decode_hex,
    encode_hex,
    keccak,
    to_canonical_address,
    to_checksum_address,
)
import rlp

from .config import ChainConfig
from .constants import ERROR_STRING_SELECTOR
from .evm import EVMExecutor, EVMResult
from .exceptions import ConfigurationError, ContractCallError, ReceiptTimeoutError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Log:
    address: str
    topics: List[str]
    data: str
    log_index: int


@dataclass(frozen=True)
class TransactionReceipt:
    """Confirmation record of a mined transaction."""
    transaction_hash: str
    block_number: int
    block_hash: str
    from_address: str
    to_address: Optional[str]
    contract_address: Optional[str]
    gas_used: int
    cumulative_gas_used: int
    status: int
    logs: List[Log] = field(default_factory=list)
    revert_reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transactionHash': self.transaction_hash,
            'blockNumber': self.block_number,
            'blockHash': self.block_hash,
            'from': self.from_address,
            'to': self.to_address,
            'contractAddress': self.contract_address,
            'gasUsed': self.gas_used,
            'cumulativeGasUsed': self.cumulative_gas_used,
            'status': self.status,
            'logs': [
                {'address': log.address, 'topics': log.topics, 'data': log.data, 'logIndex': log.log_index}
                for log in self.logs
            ],
        }


def derive_account_key(seed: str, index: int) -> keys.PrivateKey:
    """Deterministic development key: keccak256(seed || index)."""
    return keys.PrivateKey(keccak(seed.encode('utf-8') + index.to_bytes(4, 'big')))


def decode_revert_reason(output: bytes) -> str:
    """Extract the message of an Error(string) revert, or '' if there is none."""
    if not output.startswith(ERROR_STRING_SELECTOR):
        return ""
    try:
        (reason,) = decode(['string'], output[4:])
    except ABIDecodingError:
        return ""
    return reason


class ChainClient:
    """
    Client for a single-node development chain.

    Every transaction is mined immediately, so receipts are available as soon
    as send_transaction returns; wait_for_receipt still polls a bounded number
    of times like a networked client would.
    """

    def __init__(self, config: Optional[ChainConfig] = None, executor: Optional[EVMExecutor] = None):
        self.config = config or ChainConfig()
        self.executor = executor or EVMExecutor(
            chain_id=self.config.chain_id,
            block_gas_limit=self.config.block_gas_limit,
        )
        self._receipts: Dict[str, TransactionReceipt] = {}
        self._keys: List[keys.PrivateKey] = []

        if self.config.deployer_key:
            try:
                self._keys.append(keys.PrivateKey(decode_hex(self.config.deployer_key)))
            except (ValueError, ValidationError) as e:
                raise ConfigurationError(f"Invalid deployer key: {e}") from e
        for index in range(self.config.account_count):
            self._keys.append(derive_account_key(self.config.account_seed, index))

        for key in self._keys:
            self.executor.fund(key.public_key.to_canonical_address(), self.config.initial_balance)

    # --- accounts ---------------------------------------------------------

    @property
    def accounts(self) -> List[str]:
        return [key.public_key.to_checksum_address() for key in self._keys]

    @property
    def default_account(self) -> str:
        return self.accounts[0]

    def get_balance(self, address: str) -> int:
        return self.executor.get_balance(to_canonical_address(address))

    def get_nonce(self, address: str) -> int:
        return self.executor.get_nonce(to_canonical_address(address))

    def get_code(self, address: str) -> bytes:
        return self.executor.get_code(to_canonical_address(address))

    @property
    def block_number(self) -> int:
        return self.executor.block_number

    # --- transactions -----------------------------------------------------

    @staticmethod
    def _transaction_hash(nonce: int, gas_price: int, gas: int, to: Optional[bytes],
                          value: int, data: bytes, sender: bytes, chain_id: int) -> bytes:
        return keccak(rlp.encode([nonce, gas_price, gas, to or b'', value, data, sender, chain_id]))

    def send_transaction(
        self,
        data: bytes,
        to: Optional[str] = None,
        sender: Optional[str] = None,
        value: int = 0,
        gas: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> str:
        """
        Submit and mine a transaction. Returns the transaction hash (hex).

        A transaction that executes and fails still gets mined and produces a
        receipt with status 0. Invalid transactions raise TransactionError.
        """
        sender_address = to_canonical_address(sender or self.default_account)
        to_address = to_canonical_address(to) if to else None
        gas = gas or self.config.default_gas
        gas_price = self.config.gas_price if gas_price is None else gas_price
        nonce = self.executor.get_nonce(sender_address)

        result = self.executor.execute(
            sender=sender_address,
            to=to_address,
            value=value,
            data=data,
            gas=gas,
            gas_price=gas_price,
            nonce=nonce,
        )

        tx_hash = self._transaction_hash(
            nonce, gas_price, gas, to_address, value, data, sender_address, self.config.chain_id,
        )
        block = self.executor.mine(tx_hash)
        receipt = self._build_receipt(tx_hash, block, sender_address, to_address, result)
        self._receipts[receipt.transaction_hash] = receipt

        logger.debug(
            "Mined %s in block %d (status %d, gas %d)",
            receipt.transaction_hash, receipt.block_number, receipt.status, receipt.gas_used,
        )
        return receipt.transaction_hash

    @staticmethod
    def _build_receipt(tx_hash: bytes, block, sender: bytes, to: Optional[bytes],
                       result: EVMResult) -> TransactionReceipt:
        logs = [
            Log(
                address=to_checksum_address(address),
                topics=[encode_hex(topic) for topic in topics],
                data=encode_hex(data),
                log_index=index,
            )
            for index, (address, topics, data) in enumerate(result.logs)
        ]
        return TransactionReceipt(
            transaction_hash=encode_hex(tx_hash),
            block_number=block.number,
            block_hash=encode_hex(block.hash),
            from_address=to_checksum_address(sender),
            to_address=to_checksum_address(to) if to else None,
            contract_address=to_checksum_address(result.created_address) if result.created_address else None,
            gas_used=result.gas_used,
            # one transaction per block
            cumulative_gas_used=result.gas_used,
            status=1 if result.success else 0,
            logs=logs,
            revert_reason=decode_revert_reason(result.output) if not result.success else "",
        )

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        return self._receipts.get(tx_hash.lower())

    def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """
        Poll for a receipt.

        Raises:
            ReceiptTimeoutError: no receipt after the configured attempts
        """
        for _ in range(self.config.receipt_attempts):
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if self.config.receipt_interval:
                time.sleep(self.config.receipt_interval)
        raise ReceiptTimeoutError(
            f"No receipt for {tx_hash} after {self.config.receipt_attempts} attempts"
        )

    # --- calls ------------------------------------------------------------

    def call(self, to: str, data: bytes, sender: Optional[str] = None, gas: Optional[int] = None) -> bytes:
        """
        Read-only call against the latest state.

        Raises:
            ContractCallError: the call reverted or ran out of gas
        """
        result = self.executor.call(
            sender=to_canonical_address(sender or self.default_account),
            to=to_canonical_address(to),
            data=data,
            gas=gas or self.config.default_gas,
        )
        if not result.success:
            reason = decode_revert_reason(result.output)
            detail = f": {reason}" if reason else f" ({result.error})"
            raise ContractCallError(f"Call to {to} failed{detail}", reason=reason, output=result.output)
        return result.output
