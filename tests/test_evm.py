"""
contractcase EVM Test Suite

Covers:
- bytecode assembly helpers
- intrinsic gas and CREATE address derivation
- EVMExecutor deploy / call / transfer on py-evm

Run with:
    pytest tests/test_evm.py -v
"""

import pytest
from eth.vm import opcode_values as op
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector, keccak, to_canonical_address
import rlp

from contractcase.contracts.assembly_returns import RUNTIME, AssemblyReturns
from contractcase.evm import EVMExecutor, compute_create_address, intrinsic_gas
from contractcase.evm.bytecode import (
    assemble,
    deployment_code,
    dispatch,
    left_align,
    push,
    return_words,
)
from contractcase.exceptions import InsufficientFundsError, IntrinsicGasError, NonceError

SENDER = to_canonical_address("0x1234567890123456789012345678901234567890")
OTHER = to_canonical_address("0x00000000000000000000000000000000000000aa")
F_SELECTOR = function_signature_to_4byte_selector("f()")


@pytest.fixture
def evm():
    executor = EVMExecutor()
    executor.fund(SENDER, 10**20)
    return executor


@pytest.fixture
def deployed(evm):
    result = evm.execute(
        sender=SENDER, to=None, value=0, data=AssemblyReturns.BINARY,
        gas=1_000_000, gas_price=1_000_000_000,
    )
    assert result.success, result.error
    return result.created_address


# =============================================================================
# Bytecode helpers
# =============================================================================


class TestPush:

    def test_zero_uses_push1(self):
        assert push(0) == bytes([op.PUSH1, 0x00])

    def test_minimal_width(self):
        assert push(0x1234) == bytes([op.PUSH2, 0x12, 0x34])

    def test_fixed_width(self):
        assert push(0x15, 2) == bytes([op.PUSH2, 0x00, 0x15])

    def test_word(self):
        encoded = push(b'\xff' * 32)
        assert encoded[0] == op.PUSH32
        assert len(encoded) == 33

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            push(-1)

    def test_rejects_oversized(self):
        with pytest.raises(ValueError):
            push(b'\x01' * 33)

    def test_rejects_empty_bytes(self):
        with pytest.raises(ValueError):
            push(b'')


class TestAssembly:

    def test_assemble_mixes_opcodes_and_bytes(self):
        assert assemble(push(1), op.DUP1, op.ADD) == bytes([op.PUSH1, 1, op.DUP1, op.ADD])

    def test_left_align(self):
        assert left_align(b"abc") == b"abc" + b"\x00" * 29
        with pytest.raises(ValueError):
            left_align(b"\x00" * 33)

    def test_return_words_layout(self):
        code = return_words([7])
        assert code == assemble(push(7), push(0), op.MSTORE, push(32), push(0), op.RETURN)

    def test_deployment_prologue(self):
        runtime = bytes([op.STOP])
        code = deployment_code(runtime)
        assert code[:13] == bytes([
            op.PUSH2, 0x00, 0x01,
            op.DUP1,
            op.PUSH2, 0x00, 0x0d,
            op.PUSH1, 0x00,
            op.CODECOPY,
            op.PUSH1, 0x00,
            op.RETURN,
        ])
        assert code[13:] == runtime

    def test_deployment_offset_matches_prologue_length(self):
        runtime = bytes([op.JUMPDEST]) * 300
        code = deployment_code(runtime)
        assert int.from_bytes(code[1:3], "big") == 300
        assert int.from_bytes(code[5:7], "big") == len(code) - len(runtime)
        assert code.endswith(runtime)

    def test_dispatch_jump_target_is_jumpdest(self):
        code = dispatch([(F_SELECTOR, bytes([op.STOP]))])
        # selector load (6) + DUP1 PUSH4 EQ PUSH2 JUMPI (11) + revert (4)
        target = int.from_bytes(code[14:16], 'big')
        assert target == 21
        assert code[target] == op.JUMPDEST
        assert code[8:12] == F_SELECTOR

    def test_dispatch_rejects_bad_selector(self):
        with pytest.raises(ValueError):
            dispatch([(b'\x01\x02', b'')])


# =============================================================================
# Gas and addresses
# =============================================================================


class TestIntrinsicGas:

    def test_plain_transfer(self):
        assert intrinsic_gas(b'', is_create=False) == 21_000

    def test_data_bytes(self):
        assert intrinsic_gas(b'\x00\x01', is_create=False) == 21_000 + 4 + 16

    def test_create_adds_initcode_words(self):
        data = b'\x01' * 33
        assert intrinsic_gas(data, is_create=True) == 21_000 + 33 * 16 + 32_000 + 2 * 2


class TestCreateAddress:

    def test_matches_rlp_rule(self):
        expected = keccak(rlp.encode([SENDER, 0]))[12:]
        assert compute_create_address(SENDER, 0) == expected

    def test_depends_on_nonce(self):
        assert compute_create_address(SENDER, 0) != compute_create_address(SENDER, 1)


# =============================================================================
# Executor
# =============================================================================


class TestExecutorDeploy:

    def test_deploy_creates_runtime_code(self, evm, deployed):
        assert deployed == compute_create_address(SENDER, 0)
        assert evm.get_code(deployed) == RUNTIME

    def test_deploy_increments_nonce(self, evm, deployed):
        assert evm.get_nonce(SENDER) == 1

    def test_deploy_charges_gas(self, evm):
        before = evm.get_balance(SENDER)
        result = evm.execute(
            sender=SENDER, to=None, value=0, data=AssemblyReturns.BINARY,
            gas=1_000_000, gas_price=1_000_000_000,
        )
        assert result.gas_used > intrinsic_gas(AssemblyReturns.BINARY, is_create=True)
        assert evm.get_balance(SENDER) == before - result.gas_used * 1_000_000_000

    def test_reverting_initcode_fails(self, evm):
        result = evm.execute(
            sender=SENDER, to=None, value=0, data=assemble(push(0), op.DUP1, op.REVERT),
            gas=100_000, gas_price=1,
        )
        assert not result.success
        assert result.created_address is None
        # nonce is consumed even by a failed transaction
        assert evm.get_nonce(SENDER) == 1


class TestExecutorCall:

    def test_call_returns_five_words(self, evm, deployed):
        result = evm.call(sender=SENDER, to=deployed, data=F_SELECTOR)
        assert result.success
        assert len(result.output) == 5 * 32
        a, b, c, d, e = decode(['uint256', 'bytes32', 'bytes32', 'bool', 'address'], result.output)
        assert a == 2
        assert b == left_align(b"abc")
        assert c == left_align(b"def")
        assert d is True
        assert e == "0x1212121212121212121212121212121212121212"

    def test_unknown_selector_reverts(self, evm, deployed):
        result = evm.call(sender=SENDER, to=deployed, data=b'\xde\xad\xbe\xef')
        assert not result.success
        assert result.output == b''

    def test_call_persists_nothing(self, evm, deployed):
        root = evm.state_root
        nonce = evm.get_nonce(SENDER)
        evm.call(sender=SENDER, to=deployed, data=F_SELECTOR)
        assert evm.state_root == root
        assert evm.get_nonce(SENDER) == nonce


class TestExecutorTransactions:

    def test_value_transfer(self, evm):
        before = evm.get_balance(SENDER)
        result = evm.execute(
            sender=SENDER, to=OTHER, value=12345, data=b'', gas=21_000, gas_price=2,
        )
        assert result.success
        assert result.gas_used == 21_000
        assert evm.get_balance(OTHER) == 12345
        assert evm.get_balance(SENDER) == before - 12345 - 21_000 * 2

    def test_insufficient_funds(self, evm):
        poor = to_canonical_address("0x" + "99" * 20)
        with pytest.raises(InsufficientFundsError):
            evm.execute(sender=poor, to=OTHER, value=1, data=b'', gas=21_000, gas_price=1)

    def test_gas_below_intrinsic(self, evm):
        with pytest.raises(IntrinsicGasError):
            evm.execute(
                sender=SENDER, to=None, value=0, data=AssemblyReturns.BINARY,
                gas=21_000, gas_price=1,
            )

    def test_gas_above_block_limit(self, evm):
        with pytest.raises(IntrinsicGasError):
            evm.execute(
                sender=SENDER, to=OTHER, value=0, data=b'',
                gas=evm.block_gas_limit + 1, gas_price=0,
            )

    def test_nonce_mismatch(self, evm):
        with pytest.raises(NonceError):
            evm.execute(sender=SENDER, to=OTHER, value=0, data=b'', gas=21_000, gas_price=1, nonce=5)

    def test_rejected_transaction_changes_nothing(self, evm):
        root = evm.state_root
        with pytest.raises(NonceError):
            evm.execute(sender=SENDER, to=OTHER, value=0, data=b'', gas=21_000, gas_price=1, nonce=5)
        assert evm.state_root == root


class TestExecutorBlocks:

    def test_genesis(self):
        evm = EVMExecutor()
        assert evm.block_number == 0
        assert len(evm.blocks) == 1

    def test_mine_links_parent(self, evm):
        genesis = evm.head
        block = evm.mine(b'\x01' * 32)
        assert block.number == 1
        assert block.parent_hash == genesis.hash
        assert evm.block_number == 1
        assert evm.mine(b'\x02' * 32).hash != block.hash

    def test_blockhash_sees_mined_blocks(self, evm):
        code = deployment_code(assemble(
            push(1), op.BLOCKHASH, push(0), op.MSTORE, push(32), push(0), op.RETURN,
        ))
        result = evm.execute(sender=SENDER, to=None, value=0, data=code, gas=1_000_000, gas_price=1)
        evm.mine(b'\x03' * 32)
        output = evm.call(sender=SENDER, to=result.created_address, data=b'').output
        assert output == evm.blocks[1].hash
