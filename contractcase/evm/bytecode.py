"""
EVM Bytecode Assembly Helpers

Builds contract bytecode from py-evm opcode values. Used for the bundled
contract bindings, which are written directly in EVM assembly.
"""

from typing import Sequence, Tuple, Union

from eth.vm import opcode_values as op

Word = Union[int, bytes]


def push(value: Word, size: int = 0) -> bytes:
    """
    Encode a PUSHn instruction.

    Integers use the smallest width that fits (at least one byte) unless
    *size* is given. Bytes are pushed verbatim, so their length picks PUSHn.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValueError("Cannot push a negative value")
        width = size or max(1, (value.bit_length() + 7) // 8)
        data = value.to_bytes(width, 'big')
    else:
        data = bytes(value)
        if size and len(data) != size:
            raise ValueError(f"Expected {size} bytes, got {len(data)}")
    if not 1 <= len(data) <= 32:
        raise ValueError(f"PUSH operand must be 1-32 bytes, got {len(data)}")
    return bytes([op.PUSH1 + len(data) - 1]) + data


def assemble(*parts: Union[int, bytes]) -> bytes:
    """Concatenate opcodes (ints) and pre-encoded instructions (bytes)."""
    out = bytearray()
    for part in parts:
        if isinstance(part, int):
            out.append(part)
        else:
            out.extend(part)
    return bytes(out)


def left_align(value: bytes) -> bytes:
    """Right-pad *value* to a 32 byte word, as bytesN literals are stored."""
    if len(value) > 32:
        raise ValueError("Value longer than one word")
    return value.ljust(32, b'\x00')


def return_words(words: Sequence[Word]) -> bytes:
    """Store each word at consecutive 32 byte slots of memory and RETURN them."""
    code = bytearray()
    for index, word in enumerate(words):
        code += push(word) + push(index * 32) + bytes([op.MSTORE])
    code += assemble(push(len(words) * 32), push(0), op.RETURN)
    return bytes(code)


def revert_empty() -> bytes:
    return assemble(push(0), op.DUP1, op.REVERT)


def dispatch(routes: Sequence[Tuple[bytes, bytes]]) -> bytes:
    """
    Build a selector dispatcher.

    Each route is (4-byte selector, body). Calldata whose selector matches no
    route reverts with empty data. Jump targets are PUSH2 wide so the header
    length does not depend on them.
    """
    # selector = calldata[0:4]
    prologue = assemble(push(0), op.CALLDATALOAD, push(0xe0), op.SHR)
    route_size = 1 + 5 + 1 + 3 + 1  # DUP1 PUSH4 EQ PUSH2 JUMPI
    fallback = revert_empty()

    offset = len(prologue) + route_size * len(routes) + len(fallback)
    checks = bytearray()
    bodies = bytearray()
    for selector, body in routes:
        if len(selector) != 4:
            raise ValueError("Selectors are 4 bytes")
        checks += assemble(op.DUP1, push(selector), op.EQ, push(offset, 2), op.JUMPI)
        block = bytes([op.JUMPDEST]) + body
        bodies += block
        offset += len(block)
    return prologue + bytes(checks) + fallback + bytes(bodies)


def deployment_code(runtime: bytes) -> bytes:
    """
    Prefix *runtime* with a constructor that copies it to memory and returns it.
    """
    def prologue(offset: int) -> bytes:
        # PUSH2 size, DUP1, PUSH2 offset, PUSH1 0, CODECOPY, PUSH1 0, RETURN
        return assemble(
            push(len(runtime), 2),
            op.DUP1,
            push(offset, 2),
            push(0),
            op.CODECOPY,
            push(0),
            op.RETURN,
        )

    # operand widths are fixed, so the size does not depend on the offset
    header = prologue(len(prologue(0)))
    return header + runtime
