"""
AssemblyReturns binding.

Equivalent Solidity:

    contract AssemblyReturns {
        function f() public pure returns (uint a, bytes32 b, bytes32 c, bool d, address e) {
            assembly {
                a := 2
                b := "abc"
                c := "def"
                d := 1
                e := 0x1212121212121212121212121212121212121212
            }
        }
    }
"""

from typing import NamedTuple

from eth_utils import function_signature_to_4byte_selector

from ..evm.bytecode import deployment_code, dispatch, left_align, return_words
from .binding import ContractBinding

RETURN_A = 2
RETURN_B = left_align(b"abc")
RETURN_C = left_align(b"def")
RETURN_D = True
RETURN_E = "0x1212121212121212121212121212121212121212"


class AssemblyReturnsResult(NamedTuple):
    a: int
    b: bytes
    c: bytes
    d: bool
    e: str


RUNTIME = dispatch([
    (
        function_signature_to_4byte_selector("f()"),
        return_words([
            RETURN_A,
            RETURN_B,
            RETURN_C,
            int(RETURN_D),
            bytes.fromhex(RETURN_E[2:]),
        ]),
    ),
])


class AssemblyReturns(ContractBinding):

    ABI = [
        {
            "type": "function",
            "name": "f",
            "inputs": [],
            "outputs": [
                {"name": "a", "type": "uint256"},
                {"name": "b", "type": "bytes32"},
                {"name": "c", "type": "bytes32"},
                {"name": "d", "type": "bool"},
                {"name": "e", "type": "address"},
            ],
            "stateMutability": "pure",
        },
    ]
    BINARY = deployment_code(RUNTIME)

    def f(self) -> AssemblyReturnsResult:
        return AssemblyReturnsResult(*self.call_function("f"))
