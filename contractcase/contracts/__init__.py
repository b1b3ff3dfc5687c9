"""
Contract bindings for contractcase.
"""

from .binding import ContractBinding, ContractFunction, parse_abi
from .assembly_returns import AssemblyReturns, AssemblyReturnsResult

__all__ = [
    'ContractBinding',
    'ContractFunction',
    'parse_abi',
    'AssemblyReturns',
    'AssemblyReturnsResult',
]
