"""
In-process EVM support for contractcase.

- executor: py-evm backed development chain (Shanghai rules)
- bytecode: assembler helpers for hand-written contract bindings
"""

from .executor import EVMExecutor, EVMResult, MinedBlock, compute_create_address, intrinsic_gas

__all__ = [
    'EVMExecutor',
    'EVMResult',
    'MinedBlock',
    'compute_create_address',
    'intrinsic_gas',
]
