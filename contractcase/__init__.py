"""
contractcase

Data-driven smart contract verification cases on an in-process EVM.

Core imports are lazily loaded; for direct access import from submodules:

    from contractcase.client import ChainClient
    from contractcase.contracts import AssemblyReturns
    from contractcase.case import ContractCase
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy module loading keeps `import contractcase` free of py-evm startup cost."""
    if name == 'ChainClient':
        from .client import ChainClient
        return ChainClient
    elif name == 'ContractCase':
        from .case import ContractCase
        return ContractCase
    elif name == 'run_cases':
        from .runner import run_cases
        return run_cases
    raise AttributeError(f"module 'contractcase' has no attribute {name!r}")

__all__ = ['ChainClient', 'ContractCase', 'run_cases']
