"""
Registered contract verification cases, by name.
"""

from typing import Dict, Type

from ..case import ContractCase
from .assembly_returns import AssemblyReturnsCase

CASES: Dict[str, Type[ContractCase]] = {
    case.name: case
    for case in (
        AssemblyReturnsCase,
    )
}

__all__ = ['CASES', 'AssemblyReturnsCase']
