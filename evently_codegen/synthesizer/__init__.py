"""
Code synthesis: schema trees to Python dataclass and enum modules.
"""

from .ir import GeneratedEnum, GeneratedField, GeneratedStruct, GenerateResult
from .names import NameRegistry
from .synthesizer import CodeSynthesizer, assemble_imports

__all__ = [
    "CodeSynthesizer",
    "GenerateResult",
    "GeneratedEnum",
    "GeneratedField",
    "GeneratedStruct",
    "NameRegistry",
    "assemble_imports",
]
