"""Genie Foundry builder -- model-backed code generation.

Key pieces:
    codegen_targets   - Ordered catalog of files for the full app
    validate_content  - Shallow JSON / bracket-balance check
    CodegenEngine     - Generate, validate, retry once, write
"""

from .codegen import CodegenEngine, CodegenError, GeneratedFile
from .targets import CodegenTarget, codegen_targets
from .validator import validate_content

__all__ = [
    "CodegenEngine",
    "CodegenError",
    "GeneratedFile",
    "CodegenTarget",
    "codegen_targets",
    "validate_content",
]
