"""
Path expressions over FHIR-shaped records.

Modules of interest:
- parser: Tokenizer and recursive descent parser producing compiled paths.
- extractor: Collection-based traversal and result collapsing.
- validator: Syntax validation with advisory warnings.
"""

from .parser import CompiledPath, compile_path
from .extractor import evaluate_path, extract
from .validator import PathValidationResult, validate_path

__all__ = [
    "CompiledPath",
    "compile_path",
    "evaluate_path",
    "extract",
    "PathValidationResult",
    "validate_path",
]
