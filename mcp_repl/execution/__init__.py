"""
Execution dispatch building blocks: classification, temp artifacts and the
result envelope.
"""

from .artifacts import new_artifact_path, temp_source_file
from .classifier import COMMONJS_MARKERS, SourceKind, blank_comments_and_strings, classify_source
from .results import ExecutionResult, RawOutcome, build_result, elapsed_ms

__all__ = [
    "COMMONJS_MARKERS",
    "ExecutionResult",
    "RawOutcome",
    "SourceKind",
    "blank_comments_and_strings",
    "build_result",
    "classify_source",
    "elapsed_ms",
    "new_artifact_path",
    "temp_source_file",
]
