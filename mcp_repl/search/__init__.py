"""
Code search: the index contract and the bundled lexical index.
"""

from .base import CodeStructure, Parameter, SearchHit, SearchIndex
from .lexical import LexicalCodeIndex, chunk_source, tokenize

__all__ = [
    "CodeStructure",
    "LexicalCodeIndex",
    "Parameter",
    "SearchHit",
    "SearchIndex",
    "chunk_source",
    "tokenize",
]
