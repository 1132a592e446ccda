"""Deta Base compatible client backed by MongoDB."""

from .async_base import AsyncBase, AsyncDeta
from .base import Base, Deta
from .query_compiler import compile_query
from .update_compiler import Util, compile_update

__version__ = "0.1.0"

__all__ = [
    "AsyncBase",
    "AsyncDeta",
    "Base",
    "Deta",
    "Util",
    "compile_query",
    "compile_update",
]
