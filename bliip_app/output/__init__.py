"""
Output module.

Assembles prediction responses, normalizes public precision and encodes
JSON.
"""

from .assembler import OutputAssembler
from .serialization import to_json

__all__ = ["OutputAssembler", "to_json"]
