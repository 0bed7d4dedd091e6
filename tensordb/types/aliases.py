"""
Type aliases for tensordb.

This module defines type aliases used throughout the library
for better type safety and code clarity.
"""

from typing import NewType, Tuple

# Core type aliases
Shape = Tuple[int, ...]
ByteSize = NewType('ByteSize', int)
