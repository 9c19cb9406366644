from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Node(Protocol):
    """Anything that can be placed on the ring.

    The key must be stable for the lifetime of the registration and unique
    among the nodes currently on the ring.
    """

    @property
    def key(self) -> str: ...


@dataclass(frozen=True)
class SimpleNode:
    """Node identified only by its key string"""

    key: str

    def __str__(self) -> str:
        return self.key
