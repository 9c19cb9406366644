"""
Consistent hash ring with virtual nodes.

Each physical node is hashed onto the ring `replicas` times, using the
derived keys "<node key>-0" ... "<node key>-<replicas - 1>". A key is routed
to the owner of the first virtual node at or after the key's own position,
wrapping to the lowest position past the end of the ring.

Virtual nodes are kept as a sorted list of (position, node_key) pairs. When
two different nodes hash to the same position both entries are kept and
ordered by node key, so the lexicographically smaller key wins the position
and routing stays reproducible. The other entry is shadowed: no key is ever
routed to it while the winner is on the ring, so each routable position has
exactly one owner. It takes over the position once the winner is removed.

Adding a node whose key is already on the ring is rejected with
DuplicateNodeError; it never replaces the existing node. Keys are encoded as
UTF-8 with surrogatepass, so any Python str can be routed.
"""

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import (
    DuplicateNodeError,
    EmptyRingError,
    InvalidReplicaCountError,
    NodeNotFoundError,
)
from .hashing import RING_BITS, HashFunction, get_hash_function, md5_hash
from .node import Node
from ..utils.config import RingConfig, get_config
from ..utils.logger import RingLogger

DEFAULT_REPLICAS = 10

N = TypeVar("N", bound=Node)


@dataclass(frozen=True, order=True)
class VirtualNode:
    """A single position on the ring owned by a physical node"""

    position: int
    node_key: str


def _check_replicas(replicas: object) -> int:
    if isinstance(replicas, bool) or not isinstance(replicas, int) or replicas < 1:
        raise InvalidReplicaCountError(replicas)
    return replicas


def _key_of(node: object) -> str:
    if not isinstance(node, Node):
        raise TypeError(f"Expected an object with a 'key' attribute, got {node!r}")
    key = node.key
    if not isinstance(key, str):
        raise TypeError(f"Node key must be a string, got {key!r}")
    return key


class HashRing(Generic[N]):
    """Routes string keys onto a changing set of nodes"""

    def __init__(
        self,
        nodes: Iterable[N] = (),
        replicas: int = DEFAULT_REPLICAS,
        hash_function: HashFunction = md5_hash,
        logger: RingLogger | None = None,
    ):
        self.replicas: int = _check_replicas(replicas)
        self.hash_function: HashFunction = hash_function
        self.logger: RingLogger | None = logger

        # Sorted (position, node_key) pairs; strictly increasing
        self._entries: list[tuple[int, str]] = []
        # node_key -> node, in registration order
        self._nodes: dict[str, N] = {}
        # node_key -> positions owned by that node
        self._positions: dict[str, list[int]] = {}

        for node in nodes:
            self.add_node(node)

    @classmethod
    def from_config(
        cls,
        nodes: Iterable[N] = (),
        config: RingConfig | None = None,
        name: str = "ring",
    ) -> "HashRing[N]":
        """Build a ring using replicas, hash function and logging from config"""
        config = config or get_config()
        config.validate()

        return cls(
            nodes,
            replicas=config.replicas_per_node,
            hash_function=get_hash_function(config.hash_function),
            logger=RingLogger(name, config.log_level, config.log_dir),
        )

    def _hash(self, key: str) -> int:
        """Hash a key to a position on the ring"""
        return self.hash_function(key.encode("utf-8", "surrogatepass"))

    def _successor_index(self, position: int) -> int:
        """Index of the first entry at or after position, wrapping to 0"""
        # (position,) sorts before every (position, node_key)
        idx = bisect.bisect_left(self._entries, (position,))
        if idx == len(self._entries):
            idx = 0
        return idx

    def add_node(self, node: N, replicas: int | None = None) -> None:
        """Add a node with `replicas` virtual nodes (ring default if None)"""
        replicas = _check_replicas(self.replicas if replicas is None else replicas)
        node_key = _key_of(node)

        if node_key in self._nodes:
            raise DuplicateNodeError(node_key)

        # Compute every position before touching the ring; a node whose own
        # virtual keys collide keeps that position once
        positions = sorted({self._hash(f"{node_key}-{i}") for i in range(replicas)})

        for position in positions:
            bisect.insort(self._entries, (position, node_key))

        self._nodes[node_key] = node
        self._positions[node_key] = positions

        if self.logger:
            self.logger.info(
                f"Added node {node_key} with {len(positions)} virtual nodes "
                f"(ring size {len(self._entries)})"
            )

    def remove_node(self, node: N | str) -> None:
        """Remove a node (or node key) and all of its virtual nodes"""
        node_key = node if isinstance(node, str) else _key_of(node)

        positions = self._positions.get(node_key)
        if not positions:
            raise NodeNotFoundError(node_key)

        for position in positions:
            idx = bisect.bisect_left(self._entries, (position, node_key))
            del self._entries[idx]

        del self._positions[node_key]
        del self._nodes[node_key]

        if self.logger:
            self.logger.info(
                f"Removed node {node_key} ({len(positions)} virtual nodes, "
                f"ring size {len(self._entries)})"
            )

    def route(self, key: str) -> N:
        """Get the node responsible for a key"""
        if not self._entries:
            raise EmptyRingError()

        position = self._hash(key)
        _, node_key = self._entries[self._successor_index(position)]

        if self.logger:
            self.logger.debug(f"Routed {key} (position {position}) to {node_key}")

        return self._nodes[node_key]

    def route_nodes(self, key: str, count: int) -> list[N]:
        """
        Get up to `count` distinct nodes for a key, walking clockwise.
        The first entry is always route(key).
        """
        if not self._entries:
            raise EmptyRingError()
        if count <= 0:
            return []

        idx = self._successor_index(self._hash(key))

        result: list[N] = []
        seen: set[str] = set()

        for offset in range(len(self._entries)):
            _, node_key = self._entries[(idx + offset) % len(self._entries)]
            if node_key not in seen:
                seen.add(node_key)
                result.append(self._nodes[node_key])

                if len(result) == count:
                    break

        return result

    def get_node(self, node_key: str) -> N | None:
        """Get a registered node by its key"""
        return self._nodes.get(node_key)

    def get_existing_replicas(self, node: N | str) -> int:
        """Number of virtual nodes currently owned by a node"""
        node_key = node if isinstance(node, str) else _key_of(node)
        return len(self._positions.get(node_key, ()))

    @property
    def nodes(self) -> list[N]:
        """All registered nodes in registration order"""
        return list(self._nodes.values())

    def virtual_nodes(self) -> Iterator[VirtualNode]:
        """Iterate over virtual nodes in ring order"""
        for position, node_key in self._entries:
            yield VirtualNode(position, node_key)

    def load_distribution(self, ring_size: int = 2**RING_BITS) -> dict[str, float]:
        """
        Fraction of the position space each node is responsible for.

        A virtual node owns the arc from its predecessor (exclusive) up to
        its own position. Values sum to 1.0 for a non-empty ring.
        """
        if not self._entries:
            return {}

        shares: dict[str, int] = {node_key: 0 for node_key in self._nodes}
        first_position = self._entries[0][0]
        last_position = self._entries[-1][0]

        for i, (position, node_key) in enumerate(self._entries):
            if i == 0:
                if first_position == last_position:
                    arc = ring_size
                else:
                    arc = (position - last_position) % ring_size
            else:
                arc = position - self._entries[i - 1][0]
            shares[node_key] += arc

        return {node_key: arc / ring_size for node_key, arc in shares.items()}

    def describe(self) -> str:
        """Multi-line listing of the ring in position order"""
        if not self._entries:
            return "Empty hash ring"

        lines = [
            f"Hash ring with {len(self._nodes)} nodes, "
            f"{len(self._entries)} virtual nodes:"
        ]
        for position, node_key in self._entries:
            lines.append(f"  {position:>10} -> {node_key}")

        return "\n".join(lines)

    def __iter__(self) -> Iterator[VirtualNode]:
        return self.virtual_nodes()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node: object) -> bool:
        if isinstance(node, str):
            return node in self._nodes
        if isinstance(node, Node):
            return node.key in self._nodes
        return False

    def __str__(self) -> str:
        return self.describe()
