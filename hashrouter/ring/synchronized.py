from collections.abc import Iterator
from typing import Generic

from .hash_ring import N, HashRing, VirtualNode
from .hashing import RING_BITS
from ..utils.rwlock import ReadWriteLock


class SynchronizedHashRing(Generic[N]):
    """
    Thread-safe facade over a HashRing.

    Routing and other reads run concurrently under a shared lock; add_node
    and remove_node hold the lock exclusively for their whole duration.
    """

    def __init__(self, ring: HashRing[N]):
        self._ring: HashRing[N] = ring
        self._lock: ReadWriteLock = ReadWriteLock()

    def add_node(self, node: N, replicas: int | None = None) -> None:
        with self._lock.write_lock():
            self._ring.add_node(node, replicas)

    def remove_node(self, node: N | str) -> None:
        with self._lock.write_lock():
            self._ring.remove_node(node)

    def route(self, key: str) -> N:
        with self._lock.read_lock():
            return self._ring.route(key)

    def route_nodes(self, key: str, count: int) -> list[N]:
        with self._lock.read_lock():
            return self._ring.route_nodes(key, count)

    def get_node(self, node_key: str) -> N | None:
        with self._lock.read_lock():
            return self._ring.get_node(node_key)

    def get_existing_replicas(self, node: N | str) -> int:
        with self._lock.read_lock():
            return self._ring.get_existing_replicas(node)

    @property
    def nodes(self) -> list[N]:
        with self._lock.read_lock():
            return self._ring.nodes

    def virtual_nodes(self) -> list[VirtualNode]:
        """Snapshot of the virtual nodes in ring order"""
        with self._lock.read_lock():
            return list(self._ring.virtual_nodes())

    def load_distribution(self, ring_size: int = 2**RING_BITS) -> dict[str, float]:
        with self._lock.read_lock():
            return self._ring.load_distribution(ring_size)

    def describe(self) -> str:
        with self._lock.read_lock():
            return self._ring.describe()

    def __iter__(self) -> Iterator[VirtualNode]:
        return iter(self.virtual_nodes())

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._ring)

    def __contains__(self, node: object) -> bool:
        with self._lock.read_lock():
            return node in self._ring

    def __str__(self) -> str:
        return self.describe()
