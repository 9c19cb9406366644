import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from hashrouter.ring.errors import DuplicateNodeError, EmptyRingError
from hashrouter.ring.hash_ring import HashRing
from hashrouter.ring.node import SimpleNode
from hashrouter.ring.synchronized import SynchronizedHashRing
from hashrouter.utils.rwlock import ReadWriteLock


@pytest.fixture
def shared_ring() -> SynchronizedHashRing[SimpleNode]:
    nodes = [SimpleNode(f"node-{i}") for i in range(3)]
    return SynchronizedHashRing(HashRing(nodes, replicas=20))


def test_delegates_to_wrapped_ring(shared_ring):
    plain = HashRing([SimpleNode(f"node-{i}") for i in range(3)], replicas=20)

    assert len(shared_ring) == 60
    assert "node-1" in shared_ring
    assert shared_ring.route("k") == plain.route("k")
    assert shared_ring.route_nodes("k", 2) == plain.route_nodes("k", 2)
    assert list(shared_ring) == list(plain)
    assert shared_ring.describe() == plain.describe()
    assert shared_ring.load_distribution() == plain.load_distribution()
    assert shared_ring.get_existing_replicas("node-0") == 20
    assert shared_ring.get_node("node-2") == SimpleNode("node-2")
    assert [n.key for n in shared_ring.nodes] == ["node-0", "node-1", "node-2"]


def test_load_distribution_with_custom_ring_size():
    positions = {"a-0": 100, "b-0": 200}
    shared = SynchronizedHashRing(
        HashRing(
            [SimpleNode("a"), SimpleNode("b")],
            1,
            lambda data: positions[data.decode("utf-8")],
        )
    )

    distribution = shared.load_distribution(ring_size=1000)

    assert distribution["a"] == pytest.approx(0.9)
    assert distribution["b"] == pytest.approx(0.1)


def test_errors_propagate_and_release_lock(shared_ring):
    with pytest.raises(DuplicateNodeError):
        shared_ring.add_node(SimpleNode("node-0"))

    # The write lock was released: reads still go through
    assert shared_ring.route("k") is not None

    for i in range(3):
        shared_ring.remove_node(f"node-{i}")
    with pytest.raises(EmptyRingError):
        _ = shared_ring.route("k")


def test_concurrent_routes_during_membership_changes(shared_ring):
    """Readers never observe a half-applied add or remove"""
    keys = [f"key_{i}" for i in range(200)]
    stop = threading.Event()
    valid = {f"node-{i}" for i in range(3)} | {"extra"}

    def reader() -> int:
        routed = 0
        while not stop.is_set():
            for key in keys:
                assert shared_ring.route(key).key in valid
                assert len(shared_ring) in (60, 80)
                routed += 1
        return routed

    def writer() -> None:
        try:
            for _ in range(50):
                shared_ring.add_node(SimpleNode("extra"))
                shared_ring.remove_node("extra")
        finally:
            stop.set()

    with ThreadPoolExecutor(max_workers=5) as pool:
        readers = [pool.submit(reader) for _ in range(4)]
        pool.submit(writer).result(timeout=30)
        totals = [f.result(timeout=30) for f in readers]

    assert all(total > 0 for total in totals)
    assert len(shared_ring) == 60


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    both_inside = threading.Barrier(2, timeout=5)

    def read() -> None:
        with lock.read_lock():
            _ = both_inside.wait()

    threads = [threading.Thread(target=read) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert not both_inside.broken


def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    written = threading.Event()

    def write() -> None:
        with lock.write_lock():
            written.set()

    lock.acquire_read()
    writer = threading.Thread(target=write)
    writer.start()

    assert not written.wait(timeout=0.2), "Writer entered while a reader held the lock"

    lock.release_read()
    assert written.wait(timeout=5)
    writer.join(timeout=5)


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order: list[str] = []

    lock.acquire_read()

    def write() -> None:
        with lock.write_lock():
            order.append("write")

    def read() -> None:
        with lock.read_lock():
            order.append("read")

    writer = threading.Thread(target=write)
    writer.start()
    # Wait until the writer is queued
    while True:
        with lock._cond:
            if lock._writers_waiting:
                break

    reader = threading.Thread(target=read)
    reader.start()

    lock.release_read()
    writer.join(timeout=5)
    reader.join(timeout=5)

    assert order == ["write", "read"]


def test_release_without_acquire():
    lock = ReadWriteLock()

    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
