class HashRingError(Exception):
    """Base class for all hash ring errors"""


class EmptyRingError(HashRingError):
    """Raised when routing on a ring with no registered nodes"""

    def __init__(self):
        super().__init__("Cannot route on an empty hash ring")


class NodeNotFoundError(HashRingError):
    """Raised when removing a node that owns no virtual nodes"""

    def __init__(self, node_key: str):
        self.node_key: str = node_key
        super().__init__(f"Node not found in ring: {node_key}")


class DuplicateNodeError(HashRingError):
    """Raised when adding a node whose key is already registered"""

    def __init__(self, node_key: str):
        self.node_key: str = node_key
        super().__init__(f"Node already registered: {node_key}")


class InvalidReplicaCountError(HashRingError, ValueError):
    """Raised for a non-positive virtual node count"""

    def __init__(self, replicas: object):
        self.replicas: object = replicas
        super().__init__(f"Replica count must be a positive integer, got {replicas!r}")
