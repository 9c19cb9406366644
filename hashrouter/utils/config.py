import os
from dataclasses import dataclass
import yaml

from ..ring.hashing import HASH_FUNCTIONS

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class RingConfig:
    """Configuration for a hash ring"""

    # Virtual nodes created per physical node unless add_node overrides it
    replicas_per_node: int = 10

    # Name of a registered hash function (md5, sha256, crc32)
    hash_function: str = "md5"

    # General settings
    log_level: str = "INFO"
    log_dir: str | None = None  # None = console only

    @classmethod
    def from_env(cls) -> "RingConfig":
        """Load configuration from environment variables"""
        return cls(
            replicas_per_node=int(os.getenv("HASHROUTER_REPLICAS", "10")),
            hash_function=os.getenv("HASHROUTER_HASH_FUNCTION", "md5"),
            log_level=os.getenv("HASHROUTER_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("HASHROUTER_LOG_DIR") or None,
        )

    @classmethod
    def from_file(cls, filepath: str) -> "RingConfig":
        """Load configuration from YAML file"""
        with open(filepath, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def validate(self) -> None:
        """Validate configuration parameters"""
        if isinstance(self.replicas_per_node, bool) or not isinstance(
            self.replicas_per_node, int
        ):
            raise ValueError(
                f"replicas_per_node must be an integer: {self.replicas_per_node!r}"
            )

        if self.replicas_per_node < 1:
            raise ValueError("replicas_per_node must be at least 1")

        if self.hash_function.lower() not in HASH_FUNCTIONS:
            raise ValueError(f"Invalid hash function: {self.hash_function}")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")


# Global config instance
_config: RingConfig | None = None


def get_config() -> RingConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = RingConfig.from_env()
        _config.validate()
    return _config


def set_config(config: RingConfig | None) -> None:
    """Set the global configuration instance (None resets to env on next get)"""
    global _config
    if config is not None:
        config.validate()
    _config = config
