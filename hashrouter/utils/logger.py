import logging
import sys
import os


class RingLogger:
    """Structured logger for a named hash ring"""

    def __init__(
        self, ring_name: str, log_level: str = "INFO", log_dir: str | None = None
    ) -> None:
        self.ring_name: str = ring_name
        self.logger: logging.Logger = logging.getLogger(f"hashrouter.{ring_name}")

        # Clear existing handlers to avoid duplicates
        self.logger.handlers.clear()
        level = getattr(logging, log_level.upper(), logging.INFO)
        self.logger.setLevel(level)
        self.logger.propagate = False

        formatter = logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d [%(ring)s] %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.FileHandler(os.path.join(log_dir, f"{ring_name}.log"))
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def _log(self, level: int, msg: str, **kwargs: object) -> None:
        """Internal log method that adds the ring name to extra"""
        extra: dict[str, object] = {"ring": self.ring_name}
        extra.update(kwargs)
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **kwargs: object) -> None:
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: object) -> None:
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: object) -> None:
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs: object) -> None:
        self._log(logging.ERROR, msg, **kwargs)

    def close(self) -> None:
        """Detach and close all handlers (releases log files)"""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


def init_logger(
    ring_name: str, log_level: str = "INFO", log_dir: str | None = None
) -> RingLogger:
    """Initialize logger - always creates new instance"""
    return RingLogger(ring_name, log_level, log_dir)


def get_logger(ring_name: str = "ring") -> RingLogger:
    """Get a logger configured from the global config"""
    from .config import get_config

    config = get_config()
    return RingLogger(ring_name, config.log_level, config.log_dir)
