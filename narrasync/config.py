import logging
import os
from dataclasses import dataclass

DEFAULT_HALF_WIDTH = 15.0  # seconds on each side of the clip timestamp

ENV_HALF_WIDTH = "NARRASYNC_HALF_WIDTH"
ENV_LOG_LEVEL = "NARRASYNC_LOG_LEVEL"


@dataclass(frozen=True)
class SyncConfig:
    half_width: float = DEFAULT_HALF_WIDTH
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.half_width > 0:
            raise ValueError(f"half_width must be positive, got {self.half_width!r}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")

    @classmethod
    def from_env(cls, environ=None) -> "SyncConfig":
        """Builds a config from NARRASYNC_* environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ

        half_width = DEFAULT_HALF_WIDTH
        raw = environ.get(ENV_HALF_WIDTH, "").strip()
        if raw:
            try:
                half_width = float(raw)
            except ValueError:
                raise ValueError(f"{ENV_HALF_WIDTH} must be a number, got {raw!r}") from None

        log_level = environ.get(ENV_LOG_LEVEL, "").strip() or "INFO"
        return cls(half_width=half_width, log_level=log_level.upper())
