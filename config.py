"""
Decoder configuration.

Collects the options a Decoder is built with and validates them.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from analyzer import Decoder
from parser import parse, default_registry

logger = logging.getLogger(__name__)


class ConfigValidationError(ValueError):
    """Raised when configuration values are invalid."""

    pass


@dataclass
class DecoderConfig:
    """Options of a Decoder."""

    workers: int = 0  # 0 or 1 decodes sequentially
    compat: bool = False
    tokens_file: Optional[str] = None  # None uses default.tokens
    verbose: bool = False

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if isinstance(self.workers, bool) or not isinstance(self.workers, int):
            raise ConfigValidationError(f"workers must be an integer, got {self.workers!r}")
        if self.workers < 0:
            raise ConfigValidationError(f"workers must be non-negative, got {self.workers}")
        if self.tokens_file is not None and not Path(self.tokens_file).is_file():
            raise ConfigValidationError(f"tokens file not found: {self.tokens_file}")

    @classmethod
    def from_args(cls, args: Dict[str, Any]) -> "DecoderConfig":
        """Build a configuration from a docopt argument dictionary."""
        workers = args.get("--workers")
        if workers is None:
            workers = 0
        else:
            try:
                workers = int(workers)
            except ValueError:
                raise ConfigValidationError(f"--workers must be an integer, got {workers!r}") from None

        return cls(
            workers=workers,
            compat=bool(args.get("--compat")),
            tokens_file=args.get("--tokens"),
            verbose=bool(args.get("--verbose")),
        )

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.verbose else logging.WARNING

    def create_decoder(self) -> Decoder:
        """Create a Decoder; parses the tokens file when one is configured."""
        if self.tokens_file is None:
            registry = default_registry()
        else:
            logger.debug(f"Loading tokens from {self.tokens_file}")
            registry = parse(self.tokens_file)
        return Decoder(registry, workers=self.workers, compat=self.compat)
