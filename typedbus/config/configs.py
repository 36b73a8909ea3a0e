from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from typedbus.errors.errors import ConfigurationError

"""
Bus configuration.
"""


class ReentrancyPolicy(str, Enum):
    """What happens when a subscriber publishes while a dispatch is running."""

    IMMEDIATE = "immediate"  # nested dispatch runs inline, before the outer one finishes
    DEFERRED = "deferred"  # nested events are queued and drained after the outer dispatch


@dataclass(frozen=True)
class BusConfig:
    reentrancy: ReentrancyPolicy = ReentrancyPolicy.IMMEDIATE
    # wrap each subscriber call; a failing subscriber no longer stops the rest
    isolate_subscribers: bool = False
    # nested publish depth before BusError (guards cyclic event chains)
    max_dispatch_depth: int = 32
    rejection_log_level: str = "WARNING"

    def __post_init__(self) -> None:
        try:
            # frozen: bypass __setattr__ to normalise the enum
            object.__setattr__(self, "reentrancy", ReentrancyPolicy(self.reentrancy))
        except ValueError:
            raise ConfigurationError(
                f"reentrancy must be one of {[p.value for p in ReentrancyPolicy]}",
                field="reentrancy",
                value=self.reentrancy,
            ) from None

        if not isinstance(self.isolate_subscribers, bool):
            raise ConfigurationError(
                "isolate_subscribers must be a bool",
                field="isolate_subscribers",
                value=self.isolate_subscribers,
            )

        if (
            isinstance(self.max_dispatch_depth, bool)
            or not isinstance(self.max_dispatch_depth, int)
            or self.max_dispatch_depth < 1
        ):
            raise ConfigurationError(
                "max_dispatch_depth must be a positive integer",
                field="max_dispatch_depth",
                value=self.max_dispatch_depth,
            )

        level = str(self.rejection_log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(
                "rejection_log_level must be a logging level name",
                field="rejection_log_level",
                value=self.rejection_log_level,
            )
        object.__setattr__(self, "rejection_log_level", level)

    @property
    def rejection_level(self) -> int:
        return logging.getLevelName(self.rejection_log_level)
