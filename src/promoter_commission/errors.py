"""Error taxonomy for the commission engine.

Every error here is structural: the engine performs no I/O, so nothing is
transient or retryable. A configuration problem is surfaced to the caller
immediately and is never replaced by a default value.
"""

from __future__ import annotations

from typing import Optional


class CommissionError(ValueError):
    """Base class for all commission engine errors."""


class ConfigurationError(CommissionError):
    """A required sub-field is missing or out of range for the selected mode.

    ``field`` names the offending field path, e.g. ``table_commission.rate``.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class InvalidTierError(CommissionError):
    """A bonus tier has a non-positive threshold, a negative amount,
    or duplicates another non-repeatable tier's threshold."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        threshold: Optional[int] = None,
    ) -> None:
        self.index = index
        self.threshold = threshold
        where = f"bonus_tiers[{index}]" if index is not None else "bonus"
        super().__init__(f"{where}: {message}")


class HierarchyError(CommissionError):
    """The promoter directory's parent links form a cycle."""
