"""Policy resolver — loads the commission policy from JSON config.

The policy holds the tunable, non-per-promoter parameters of the engine:
currency precision for the final rounding step, which table-booking
statuses earn commission, and codec defaults. Commission rules
themselves live in templates, not here.
"""

from __future__ import annotations

import json
import re
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

from promoter_commission.errors import ConfigurationError
from promoter_commission.models.commission import CountBasis


POLICY_FILENAME = "commission_policy.json"

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class PolicyResolver:
    """Resolves engine policy parameters.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        quantum = resolver.rounding_quantum("IDR")
    """

    def __init__(self, params: Dict[str, Any]) -> None:
        self._params = params

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load the policy file from a config directory."""
        path = Path(config_dir) / POLICY_FILENAME
        with path.open("r", encoding="utf-8") as handle:
            return cls(json.load(handle))

    @property
    def version(self) -> Optional[str]:
        return self._params.get("version")

    def default_currency(self) -> str:
        return str(self._params.get("default_currency", "USD"))

    def default_count_basis(self) -> CountBasis:
        return CountBasis(self._params.get("default_count_basis", "registrations"))

    def eligible_booking_statuses(self) -> FrozenSet[str]:
        return frozenset(self._params.get("eligible_booking_statuses", ()))

    def minor_units(self, currency: str) -> int:
        """Number of minor-unit digits for ``currency``.

        Raises ConfigurationError for a code that is not three uppercase
        letters. Well-formed codes missing from the table use the policy's
        default_minor_units.
        """
        if not isinstance(currency, str) or not _CURRENCY_CODE.match(currency):
            raise ConfigurationError(
                "currency", f"expected a 3-letter ISO-4217 code, got {currency!r}"
            )
        table = self._params.get("currency_minor_units", {})
        if currency in table:
            return int(table[currency])
        return int(self._params.get("default_minor_units", 2))

    def rounding_quantum(self, currency: str) -> Decimal:
        """The Decimal quantum for rounding amounts in ``currency``."""
        return Decimal(1).scaleb(-self.minor_units(currency))

    def validate(self) -> list[str]:
        """Return the structural problems in the loaded policy (empty if none)."""
        errors: list[str] = []

        default_units = self._params.get("default_minor_units", 2)
        if not isinstance(default_units, int) or default_units < 0:
            errors.append(f"default_minor_units must be a non-negative int, got {default_units!r}")

        for code, units in self._params.get("currency_minor_units", {}).items():
            if not _CURRENCY_CODE.match(code):
                errors.append(f"currency_minor_units has malformed code: {code!r}")
            if not isinstance(units, int) or units < 0:
                errors.append(f"currency_minor_units[{code}] must be a non-negative int")

        default_currency = self._params.get("default_currency")
        if default_currency is not None and not _CURRENCY_CODE.match(str(default_currency)):
            errors.append(f"default_currency is malformed: {default_currency!r}")

        if not self._params.get("eligible_booking_statuses"):
            errors.append("eligible_booking_statuses must list at least one status")

        basis = self._params.get("default_count_basis", "registrations")
        if basis not in {b.value for b in CountBasis}:
            errors.append(f"default_count_basis must be one of registrations/checkins, got {basis!r}")

        return errors
