"""Tests for the commission engine — proves payout composition invariants hold."""

import pytest
from decimal import Decimal
from pathlib import Path
from typing import Sequence

from promoter_commission.compensation.attribution import AttributionResolver
from promoter_commission.compensation.engine import CommissionEngine
from promoter_commission.errors import ConfigurationError, InvalidTierError
from promoter_commission.models.attribution import AttributionInput, BookingLine, TableBooking
from promoter_commission.models.commission import (
    BonusTier,
    CommissionConfig,
    CountBasis,
    FixedFeeRule,
    PerHeadRule,
    SimpleBonus,
    TableCommissionMode,
    TableCommissionRule,
)
from promoter_commission.models.payout import BonusKind
from promoter_commission.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def engine(resolver: PolicyResolver) -> CommissionEngine:
    return CommissionEngine(resolver)


def _config(**kwargs) -> CommissionConfig:
    kwargs.setdefault("currency", "IDR")
    return CommissionConfig(config_id="cfg_test", **kwargs)


def _input(
    guests: int = 0,
    checked_in: int = 0,
    revenues: Sequence[str] = (),
) -> AttributionInput:
    return AttributionInput(
        event_id="e1",
        promoter_id="p1",
        guest_count=guests,
        checked_in_count=checked_in,
        table_bookings=tuple(
            BookingLine(booking_id=f"b{i}", revenue=Decimal(r), deposit=Decimal("0"))
            for i, r in enumerate(revenues)
        ),
    )


class TestPerHead:
    def test_rate_times_guests(self, engine: CommissionEngine) -> None:
        config = _config(per_head=PerHeadRule(rate=Decimal("50000"), min_guests=0))
        result = engine.calculate(config, _input(guests=37))
        assert result.per_head_amount == Decimal("1850000")
        assert result.per_head_counted == 37

    def test_min_guests_is_a_floor(self, engine: CommissionEngine) -> None:
        config = _config(per_head=PerHeadRule(rate=Decimal("10"), min_guests=20))
        result = engine.calculate(config, _input(guests=5))
        assert result.per_head_counted == 20
        assert result.per_head_amount == Decimal("200")

    def test_max_guests_caps(self, engine: CommissionEngine) -> None:
        config = _config(per_head=PerHeadRule(rate=Decimal("10"), max_guests=30))
        assert engine.calculate(config, _input(guests=45)).per_head_amount == Decimal("300")

    @pytest.mark.parametrize("guests", [0, 4, 5, 17, 30, 31, 200])
    def test_clamp_property(self, engine: CommissionEngine, guests: int) -> None:
        rule = PerHeadRule(rate=Decimal("12.5"), min_guests=5, max_guests=30)
        result = engine.calculate(_config(per_head=rule), _input(guests=guests))
        assert result.per_head_amount == Decimal("12.5") * min(max(guests, 5), 30)


class TestFixedFee:
    def test_below_minimum_clawback(self, engine: CommissionEngine) -> None:
        rule = FixedFeeRule(
            amount=Decimal("3000000"), minimum_guests=15,
            below_minimum_percent=Decimal("50"),
        )
        result = engine.calculate(_config(fixed_fee=rule), _input(guests=10))
        assert result.fixed_fee_amount == Decimal("1500000")
        assert result.fixed_fee_percent_applied == Decimal("50")

    def test_at_or_above_minimum_pays_full(self, engine: CommissionEngine) -> None:
        rule = FixedFeeRule(
            amount=Decimal("3000000"), minimum_guests=15,
            below_minimum_percent=Decimal("50"),
        )
        assert engine.calculate(_config(fixed_fee=rule), _input(guests=20)).fixed_fee_amount == Decimal("3000000")
        assert engine.calculate(_config(fixed_fee=rule), _input(guests=15)).fixed_fee_amount == Decimal("3000000")

    def test_percent_defaults_to_no_penalty(self, engine: CommissionEngine) -> None:
        rule = FixedFeeRule(amount=Decimal("1000"), minimum_guests=15)
        result = engine.calculate(_config(fixed_fee=rule), _input(guests=1))
        assert result.fixed_fee_amount == Decimal("1000")
        assert result.fixed_fee_percent_applied == Decimal("100")

    def test_no_minimum_always_full(self, engine: CommissionEngine) -> None:
        rule = FixedFeeRule(amount=Decimal("1000"), below_minimum_percent=Decimal("0"))
        assert engine.calculate(_config(fixed_fee=rule), _input()).fixed_fee_amount == Decimal("1000")

    def test_zero_percent_pays_nothing(self, engine: CommissionEngine) -> None:
        rule = FixedFeeRule(
            amount=Decimal("1000"), minimum_guests=10,
            below_minimum_percent=Decimal("0"),
        )
        assert engine.calculate(_config(fixed_fee=rule), _input(guests=9)).fixed_fee_amount == Decimal("0")


class TestBonus:
    def test_repeatable_tier(self, engine: CommissionEngine) -> None:
        tiers = (BonusTier(threshold=20, amount=Decimal("500000"), repeatable=True),)
        result = engine.calculate(_config(bonus_tiers=tiers), _input(guests=45))
        assert result.bonus_amount == Decimal("1000000")

    def test_multiple_milestones(self, engine: CommissionEngine) -> None:
        tiers = (
            BonusTier(threshold=20, amount=Decimal("200000")),
            BonusTier(threshold=50, amount=Decimal("500000")),
        )
        result = engine.calculate(_config(bonus_tiers=tiers), _input(guests=55))
        assert result.bonus_amount == Decimal("700000")
        assert len(result.bonus_breakdown) == 2

    def test_tiers_take_precedence_over_simple(self, engine: CommissionEngine) -> None:
        config = _config(
            simple_bonus=SimpleBonus(threshold=10, amount=Decimal("999")),
            bonus_tiers=(BonusTier(threshold=20, amount=Decimal("100")),),
        )
        result = engine.calculate(config, _input(guests=25))
        assert result.bonus_amount == Decimal("100")
        assert [e.kind for e in result.bonus_breakdown] == [BonusKind.MILESTONE]

    def test_simple_bonus_without_tiers(self, engine: CommissionEngine) -> None:
        config = _config(simple_bonus=SimpleBonus(threshold=10, amount=Decimal("999")))
        result = engine.calculate(config, _input(guests=10))
        assert result.bonus_amount == Decimal("999")

    def test_no_bonus_configured_empty_breakdown(self, engine: CommissionEngine) -> None:
        result = engine.calculate(_config(), _input(guests=100))
        assert result.bonus_amount == Decimal("0")
        assert result.bonus_breakdown == ()


class TestTableCommission:
    def test_percentage_of_revenue(self, engine: CommissionEngine) -> None:
        rule = TableCommissionRule(mode=TableCommissionMode.PERCENTAGE, rate=Decimal("10"))
        result = engine.calculate(
            _config(table_commission=rule), _input(revenues=["2000000", "3500000"]),
        )
        assert result.table_commission_amount == Decimal("550000")

    def test_percentage_of_spend_with_fallback(self, resolver: PolicyResolver, engine: CommissionEngine) -> None:
        bookings = [
            TableBooking("b1", "e1", "p1", Decimal("1"), actual_spend=Decimal("4000000"),
                         minimum_spend=Decimal("3000000")),
            TableBooking("b2", "e1", "p1", Decimal("1"), minimum_spend=Decimal("2500000")),
        ]
        attribution = AttributionResolver(resolver).resolve("e1", "p1", [], bookings)
        rule = TableCommissionRule(mode=TableCommissionMode.PERCENTAGE, rate=Decimal("10"))
        result = engine.calculate(_config(table_commission=rule), attribution)
        assert result.table_commission_amount == Decimal("650000")

    def test_flat_fee_per_booking(self, engine: CommissionEngine) -> None:
        rule = TableCommissionRule(mode=TableCommissionMode.FLAT_FEE, flat_fee=Decimal("150000"))
        result = engine.calculate(
            _config(table_commission=rule), _input(revenues=["1", "2", "3"]),
        )
        assert result.table_commission_amount == Decimal("450000")

    def test_no_bookings_zero(self, engine: CommissionEngine) -> None:
        rule = TableCommissionRule(mode=TableCommissionMode.FLAT_FEE, flat_fee=Decimal("150000"))
        assert engine.calculate(_config(table_commission=rule), _input()).table_commission_amount == Decimal("0")

    def test_percentage_without_rate_fails_fast(self, engine: CommissionEngine) -> None:
        rule = TableCommissionRule(mode=TableCommissionMode.PERCENTAGE)
        with pytest.raises(ConfigurationError) as excinfo:
            engine.calculate(_config(table_commission=rule), _input(revenues=["100"]))
        assert excinfo.value.field == "table_commission.rate"

    def test_flat_fee_without_amount_fails_fast(self, engine: CommissionEngine) -> None:
        rule = TableCommissionRule(mode=TableCommissionMode.FLAT_FEE, rate=Decimal("10"))
        with pytest.raises(ConfigurationError) as excinfo:
            engine.calculate(_config(table_commission=rule), _input())
        assert excinfo.value.field == "table_commission.flat_fee"


class TestTotals:
    def test_total_is_rounded_sum_of_components(self, engine: CommissionEngine) -> None:
        config = _config(
            per_head=PerHeadRule(rate=Decimal("50000")),
            fixed_fee=FixedFeeRule(amount=Decimal("3000000"), minimum_guests=15),
            bonus_tiers=(BonusTier(threshold=20, amount=Decimal("500000"), repeatable=True),),
            table_commission=TableCommissionRule(
                mode=TableCommissionMode.PERCENTAGE, rate=Decimal("10"),
            ),
        )
        result = engine.calculate(config, _input(guests=45, revenues=["2000000"]))
        assert result.per_head_amount == Decimal("2250000")
        assert result.total == result.component_sum
        assert result.total == Decimal("6450000.00")
        assert result.currency == "IDR"

    def test_rounding_applied_once_at_total(self, engine: CommissionEngine) -> None:
        # Each component alone rounds to 0.00; their sum rounds to 0.01
        config = _config(
            currency="USD",
            per_head=PerHeadRule(rate=Decimal("0.002")),
            table_commission=TableCommissionRule(
                mode=TableCommissionMode.PERCENTAGE, rate=Decimal("0.4"),
            ),
        )
        result = engine.calculate(config, _input(guests=2, revenues=["1"]))
        assert result.per_head_amount == Decimal("0.004")
        assert result.table_commission_amount == Decimal("0.004")
        assert result.total == Decimal("0.01")

    def test_round_half_up(self, engine: CommissionEngine) -> None:
        config = _config(currency="USD", per_head=PerHeadRule(rate=Decimal("0.005")))
        assert engine.calculate(config, _input(guests=1)).total == Decimal("0.01")

    def test_zero_minor_unit_currency(self, engine: CommissionEngine) -> None:
        config = _config(currency="JPY", per_head=PerHeadRule(rate=Decimal("100.5")))
        assert engine.calculate(config, _input(guests=1)).total == Decimal("101")

    def test_empty_config_pays_zero(self, engine: CommissionEngine) -> None:
        result = engine.calculate(_config(), _input(guests=50))
        assert result.total == Decimal("0")

    def test_manual_adjustment_only_affects_payable(self, engine: CommissionEngine) -> None:
        config = _config(per_head=PerHeadRule(rate=Decimal("1000")))
        result = engine.calculate(config, _input(guests=10), Decimal("-2500"))
        assert result.total == Decimal("10000")
        assert result.payable_total == Decimal("7500")
        assert result.manual_adjustment == Decimal("-2500")

    def test_malformed_currency_rejected(self, engine: CommissionEngine) -> None:
        with pytest.raises(ConfigurationError):
            engine.calculate(_config(currency="rupiah"), _input())


class TestCountBasis:
    def test_checkins_basis(self, engine: CommissionEngine) -> None:
        config = _config(
            per_head=PerHeadRule(rate=Decimal("100")),
            count_basis=CountBasis.CHECKINS,
        )
        result = engine.calculate(config, _input(guests=40, checked_in=25))
        assert result.guests_counted == 25
        assert result.per_head_amount == Decimal("2500")

    def test_registrations_basis_default(self, engine: CommissionEngine) -> None:
        config = _config(per_head=PerHeadRule(rate=Decimal("100")))
        result = engine.calculate(config, _input(guests=40, checked_in=25))
        assert result.guests_counted == 40


class TestValidationBeforeCalculation:
    def test_invalid_tier_rejected(self, engine: CommissionEngine) -> None:
        tiers = (BonusTier(threshold=0, amount=Decimal("100")),)
        with pytest.raises(InvalidTierError):
            engine.calculate(_config(bonus_tiers=tiers), _input(guests=10))

    def test_per_head_without_rate_rejected(self, engine: CommissionEngine) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            engine.calculate(_config(per_head=PerHeadRule(rate=None)), _input(guests=10))
        assert excinfo.value.field == "per_head.rate"
