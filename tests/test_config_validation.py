"""Tests for config validation — proves malformed configs never reach a payout."""

import pytest
from decimal import Decimal

from promoter_commission.compensation.validation import validate_config, validate_tiers
from promoter_commission.errors import ConfigurationError, InvalidTierError
from promoter_commission.models.commission import (
    BonusTier,
    CommissionConfig,
    FixedFeeRule,
    PerHeadRule,
    SimpleBonus,
    TableCommissionMode,
    TableCommissionRule,
)


def _config(**kwargs) -> CommissionConfig:
    kwargs.setdefault("currency", "IDR")
    return CommissionConfig(config_id="cfg", **kwargs)


class TestValidConfigs:
    def test_empty_config_is_valid(self) -> None:
        validate_config(_config())

    def test_combined_components_valid(self) -> None:
        validate_config(_config(
            per_head=PerHeadRule(rate=Decimal("1"), min_guests=0, max_guests=10),
            fixed_fee=FixedFeeRule(amount=Decimal("5"), minimum_guests=3,
                                   below_minimum_percent=Decimal("100")),
            bonus_tiers=(BonusTier(threshold=5, amount=Decimal("0")),),
            table_commission=TableCommissionRule(
                mode=TableCommissionMode.PERCENTAGE, rate=Decimal("0"),
            ),
        ))

    def test_repeatable_and_milestone_share_threshold(self) -> None:
        validate_tiers((
            BonusTier(threshold=20, amount=Decimal("1"), repeatable=True),
            BonusTier(threshold=20, amount=Decimal("1")),
        ))

    def test_invalid_simple_bonus_ignored_when_tiers_present(self) -> None:
        validate_config(_config(
            simple_bonus=SimpleBonus(threshold=0, amount=Decimal("1")),
            bonus_tiers=(BonusTier(threshold=5, amount=Decimal("1")),),
        ))


class TestConfigurationErrors:
    @pytest.mark.parametrize("config, field", [
        (_config(currency=""), "currency"),
        (_config(per_head=PerHeadRule(rate=None)), "per_head.rate"),
        (_config(per_head=PerHeadRule(rate=Decimal("-1"))), "per_head.rate"),
        (_config(per_head=PerHeadRule(rate=Decimal("1"), min_guests=-1)), "per_head.min_guests"),
        (_config(per_head=PerHeadRule(rate=Decimal("1"), min_guests=10, max_guests=5)),
         "per_head.min_guests"),
        (_config(fixed_fee=FixedFeeRule(amount=None)), "fixed_fee.amount"),
        (_config(fixed_fee=FixedFeeRule(amount=Decimal("1"),
                                        below_minimum_percent=Decimal("101"))),
         "fixed_fee.below_minimum_percent"),
        (_config(fixed_fee=FixedFeeRule(amount=Decimal("1"),
                                        below_minimum_percent=Decimal("-5"))),
         "fixed_fee.below_minimum_percent"),
        (_config(table_commission=TableCommissionRule(mode=TableCommissionMode.PERCENTAGE)),
         "table_commission.rate"),
        (_config(table_commission=TableCommissionRule(mode=TableCommissionMode.FLAT_FEE)),
         "table_commission.flat_fee"),
    ])
    def test_field_identified(self, config: CommissionConfig, field: str) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            validate_config(config)
        assert excinfo.value.field == field
        assert field in str(excinfo.value)


class TestInvalidTiers:
    def test_zero_threshold(self) -> None:
        with pytest.raises(InvalidTierError) as excinfo:
            validate_tiers((BonusTier(threshold=0, amount=Decimal("1")),))
        assert excinfo.value.index == 0

    def test_negative_amount(self) -> None:
        with pytest.raises(InvalidTierError) as excinfo:
            validate_tiers((
                BonusTier(threshold=5, amount=Decimal("1")),
                BonusTier(threshold=10, amount=Decimal("-1")),
            ))
        assert excinfo.value.index == 1
        assert excinfo.value.threshold == 10

    def test_duplicate_milestone_threshold(self) -> None:
        with pytest.raises(InvalidTierError):
            validate_tiers((
                BonusTier(threshold=20, amount=Decimal("1")),
                BonusTier(threshold=20, amount=Decimal("2")),
            ))

    def test_invalid_simple_bonus(self) -> None:
        with pytest.raises(InvalidTierError):
            validate_config(_config(simple_bonus=SimpleBonus(threshold=-3, amount=Decimal("1"))))

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            validate_tiers((BonusTier(threshold=-1, amount=Decimal("1")),))
