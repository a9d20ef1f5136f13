import pytest

from dataclasses import replace

from lbp_core.common.errors import AmountInTooLarge, ConversionOverflow
from lbp_core.common.math import WAD
from lbp_core.common.model import LiquidityBootstrappingPool
from lbp_core.pricing.engine import PricingEngine


def _make_pool(assets=1_000_000, shares=1_000_000, virtual_assets=0, virtual_shares=0,
               start_weight=9000, end_weight=1000) -> LiquidityBootstrappingPool:
    return LiquidityBootstrappingPool(
        asset_token="USDC",
        share_token="PROJ",
        creator="creator",
        virtual_assets=virtual_assets,
        virtual_shares=virtual_shares,
        max_share_price=2 ** 64 - 1,
        max_shares_out=2 ** 64 - 1,
        max_assets_in=2 ** 64 - 1,
        start_weight_basis_points=start_weight,
        end_weight_basis_points=end_weight,
        sale_start_time=0,
        sale_end_time=1000,
        vest_cliff=1000,
        vest_end=2000,
        asset_reserve=assets,
        share_reserve=shares,
    )


def test_scenario_quote_below_spot_estimate():
    """
    90/10 share/asset weights at equal balances price a share at 9 assets, so
    100_000 assets would buy 11_111 shares with no slippage.
    """
    engine = PricingEngine(_make_pool(), now=0)
    shares_out = engine.shares_out_for_exact_assets_in(100_000)
    assert 0 < shares_out < 11_111


def test_scenario_same_assets_buy_more_shares_over_time():
    pool = _make_pool()
    quotes = [PricingEngine(pool, now).shares_out_for_exact_assets_in(100_000) for now in (0, 250, 500, 750, 999)]
    assert all(a < b for a, b in zip(quotes, quotes[1:]))


def test_spot_price_falls_with_share_weight():
    pool = _make_pool()
    assert PricingEngine(pool, 0).spot_price() == 9 * WAD
    assert PricingEngine(pool, 500).spot_price() == WAD
    assert PricingEngine(pool, 1000).spot_price() == WAD // 9


def test_virtual_assets_count_towards_pricing():
    real_only = PricingEngine(_make_pool(assets=500_000), 0)
    with_virtual = PricingEngine(_make_pool(assets=500_000, virtual_assets=500_000), 0)
    assert with_virtual.shares_out_for_exact_assets_in(10_000) < real_only.shares_out_for_exact_assets_in(10_000)
    assert with_virtual.spot_price() == 9 * WAD


@pytest.mark.parametrize("now", [0, 400, 999])
@pytest.mark.parametrize("shares", [1, 777, 20_000])
def test_buy_exact_out_round_trip(now, shares):
    """Paying the quoted assets in buys at least the requested shares, plus at most two assets' worth."""
    engine = PricingEngine(_make_pool(), now)
    assets_in = engine.assets_in_for_exact_shares_out(shares)
    shares_out = engine.shares_out_for_exact_assets_in(assets_in)
    assert shares <= shares_out <= shares + 20


@pytest.mark.parametrize("now", [0, 250, 500, 999])
@pytest.mark.parametrize("assets", [1, 2, 17, 99, 299, 1000, 12_345, 100_000])
def test_buy_exact_in_round_trip_never_profits(now, assets):
    """Buying back the shares an input would get never costs more than that input."""
    engine = PricingEngine(_make_pool(), now)
    shares_out = engine.shares_out_for_exact_assets_in(assets)
    assert engine.assets_in_for_exact_shares_out(shares_out) <= assets


def test_large_late_buy_quotes_in_both_directions():
    engine = PricingEngine(_make_pool(), 999)
    shares_out = engine.shares_out_for_exact_assets_in(100_000)
    assert shares_out > 500_000
    assert engine.assets_in_for_exact_shares_out(shares_out) <= 100_000


@pytest.mark.parametrize("now", [0, 400, 999])
def test_sell_quotes_are_consistent(now):
    engine = PricingEngine(_make_pool(), now)
    assets_out = engine.assets_out_for_exact_shares_in(10_000)
    shares_in = engine.shares_in_for_exact_assets_out(assets_out)
    assert 10_000 - 10 <= shares_in <= 10_000


def test_buy_never_beats_sell():
    """A buy followed by selling the same shares cannot return more assets than were paid."""
    engine = PricingEngine(_make_pool(), 300)
    shares = engine.shares_out_for_exact_assets_in(20_000)
    assert engine.assets_out_for_exact_shares_in(shares) <= 20_000


def test_engine_does_not_mutate_pool():
    pool = _make_pool()
    before = replace(pool)
    engine = PricingEngine(pool, 100)
    engine.shares_out_for_exact_assets_in(1000)
    engine.assets_in_for_exact_shares_out(1000)
    engine.assets_out_for_exact_shares_in(1000)
    engine.shares_in_for_exact_assets_out(1000)
    assert pool == before


def test_inputs_must_be_u64():
    engine = PricingEngine(_make_pool(), 0)
    with pytest.raises(ConversionOverflow):
        engine.shares_out_for_exact_assets_in(-1)


def test_trade_above_ratio_limit():
    engine = PricingEngine(_make_pool(), 0)
    with pytest.raises(AmountInTooLarge):
        engine.shares_out_for_exact_assets_in(400_000)
