from lbp_core.common.model import (
    ZERO_ROOT,
    BuyEvent,
    EventLog,
    FeeSplit,
    LiquidityBootstrappingPool,
    PoolCreatedEvent,
    PoolKey,
)


def _make_pool(**overrides) -> LiquidityBootstrappingPool:
    fields = dict(
        asset_token="USDC",
        share_token="PROJ",
        creator="creator",
        virtual_assets=500,
        virtual_shares=0,
        max_share_price=10 ** 19,
        max_shares_out=10 ** 9,
        max_assets_in=10 ** 9,
        start_weight_basis_points=9000,
        end_weight_basis_points=1000,
        sale_start_time=0,
        sale_end_time=1000,
        vest_cliff=1000,
        vest_end=2000,
        asset_reserve=1000,
        share_reserve=2000,
    )
    fields.update(overrides)
    return LiquidityBootstrappingPool(**fields)


def test_pool_key_str_and_hash():
    key = PoolKey("USDC", "PROJ", "creator")
    assert str(key) == "USDC/PROJ@creator"
    assert {key: 1}[PoolKey("USDC", "PROJ", "creator")] == 1


def test_pool_balances_include_virtual_reserves():
    pool = _make_pool()
    assert pool.asset_balance == 1500
    assert pool.share_balance == 2000
    assert pool.key == PoolKey("USDC", "PROJ", "creator")


def test_whitelist_enabled():
    assert not _make_pool().whitelist_enabled
    assert _make_pool(whitelist_merkle_root=b"\x01" * 32).whitelist_enabled
    assert _make_pool(whitelist_merkle_root=ZERO_ROOT).whitelist_enabled is False


def test_fee_split_net():
    split = FeeSplit(gross=10000, platform_fee=100, referral_fee=50, swap_fee=30)
    assert split.total_fees == 180
    assert split.net == 9820
    assert FeeSplit(gross=7).net == 7


def test_event_log():
    log = EventLog()
    key = PoolKey("USDC", "PROJ", "creator")
    log.emit(PoolCreatedEvent(pool=key))
    log.emit(BuyEvent(pool=key, user="alice", assets=10, shares=1, swap_fee=0))

    assert len(log) == 2
    assert log.of_type(BuyEvent) == [BuyEvent(pool=key, user="alice", assets=10, shares=1, swap_fee=0)]
