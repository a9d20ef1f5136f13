from lbp_core.common.enums import Rounding
from lbp_core.common.math import WAD, mul_div_down, to_u64
from lbp_core.common.model import LiquidityBootstrappingPool
from lbp_core.pricing.weighted_math import WeightedMathHelper as helper
from lbp_core.schedule.weights import WeightSchedule


class PricingEngine:
    """
    Raw (fee-free) swap quotes for one pool snapshot at one timestamp.

    Pricing balances are real reserves plus virtual reserves. Weights come from
    the WeightSchedule, rounded in the pool's favor for the trade direction:
    buys see the share weight rounded up, sells see it rounded down.

    The engine never mutates the pool; previews and swaps call the same methods.
    """

    def __init__(self, pool: LiquidityBootstrappingPool, now: int):
        self._pool = pool
        self._now = now

    @property
    def pool(self) -> LiquidityBootstrappingPool:
        return self._pool

    @property
    def now(self) -> int:
        return self._now

    def _buy_weights(self):
        return WeightSchedule.weight_at(self._pool, self._now, Rounding.UP)

    def _sell_weights(self):
        return WeightSchedule.weight_at(self._pool, self._now, Rounding.DOWN)

    def shares_out_for_exact_assets_in(self, assets_in: int) -> int:
        share_w, asset_w = self._buy_weights()
        return to_u64(helper.out_given_in(
            self._pool.asset_balance, asset_w,
            self._pool.share_balance, share_w,
            to_u64(assets_in)
        ))

    def assets_in_for_exact_shares_out(self, shares_out: int) -> int:
        share_w, asset_w = self._buy_weights()
        return to_u64(helper.in_given_out(
            self._pool.asset_balance, asset_w,
            self._pool.share_balance, share_w,
            to_u64(shares_out)
        ))

    def assets_out_for_exact_shares_in(self, shares_in: int) -> int:
        share_w, asset_w = self._sell_weights()
        return to_u64(helper.out_given_in(
            self._pool.share_balance, share_w,
            self._pool.asset_balance, asset_w,
            to_u64(shares_in)
        ))

    def shares_in_for_exact_assets_out(self, assets_out: int) -> int:
        share_w, asset_w = self._sell_weights()
        return to_u64(helper.in_given_out(
            self._pool.share_balance, share_w,
            self._pool.asset_balance, asset_w,
            to_u64(assets_out)
        ))

    def spot_price(self) -> int:
        """
        WAD-scaled asset price of one share at the current weights, ignoring fees:
        (asset_balance / asset_weight) / (share_balance / share_weight).
        """
        share_w, asset_w = WeightSchedule.weight_at(self._pool, self._now)
        denominator = self._pool.share_balance * asset_w
        if denominator == 0:
            return 0
        return mul_div_down(self._pool.asset_balance * share_w, WAD, denominator)
