from dataclasses import dataclass
from typing import Optional

from lbp_core.common.enums import OrderSide
from lbp_core.common.errors import AmountInTooLarge, MaxFeeExceeded
from lbp_core.common.math import BASIS_POINTS, U64_MAX, checked_add, mul_div_down, mul_div_up
from lbp_core.common.model import FeeSplit, LiquidityBootstrappingPool, OwnerConfig


@dataclass(frozen=True)
class FeeTotals:
    """Pool fee counters after a swap, computed before anything is committed."""
    total_swap_fees_asset: int
    total_swap_fees_share: int
    total_referred: int
    total_platform_fees_asset: int


class FeeLedger:
    """
    Splits gross swap amounts into fees and the net amount that reaches the reserves.

    Buys pay platform, referral and swap fees on the assets they bring in. The
    referral fee only goes to a referrer who is present and not the buyer;
    otherwise it is added to the platform fee. Sells pay the swap fee on the
    shares they bring in. Every fee is floored.
    """

    def __init__(self, config: OwnerConfig):
        self._config = config

    @property
    def buy_fee_basis_points(self) -> int:
        return self._config.platform_fee + self._config.referral_fee + self._config.swap_fee

    @property
    def sell_fee_basis_points(self) -> int:
        return self._config.swap_fee

    def fee_basis_points(self, side: OrderSide) -> int:
        return self.buy_fee_basis_points if side is OrderSide.BUY else self.sell_fee_basis_points

    @staticmethod
    def fee_amount(amount: int, fee_bp: int) -> int:
        return mul_div_down(amount, fee_bp, BASIS_POINTS)

    @staticmethod
    def referral_is_valid(user: str, referrer: Optional[str]) -> bool:
        return bool(referrer) and referrer != user

    def split(self, side: OrderSide, gross: int, has_referrer: bool = False) -> FeeSplit:
        if side is OrderSide.SELL:
            return FeeSplit(gross=gross, swap_fee=self.fee_amount(gross, self._config.swap_fee))

        platform = self.fee_amount(gross, self._config.platform_fee)
        referral = self.fee_amount(gross, self._config.referral_fee)
        swap = self.fee_amount(gross, self._config.swap_fee)
        if not has_referrer:
            platform += referral
            referral = 0
        return FeeSplit(gross=gross, platform_fee=platform, referral_fee=referral, swap_fee=swap)

    def gross_up(self, side: OrderSide, net: int) -> int:
        """
        Gross amount whose net after floored fees is at least 'net':
        ceil(net * 10000 / (10000 - fee_bp)). Fees are floored separately, so
        one unit less may occasionally still cover 'net'.
        """
        fee_bp = self.fee_basis_points(side)
        if fee_bp >= BASIS_POINTS:
            raise MaxFeeExceeded("Total fee leaves nothing to swap.")
        gross = mul_div_up(net, BASIS_POINTS, BASIS_POINTS - fee_bp)
        if gross > U64_MAX:
            raise AmountInTooLarge(f"Gross amount {gross} does not fit in u64")
        return gross

    @staticmethod
    def record(pool: LiquidityBootstrappingPool, side: OrderSide, split: FeeSplit) -> FeeTotals:
        """Running totals after 'split' is applied to 'pool'. The pool is not modified."""
        if side is OrderSide.BUY:
            return FeeTotals(
                total_swap_fees_asset=checked_add(pool.total_swap_fees_asset, split.swap_fee),
                total_swap_fees_share=pool.total_swap_fees_share,
                total_referred=checked_add(pool.total_referred, split.referral_fee),
                total_platform_fees_asset=checked_add(pool.total_platform_fees_asset, split.platform_fee),
            )
        return FeeTotals(
            total_swap_fees_asset=pool.total_swap_fees_asset,
            total_swap_fees_share=checked_add(pool.total_swap_fees_share, split.swap_fee),
            total_referred=pool.total_referred,
            total_platform_fees_asset=pool.total_platform_fees_asset,
        )

    @staticmethod
    def apply(pool: LiquidityBootstrappingPool, totals: FeeTotals) -> None:
        pool.total_swap_fees_asset = totals.total_swap_fees_asset
        pool.total_swap_fees_share = totals.total_swap_fees_share
        pool.total_referred = totals.total_referred
        pool.total_platform_fees_asset = totals.total_platform_fees_asset
