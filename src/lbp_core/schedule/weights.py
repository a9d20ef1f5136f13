from typing import Tuple

from lbp_core.common.enums import PoolStatus, Rounding
from lbp_core.common.math import BASIS_POINTS, checked_div, checked_div_up
from lbp_core.common.model import LiquidityBootstrappingPool


class WeightSchedule:
    """
    Time-dependent weights of a pool. The share weight moves linearly from
    start_weight_basis_points at sale_start_time to end_weight_basis_points at
    sale_end_time; the asset weight is always the remainder of 10000.

        share(t) = start + (end - start) * (t - sale_start) / (sale_end - sale_start)

    Interpolation is done on integers. The caller picks the rounding direction
    so the result never lets a trader extract more than the exact curve gives.
    """

    @staticmethod
    def share_weight_at(pool: LiquidityBootstrappingPool, now: int, rounding: Rounding = Rounding.DOWN) -> int:
        start_w = pool.start_weight_basis_points
        end_w = pool.end_weight_basis_points

        if now <= pool.sale_start_time:
            return start_w
        if now >= pool.sale_end_time:
            return end_w

        duration = pool.sale_end_time - pool.sale_start_time
        elapsed = now - pool.sale_start_time
        # start*duration + (end-start)*elapsed is non-negative for weights >= 0
        numerator = start_w * duration + (end_w - start_w) * elapsed

        if rounding is Rounding.UP:
            return checked_div_up(numerator, duration)
        return checked_div(numerator, duration)

    @staticmethod
    def weight_at(
        pool: LiquidityBootstrappingPool,
        now: int,
        rounding: Rounding = Rounding.DOWN
    ) -> Tuple[int, int]:
        """
        Returns (share_weight, asset_weight) in basis points at timestamp 'now'.
        """
        share_w = WeightSchedule.share_weight_at(pool, now, rounding)
        return share_w, BASIS_POINTS - share_w

    @staticmethod
    def status_at(pool: LiquidityBootstrappingPool, now: int) -> PoolStatus:
        if pool.closed:
            return PoolStatus.CLOSED
        if now < pool.sale_start_time:
            return PoolStatus.PENDING
        if now < pool.sale_end_time:
            return PoolStatus.ACTIVE
        return PoolStatus.ENDED
