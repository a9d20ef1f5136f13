from lbp_core.common.errors import MaxFeeExceeded
from lbp_core.common.math import BASIS_POINTS, to_u64
from lbp_core.common.settings import EngineSettings


class FeeValidator:
    """
    Fee parameters are basis points. Each fee must stay below the configured
    maximum, and together they must leave part of every trade for the swap.
    """

    @staticmethod
    def validate_fees(platform_fee: int, referral_fee: int, swap_fee: int, settings: EngineSettings):
        for name, fee in (("platform_fee", platform_fee), ("referral_fee", referral_fee), ("swap_fee", swap_fee)):
            to_u64(fee)
            if fee >= settings.max_fee_basis_points:
                raise MaxFeeExceeded(f"{name} {fee} must be below {settings.max_fee_basis_points} basis points.")

        if platform_fee + referral_fee + swap_fee >= BASIS_POINTS:
            raise MaxFeeExceeded(f"Combined fees must be below {BASIS_POINTS} basis points.")
