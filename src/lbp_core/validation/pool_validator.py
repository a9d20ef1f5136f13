from lbp_core.common.errors import (
    InvalidAssetOrShare,
    InvalidAssetValue,
    InvalidVestCliff,
    InvalidVestEnd,
    InvalidWeightConfig,
    InvalidWhitelistRoot,
    SalePeriodLow,
)
from lbp_core.common.math import BASIS_POINTS, checked_add, to_i64, to_u64
from lbp_core.common.model import PoolParams
from lbp_core.common.settings import EngineSettings
from lbp_core.whitelist.merkle import HASH_SIZE


class PoolParamsValidator:
    """
    Validator for pool creation arguments.
    Checks run in a fixed order and the first failure is raised:
      1) Token identities
      2) Integer ranges (u64 amounts, i64 timestamps)
      3) Seed amounts
      4) Weights
      5) Sale window
      6) Vesting schedule
    """

    @staticmethod
    def validate_tokens(asset_token: str, share_token: str):
        if not asset_token or not share_token or asset_token == share_token:
            raise InvalidAssetOrShare()

    @staticmethod
    def validate_ranges(params: PoolParams):
        for value in (
            params.assets,
            params.shares,
            params.virtual_assets,
            params.virtual_shares,
            params.max_share_price,
            params.max_shares_out,
            params.max_assets_in,
        ):
            to_u64(value)
        for value in (params.sale_start_time, params.sale_end_time, params.vest_cliff, params.vest_end):
            to_i64(value)
        root = params.whitelist_merkle_root
        if not isinstance(root, (bytes, bytearray)) or len(root) != HASH_SIZE:
            raise InvalidWhitelistRoot()

    @staticmethod
    def validate_amounts(params: PoolParams):
        """
        Pricing needs a positive balance on both sides once virtual reserves are added,
        and the pool must hold real shares to sell.
        """
        if params.shares == 0:
            raise InvalidAssetValue("Share seed amount cannot be 0.")
        if checked_add(params.assets, params.virtual_assets) == 0:
            raise InvalidAssetValue()
        checked_add(params.shares, params.virtual_shares)

    @staticmethod
    def validate_weights(params: PoolParams):
        for weight in (params.start_weight_basis_points, params.end_weight_basis_points):
            if not isinstance(weight, int) or not 1 <= weight <= BASIS_POINTS - 1:
                raise InvalidWeightConfig(f"Weight {weight} must be in [1, {BASIS_POINTS - 1}].")

    @staticmethod
    def validate_sale_period(params: PoolParams, settings: EngineSettings):
        if params.sale_end_time - params.sale_start_time < settings.min_sale_duration:
            raise SalePeriodLow(
                f"Sale period must be at least {settings.min_sale_duration} seconds."
            )

    @staticmethod
    def validate_vesting(params: PoolParams):
        if params.vest_cliff < params.sale_end_time:
            raise InvalidVestCliff()
        if params.vest_end < params.vest_cliff:
            raise InvalidVestEnd()

    @staticmethod
    def validate(asset_token: str, share_token: str, params: PoolParams, settings: EngineSettings):
        PoolParamsValidator.validate_tokens(asset_token, share_token)
        PoolParamsValidator.validate_ranges(params)
        PoolParamsValidator.validate_amounts(params)
        PoolParamsValidator.validate_weights(params)
        PoolParamsValidator.validate_sale_period(params, settings)
        PoolParamsValidator.validate_vesting(params)
