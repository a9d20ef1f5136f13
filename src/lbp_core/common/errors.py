from typing import Optional


class LbpError(Exception):
    """Base class for every error raised by the LBP engine."""
    code: int = 0

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def name(self) -> str:
        return type(self).__name__

    default_message = "LBP engine error"


# Configuration errors: raised at initialization/config time, never retried.

class ConfigurationError(LbpError):
    default_message = "Invalid configuration"


class InvalidAssetOrShare(ConfigurationError):
    code = 6000
    default_message = "Asset and share tokens must be different"


class SalePeriodLow(ConfigurationError):
    code = 6001
    default_message = "Sale period is too low"


class InvalidVestCliff(ConfigurationError):
    code = 6002
    default_message = "Vesting cliff must be at or after the sale end"


class InvalidVestEnd(ConfigurationError):
    code = 6003
    default_message = "Vesting end must be greater than or equal to the vesting cliff"


class InvalidWeightConfig(ConfigurationError):
    code = 6004
    default_message = "Invalid start or end weight"


class InvalidAssetValue(ConfigurationError):
    code = 6005
    default_message = "Asset value cannot be 0"


class MaxFeeExceeded(ConfigurationError):
    code = 6006
    default_message = "Max fee exceeded"


class PoolAlreadyInitialized(ConfigurationError):
    code = 6100
    default_message = "A pool already exists for this asset, share and creator"


class PoolNotFound(ConfigurationError):
    code = 6101
    default_message = "No pool exists for this asset, share and creator"


class OwnerConfigAlreadyInitialized(ConfigurationError):
    code = 6102
    default_message = "Owner config is already initialized"


class OwnerConfigNotInitialized(ConfigurationError):
    code = 6103
    default_message = "Owner config is not initialized"


class InvalidWhitelistRoot(ConfigurationError):
    code = 6104
    default_message = "Whitelist Merkle root must be 32 bytes"


# Admission errors: expected and user facing.

class AdmissionError(LbpError):
    default_message = "Request rejected"


class AssetsInExceeded(AdmissionError):
    code = 6007
    default_message = "Max allowed assets in exceeded"


class SharesOutExceeded(AdmissionError):
    code = 6008
    default_message = "Max allowed shares out exceeded"


class WhitelistProof(AdmissionError):
    code = 6009
    default_message = "Whitelist verification failed"


class SlippageExceeded(AdmissionError):
    code = 6010
    default_message = "Slippage limit is exceeded"


class SellingDisallowed(AdmissionError):
    code = 6011
    default_message = "Selling is disallowed"


class TradingDisallowed(AdmissionError):
    code = 6012
    default_message = "Trading is disallowed"


class ClosingDisallowed(AdmissionError):
    code = 6013
    default_message = "Closing is disallowed"


class RedeemingDisallowed(AdmissionError):
    code = 6014
    default_message = "Redeeming is disallowed"


class CallerDisallowed(AdmissionError):
    code = 6015
    default_message = "Caller is disallowed"


# Arithmetic errors: always surfaced, never approximated.

class SafeMathError(LbpError):
    default_message = "Arithmetic error"


class AdditionOverflow(SafeMathError):
    code = 6200
    default_message = "Addition overflow"


class SubtractionUnderflow(SafeMathError):
    code = 6201
    default_message = "Subtraction underflow"


class MultiplicationOverflow(SafeMathError):
    code = 6202
    default_message = "Multiplication overflow"


class DivisionUnderflow(SafeMathError):
    code = 6203
    default_message = "Division by zero"


class ExponentiationOverflow(SafeMathError):
    code = 6204
    default_message = "Exponentiation overflow"


class ConversionOverflow(SafeMathError):
    code = 6205
    default_message = "Value does not fit the target integer type"


class AmountInTooLarge(SafeMathError):
    code = 6206
    default_message = "Amount in is too large"


class AmountOutTooLarge(SafeMathError):
    code = 6207
    default_message = "Amount out is too large"


# Authorization.

class AccessControlError(LbpError):
    default_message = "Access denied"


class Unauthorized(AccessControlError):
    code = 6300
    default_message = "Unauthorized"
