from lbp_core.common.errors import AmountInTooLarge, AmountOutTooLarge, InvalidAssetValue, InvalidWeightConfig
from lbp_core.common.math import (
    WAD,
    complement,
    div_down,
    div_up,
    mul_down,
    mul_up,
    pow_up,
)


# A single trade may bring in at most 30% of the input balance, whichever
# amount the caller fixes. Exact-in and exact-out quotes of the same trade
# are therefore accepted or rejected together.
MAX_IN_RATIO = 3 * 10 ** 17


class WeightedMathHelper:
    """
    Weighted constant-value invariant  balance_in^w_in * balance_out^w_out = k.

    Balances are integer token amounts, weights are basis points. Every
    intermediate is rounded so the pool never pays out more, or takes in less,
    than the exact formula.
    """

    @staticmethod
    def _validate(balance_in: int, weight_in: int, balance_out: int, weight_out: int):
        if weight_in <= 0 or weight_out <= 0:
            raise InvalidWeightConfig("Weights must be positive.")
        if balance_in <= 0 or balance_out <= 0:
            raise InvalidAssetValue("Pricing balances must be positive.")

    @staticmethod
    def _check_amount_in(balance_in: int, amount_in: int):
        if amount_in > mul_down(balance_in, MAX_IN_RATIO):
            raise AmountInTooLarge(f"Amount in {amount_in} exceeds 30% of balance {balance_in}")

    @staticmethod
    def out_given_in(balance_in: int, weight_in: int, balance_out: int, weight_out: int, amount_in: int) -> int:
        """
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in)) ^ (weight_in / weight_out))

        base rounded up, exponent down, power up, result down.
        """
        WeightedMathHelper._validate(balance_in, weight_in, balance_out, weight_out)
        if amount_in == 0:
            return 0
        WeightedMathHelper._check_amount_in(balance_in, amount_in)

        base = div_up(balance_in, balance_in + amount_in)
        exponent = div_down(weight_in, weight_out)
        power = pow_up(base, exponent)
        return mul_down(balance_out, complement(power))

    @staticmethod
    def in_given_out(balance_in: int, weight_in: int, balance_out: int, weight_out: int, amount_out: int) -> int:
        """
        amount_in = balance_in * ((balance_out / (balance_out - amount_out)) ^ (weight_out / weight_in) - 1)

        base rounded up, exponent up, power up, result up. The output must stay
        below the balance; the required input obeys the same ratio limit as
        out_given_in.
        """
        WeightedMathHelper._validate(balance_in, weight_in, balance_out, weight_out)
        if amount_out == 0:
            return 0
        if amount_out >= balance_out:
            raise AmountOutTooLarge(f"Amount out {amount_out} must be below balance {balance_out}")

        base = div_up(balance_out, balance_out - amount_out)
        exponent = div_up(weight_out, weight_in)
        power = pow_up(base, exponent)
        amount_in = mul_up(balance_in, power - WAD)
        WeightedMathHelper._check_amount_in(balance_in, amount_in)
        return amount_in
