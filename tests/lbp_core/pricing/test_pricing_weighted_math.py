import pytest

from lbp_core.common.errors import AmountInTooLarge, AmountOutTooLarge, InvalidAssetValue, InvalidWeightConfig
from lbp_core.pricing.weighted_math import WeightedMathHelper as helper


BALANCE = 1_000_000


@pytest.mark.parametrize("amount_in", [1, 1000, 100_000, 299_999])
def test_equal_weights_out_given_in_below_constant_product(amount_in):
    out = helper.out_given_in(BALANCE, 5000, BALANCE, 5000, amount_in)
    # x * y = k with equal weights
    exact = BALANCE * amount_in // (BALANCE + amount_in)
    assert out <= exact
    assert exact - out <= 1


@pytest.mark.parametrize("amount_out", [1, 1000, 100_000, 230_000])
def test_equal_weights_in_given_out_above_constant_product(amount_out):
    amount_in = helper.in_given_out(BALANCE, 5000, BALANCE, 5000, amount_out)
    exact_num = BALANCE * amount_out
    exact_den = BALANCE - amount_out
    exact = -(-exact_num // exact_den)
    assert amount_in >= exact
    assert amount_in - exact <= 1


def test_zero_amounts_quote_zero():
    assert helper.out_given_in(BALANCE, 1000, BALANCE, 9000, 0) == 0
    assert helper.in_given_out(BALANCE, 1000, BALANCE, 9000, 0) == 0


def test_heavier_output_weight_gives_less_out():
    light = helper.out_given_in(BALANCE, 1000, BALANCE, 5000, 10_000)
    heavy = helper.out_given_in(BALANCE, 1000, BALANCE, 9000, 10_000)
    assert heavy < light


def test_out_given_in_ratio_limit():
    helper.out_given_in(BALANCE, 5000, BALANCE, 5000, 300_000)
    with pytest.raises(AmountInTooLarge):
        helper.out_given_in(BALANCE, 5000, BALANCE, 5000, 300_001)


def test_in_given_out_limits_required_input():
    # 230_000 out needs 298_702 in, 231_000 out needs 300_391
    helper.in_given_out(BALANCE, 5000, BALANCE, 5000, 230_000)
    with pytest.raises(AmountInTooLarge):
        helper.in_given_out(BALANCE, 5000, BALANCE, 5000, 231_000)


@pytest.mark.parametrize("amount_out", [BALANCE, BALANCE + 1])
def test_in_given_out_cannot_drain_balance(amount_out):
    with pytest.raises(AmountOutTooLarge):
        helper.in_given_out(BALANCE, 5000, BALANCE, 5000, amount_out)


WEIGHT_PAIRS = [(1000, 9000), (5000, 5000), (8992, 1008)]


@pytest.mark.parametrize("weight_in, weight_out", WEIGHT_PAIRS)
@pytest.mark.parametrize("amount_in", [1_000, 100_000, 299_999, 300_000])
def test_accepted_exact_in_has_accepted_exact_out(weight_in, weight_out, amount_in):
    """Asking for the quoted output is never rejected and never costs more than the original input."""
    amount_out = helper.out_given_in(BALANCE, weight_in, BALANCE, weight_out, amount_in)
    assert helper.in_given_out(BALANCE, weight_in, BALANCE, weight_out, amount_out) <= amount_in


@pytest.mark.parametrize("weight_in, weight_out", WEIGHT_PAIRS)
def test_exact_out_beyond_largest_exact_in_is_rejected(weight_in, weight_out):
    largest_out = helper.out_given_in(BALANCE, weight_in, BALANCE, weight_out, 300_000)
    with pytest.raises(AmountInTooLarge):
        helper.out_given_in(BALANCE, weight_in, BALANCE, weight_out, 300_001)
    with pytest.raises(AmountInTooLarge):
        helper.in_given_out(BALANCE, weight_in, BALANCE, weight_out, largest_out + largest_out // 100)


def test_heavy_input_weight_can_buy_most_of_the_balance():
    # late in a sale a 10% input takes well over 30% of the shares, in either direction
    amount_out = helper.out_given_in(BALANCE, 8992, BALANCE, 1008, 100_000)
    assert amount_out > BALANCE // 2
    assert helper.in_given_out(BALANCE, 8992, BALANCE, 1008, amount_out) <= 100_000


@pytest.mark.parametrize("weight_in, weight_out", [(0, 5000), (5000, 0)])
def test_invalid_weights(weight_in, weight_out):
    with pytest.raises(InvalidWeightConfig):
        helper.out_given_in(BALANCE, weight_in, BALANCE, weight_out, 10)


@pytest.mark.parametrize("balance_in, balance_out", [(0, BALANCE), (BALANCE, 0)])
def test_invalid_balances(balance_in, balance_out):
    with pytest.raises(InvalidAssetValue):
        helper.in_given_out(balance_in, 5000, balance_out, 5000, 10)


def test_in_given_out_huge_required_input():
    # (1e6 / 700001) ** 4 - 1 > 3, so the input would be three times the balance
    with pytest.raises(AmountInTooLarge):
        helper.in_given_out(2 ** 63, 2000, 10 ** 6, 8000, 299_999)
