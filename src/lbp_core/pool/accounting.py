"""
Pool accounting: the stateful side of the LBP engine.

LbpProgram owns every pool, every user's per-pool state and the owner config.
Each swap runs admission checks, asks the PricingEngine for a quote, lets the
FeeLedger split fees, and only then commits. A call that raises leaves all
state exactly as it was.
"""
import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Sequence, Tuple

from lbp_core.common.enums import OrderSide, PoolStatus, PreviewKind, SwapKind
from lbp_core.common.errors import (
    AmountOutTooLarge,
    AssetsInExceeded,
    CallerDisallowed,
    ClosingDisallowed,
    InvalidAssetValue,
    LbpError,
    PoolAlreadyInitialized,
    PoolNotFound,
    RedeemingDisallowed,
    SellingDisallowed,
    SharesOutExceeded,
    SlippageExceeded,
    TradingDisallowed,
    Unauthorized,
)
from lbp_core.common.math import WAD, checked_add, checked_sub, mul_div_down, to_i64, to_u64
from lbp_core.common.model import (
    BuyEvent,
    CloseResult,
    EventLog,
    FeeSplit,
    LiquidityBootstrappingPool,
    OwnerConfig,
    PoolClosedEvent,
    PoolCreatedEvent,
    PoolKey,
    PoolParams,
    RedeemEvent,
    RedeemResult,
    SellEvent,
    SwapResult,
    UserStateInPool,
)
from lbp_core.common.settings import EngineSettings
from lbp_core.fees.ledger import FeeLedger
from lbp_core.governance.owner import OwnerConfigManager
from lbp_core.pricing.engine import PricingEngine
from lbp_core.schedule.weights import WeightSchedule
from lbp_core.validation.pool_validator import PoolParamsValidator
from lbp_core.whitelist.merkle import WhitelistVerifier


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    """
    A fee-inclusive quote. 'assets' and 'shares' are the amounts the user pays
    and receives; 'fees.net' is what reaches the reserves on the input side.
    """
    side: OrderSide
    kind: SwapKind
    assets: int
    shares: int
    fees: FeeSplit


def quote_swap(
    pool: LiquidityBootstrappingPool,
    config: OwnerConfig,
    side: OrderSide,
    kind: SwapKind,
    amount: int,
    now: int,
    has_referrer: bool = False
) -> Quote:
    """
    Pure quote used by both previews and swaps, so the two always agree for the
    same pool snapshot and timestamp.
    """
    engine = PricingEngine(pool, now)
    ledger = FeeLedger(config)
    amount = to_u64(amount)

    if side is OrderSide.BUY:
        if kind is SwapKind.EXACT_IN:
            fees = ledger.split(side, amount, has_referrer)
            shares = engine.shares_out_for_exact_assets_in(fees.net)
            return Quote(side, kind, assets=amount, shares=shares, fees=fees)
        net = engine.assets_in_for_exact_shares_out(amount)
        fees = ledger.split(side, ledger.gross_up(side, net), has_referrer)
        return Quote(side, kind, assets=fees.gross, shares=amount, fees=fees)

    if kind is SwapKind.EXACT_IN:
        fees = ledger.split(side, amount)
        assets = engine.assets_out_for_exact_shares_in(fees.net)
        return Quote(side, kind, assets=assets, shares=amount, fees=fees)
    net = engine.shares_in_for_exact_assets_out(amount)
    fees = ledger.split(side, ledger.gross_up(side, net))
    return Quote(side, kind, assets=amount, shares=fees.gross, fees=fees)


class LbpProgram:
    """
    In-memory host for liquidity bootstrapping pools.

    Timestamps are unix seconds. Every operation takes an optional 'now'; when
    omitted the injected clock is used.
    """

    def __init__(self, settings: Optional[EngineSettings] = None, clock: Optional[Callable[[], int]] = None):
        self._settings = settings or EngineSettings()
        self._clock = clock or (lambda: int(time.time()))
        self.events = EventLog()
        self.governance = OwnerConfigManager(self._settings, self.events)

        self._pools: Dict[PoolKey, LiquidityBootstrappingPool] = {}
        self._pool_locks: Dict[PoolKey, threading.RLock] = {}
        self._users: Dict[Tuple[PoolKey, str], UserStateInPool] = {}
        self._registry_lock = threading.Lock()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def current_time(self) -> int:
        return to_i64(self._clock())

    def _now(self, now: Optional[int]) -> int:
        return self.current_time() if now is None else to_i64(now)

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    @property
    def owner_config(self) -> OwnerConfig:
        return self.governance.config

    def initialize_owner_config(self, owner_key: str, fee_recipient: str, platform_fee: int,
                                referral_fee: int, swap_fee: int) -> OwnerConfig:
        return self.governance.initialize_owner_config(owner_key, fee_recipient, platform_fee, referral_fee, swap_fee)

    def set_fees(self, caller: str, fee_recipient: Optional[str] = None, platform_fee: Optional[int] = None,
                 referral_fee: Optional[int] = None, swap_fee: Optional[int] = None) -> OwnerConfig:
        return self.governance.set_fees(caller, fee_recipient, platform_fee, referral_fee, swap_fee)

    def nominate_new_owner(self, caller: str, new_owner_key: str) -> None:
        self.governance.nominate_new_owner(caller, new_owner_key)

    def accept_new_owner(self, caller: str) -> None:
        self.governance.accept_new_owner(caller)

    # ------------------------------------------------------------------
    # Pools and user state
    # ------------------------------------------------------------------

    def initialize_pool(self, creator: str, asset_token: str, share_token: str,
                        params: PoolParams) -> LiquidityBootstrappingPool:
        """
        Validates 'params', seeds the real reserves with params.assets/params.shares
        and registers the pool under (asset_token, share_token, creator).
        """
        PoolParamsValidator.validate(asset_token, share_token, params, self._settings)
        key = PoolKey(asset_token, share_token, creator)

        with self._registry_lock:
            if key in self._pools:
                raise PoolAlreadyInitialized(f"Pool {key} already exists")

            pool = LiquidityBootstrappingPool(
                asset_token=asset_token,
                share_token=share_token,
                creator=creator,
                virtual_assets=params.virtual_assets,
                virtual_shares=params.virtual_shares,
                max_share_price=params.max_share_price,
                max_shares_out=params.max_shares_out,
                max_assets_in=params.max_assets_in,
                start_weight_basis_points=params.start_weight_basis_points,
                end_weight_basis_points=params.end_weight_basis_points,
                sale_start_time=params.sale_start_time,
                sale_end_time=params.sale_end_time,
                vest_cliff=params.vest_cliff,
                vest_end=params.vest_end,
                whitelist_merkle_root=bytes(params.whitelist_merkle_root),
                selling_allowed=params.selling_allowed,
                asset_reserve=params.assets,
                share_reserve=params.shares,
            )
            self._pool_locks[key] = threading.RLock()
            self._pools[key] = pool

        self.events.emit(PoolCreatedEvent(pool=key))
        logger.info(
            "Pool %s created: assets=%s shares=%s weights=%s->%s sale=[%s, %s)",
            key, params.assets, params.shares, params.start_weight_basis_points,
            params.end_weight_basis_points, params.sale_start_time, params.sale_end_time
        )
        return replace(pool)

    def _require_pool(self, key: PoolKey) -> LiquidityBootstrappingPool:
        pool = self._pools.get(key)
        if pool is None:
            raise PoolNotFound(f"Pool {key} does not exist")
        return pool

    def _lock_for(self, key: PoolKey) -> threading.RLock:
        self._require_pool(key)
        return self._pool_locks[key]

    def get_pool(self, key: PoolKey) -> LiquidityBootstrappingPool:
        """A snapshot of the pool; mutating it has no effect on the engine."""
        with self._lock_for(key):
            return replace(self._require_pool(key))

    def get_user_state(self, key: PoolKey, user: str) -> Optional[UserStateInPool]:
        with self._lock_for(key):
            state = self._users.get((key, user))
            return replace(state) if state is not None else None

    def pool_status(self, key: PoolKey, now: Optional[int] = None) -> PoolStatus:
        return WeightSchedule.status_at(self.get_pool(key), self._now(now))

    def weights(self, key: PoolKey, now: Optional[int] = None) -> Tuple[int, int]:
        return WeightSchedule.weight_at(self.get_pool(key), self._now(now))

    # ------------------------------------------------------------------
    # Previews
    # ------------------------------------------------------------------

    def _preview(self, key: PoolKey, side: OrderSide, kind: SwapKind, amount: int, now: Optional[int]) -> Quote:
        now = self._now(now)
        pool = self.get_pool(key)
        config = self.governance.config
        return quote_swap(pool, config, side, kind, amount, now)

    def preview_assets_in(self, key: PoolKey, shares_out: int, now: Optional[int] = None) -> int:
        """Gross assets, fees included, needed to buy exactly 'shares_out'."""
        return self._preview(key, OrderSide.BUY, SwapKind.EXACT_OUT, shares_out, now).assets

    def preview_shares_in(self, key: PoolKey, assets_out: int, now: Optional[int] = None) -> int:
        """Gross shares, fees included, needed to receive exactly 'assets_out'."""
        return self._preview(key, OrderSide.SELL, SwapKind.EXACT_OUT, assets_out, now).shares

    def preview_shares_out(self, key: PoolKey, assets_in: int, now: Optional[int] = None) -> int:
        """Shares credited for paying exactly 'assets_in', fees included."""
        return self._preview(key, OrderSide.BUY, SwapKind.EXACT_IN, assets_in, now).shares

    def preview_assets_out(self, key: PoolKey, shares_in: int, now: Optional[int] = None) -> int:
        """Assets paid out for selling exactly 'shares_in', fees included."""
        return self._preview(key, OrderSide.SELL, SwapKind.EXACT_IN, shares_in, now).assets

    def preview(self, key: PoolKey, kind: PreviewKind, amount: int, now: Optional[int] = None) -> int:
        previews = {
            PreviewKind.ASSETS_IN: self.preview_assets_in,
            PreviewKind.SHARES_IN: self.preview_shares_in,
            PreviewKind.SHARES_OUT: self.preview_shares_out,
            PreviewKind.ASSETS_OUT: self.preview_assets_out,
        }
        return previews[kind](key, amount, now)

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def swap_exact_assets_for_shares(self, key: PoolKey, user: str, assets_in: int, min_shares_out: int,
                                     merkle_proof: Optional[Sequence[bytes]] = None,
                                     referrer: Optional[str] = None, now: Optional[int] = None) -> SwapResult:
        return self._swap(key, user, OrderSide.BUY, SwapKind.EXACT_IN, assets_in, min_shares_out,
                          merkle_proof, referrer, now)

    def swap_assets_for_exact_shares(self, key: PoolKey, user: str, shares_out: int, max_assets_in: int,
                                     merkle_proof: Optional[Sequence[bytes]] = None,
                                     referrer: Optional[str] = None, now: Optional[int] = None) -> SwapResult:
        return self._swap(key, user, OrderSide.BUY, SwapKind.EXACT_OUT, shares_out, max_assets_in,
                          merkle_proof, referrer, now)

    def swap_exact_shares_for_assets(self, key: PoolKey, user: str, shares_in: int, min_assets_out: int,
                                     merkle_proof: Optional[Sequence[bytes]] = None,
                                     referrer: Optional[str] = None, now: Optional[int] = None) -> SwapResult:
        return self._swap(key, user, OrderSide.SELL, SwapKind.EXACT_IN, shares_in, min_assets_out,
                          merkle_proof, referrer, now)

    def swap_shares_for_exact_assets(self, key: PoolKey, user: str, assets_out: int, max_shares_in: int,
                                     merkle_proof: Optional[Sequence[bytes]] = None,
                                     referrer: Optional[str] = None, now: Optional[int] = None) -> SwapResult:
        return self._swap(key, user, OrderSide.SELL, SwapKind.EXACT_OUT, assets_out, max_shares_in,
                          merkle_proof, referrer, now)

    @staticmethod
    def _check_admission(pool: LiquidityBootstrappingPool, user: str, side: OrderSide,
                         merkle_proof: Optional[Sequence[bytes]], now: int):
        if pool.closed:
            raise TradingDisallowed("Pool is closed")
        if not WeightSchedule.status_at(pool, now).accepts_trades:
            raise TradingDisallowed("Sale is not active")
        if side is OrderSide.SELL and not pool.selling_allowed:
            raise SellingDisallowed()
        WhitelistVerifier.require_whitelisted(pool.whitelist_merkle_root, user, merkle_proof)
        if user == pool.creator:
            raise CallerDisallowed("Pool creator cannot trade against their own pool")

    @staticmethod
    def _check_caps(pool: LiquidityBootstrappingPool, quote: Quote):
        if quote.side is OrderSide.SELL:
            if quote.assets > pool.asset_reserve:
                raise AmountOutTooLarge(f"Pool holds only {pool.asset_reserve} assets")
            return

        if quote.assets > pool.max_assets_in:
            raise AssetsInExceeded()
        if quote.shares > pool.max_shares_out:
            raise SharesOutExceeded()
        if quote.shares > pool.share_reserve:
            raise SharesOutExceeded(f"Pool holds only {pool.share_reserve} shares")
        if quote.shares == 0:
            raise AssetsInExceeded("Trade buys no shares")
        if mul_div_down(quote.fees.net, WAD, quote.shares) > pool.max_share_price:
            raise AssetsInExceeded("Max share price exceeded")

    @staticmethod
    def _check_slippage(quote: Quote, limit: int):
        if quote.side is OrderSide.BUY:
            violated = quote.shares < limit if quote.kind is SwapKind.EXACT_IN else quote.assets > limit
        else:
            violated = quote.assets < limit if quote.kind is SwapKind.EXACT_IN else quote.shares > limit
        if violated:
            raise SlippageExceeded()

    def _swap(self, key: PoolKey, user: str, side: OrderSide, kind: SwapKind, amount: int, limit: int,
              merkle_proof: Optional[Sequence[bytes]], referrer: Optional[str], now: Optional[int]) -> SwapResult:
        now = self._now(now)
        to_u64(amount)
        to_u64(limit)
        if amount == 0:
            raise InvalidAssetValue("Swap amount cannot be 0.")

        with self._lock_for(key):
            pool = self._require_pool(key)
            try:
                self._check_admission(pool, user, side, merkle_proof, now)
                config = self.governance.config
                has_referrer = side is OrderSide.BUY and FeeLedger.referral_is_valid(user, referrer)

                quote = quote_swap(pool, config, side, kind, amount, now, has_referrer)
                self._check_caps(pool, quote)
                self._check_slippage(quote, limit)

                if side is OrderSide.BUY:
                    self._commit_buy(pool, user, quote, referrer if has_referrer else None)
                else:
                    self._commit_sell(pool, user, quote)
            except LbpError as e:
                logger.debug("Rejected %s %s on %s by %s: %s", side, kind, key, user, e.name)
                raise

        result = SwapResult(
            pool=key,
            user=user,
            side=side,
            kind=kind,
            assets=quote.assets,
            shares=quote.shares,
            fees=quote.fees,
            referrer=referrer if has_referrer else None,
        )
        logger.info("%s on %s by %s: assets=%s shares=%s swap_fee=%s",
                    side, key, user, quote.assets, quote.shares, quote.fees.swap_fee)
        return result

    def _commit_buy(self, pool: LiquidityBootstrappingPool, user: str, quote: Quote, referrer: Optional[str]):
        key = pool.key
        # compute everything first; assignments below cannot fail
        asset_reserve = checked_add(pool.asset_reserve, quote.fees.net)
        share_reserve = checked_sub(pool.share_reserve, quote.shares)
        total_purchased = checked_add(pool.total_purchased, quote.shares)
        fee_totals = FeeLedger.record(pool, OrderSide.BUY, quote.fees)

        user_state = self._users.get((key, user)) or UserStateInPool()
        purchased = checked_add(user_state.purchased_shares, quote.shares)

        referrer_state = None
        referred = 0
        if referrer is not None:
            referrer_state = self._users.get((key, referrer)) or UserStateInPool()
            referred = checked_add(referrer_state.referred_assets, quote.fees.referral_fee)

        pool.asset_reserve = asset_reserve
        pool.share_reserve = share_reserve
        pool.total_purchased = total_purchased
        FeeLedger.apply(pool, fee_totals)
        user_state.purchased_shares = purchased
        self._users[(key, user)] = user_state
        if referrer_state is not None:
            referrer_state.referred_assets = referred
            self._users[(key, referrer)] = referrer_state

        self.events.emit(BuyEvent(
            pool=key, user=user, assets=quote.assets, shares=quote.shares, swap_fee=quote.fees.swap_fee
        ))

    def _commit_sell(self, pool: LiquidityBootstrappingPool, user: str, quote: Quote):
        key = pool.key
        user_state = self._users.get((key, user)) or UserStateInPool()
        checked_sub(checked_sub(user_state.purchased_shares, user_state.redeemed_shares), quote.shares)
        purchased = checked_sub(user_state.purchased_shares, quote.shares)

        share_reserve = checked_add(pool.share_reserve, quote.fees.net)
        asset_reserve = checked_sub(pool.asset_reserve, quote.assets)
        total_purchased = checked_sub(pool.total_purchased, quote.shares)
        fee_totals = FeeLedger.record(pool, OrderSide.SELL, quote.fees)

        pool.share_reserve = share_reserve
        pool.asset_reserve = asset_reserve
        pool.total_purchased = total_purchased
        FeeLedger.apply(pool, fee_totals)
        user_state.purchased_shares = purchased
        self._users[(key, user)] = user_state

        self.events.emit(SellEvent(
            pool=key, user=user, shares=quote.shares, assets=quote.assets, swap_fee=quote.fees.swap_fee
        ))

    # ------------------------------------------------------------------
    # Vesting
    # ------------------------------------------------------------------

    @staticmethod
    def releasable_shares(pool: LiquidityBootstrappingPool, state: Optional[UserStateInPool], now: int) -> int:
        """
        purchased * clamp((now - cliff) / (vest_end - cliff), 0, 1) - redeemed, floored.
        """
        if state is None or now < pool.vest_cliff:
            raise RedeemingDisallowed("Vesting has not started")
        if state.redeemed_shares >= state.purchased_shares:
            raise RedeemingDisallowed("All purchased shares are redeemed")

        if now >= pool.vest_end or pool.vest_end == pool.vest_cliff:
            vested = state.purchased_shares
        else:
            vested = mul_div_down(state.purchased_shares, now - pool.vest_cliff, pool.vest_end - pool.vest_cliff)
        return checked_sub(vested, state.redeemed_shares)

    def preview_redeem(self, key: PoolKey, user: str, now: Optional[int] = None) -> int:
        now = self._now(now)
        with self._lock_for(key):
            return self.releasable_shares(self._require_pool(key), self._users.get((key, user)), now)

    def redeem(self, key: PoolKey, user: str, now: Optional[int] = None) -> RedeemResult:
        """
        Releases every vested share not yet redeemed. The host transfers 'shares' to the user.
        """
        now = self._now(now)
        with self._lock_for(key):
            pool = self._require_pool(key)
            state = self._users.get((key, user))
            releasable = self.releasable_shares(pool, state, now)
            state.redeemed_shares = checked_add(state.redeemed_shares, releasable)
            if releasable:
                self.events.emit(RedeemEvent(pool=key, user=user, shares=releasable))
            result = RedeemResult(
                pool=key,
                user=user,
                shares=releasable,
                redeemed_shares=state.redeemed_shares,
                purchased_shares=state.purchased_shares,
            )
        logger.info("Redeemed %s shares on %s for %s", releasable, key, user)
        return result

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def close_pool(self, key: PoolKey, caller: str, now: Optional[int] = None) -> CloseResult:
        """
        Marks an ended pool closed and reports what the host must settle: the real
        asset reserve and unsold shares go to the creator, platform and swap fees
        to the fee recipient, referral fees stay owed to referrers.
        """
        now = self._now(now)
        with self._lock_for(key):
            pool = self._require_pool(key)
            owner = self.governance.config.owner if self.governance.is_initialized else None
            if caller != pool.creator and caller != owner:
                raise Unauthorized(f"{caller} cannot close pool {key}")
            if pool.closed:
                raise ClosingDisallowed("Pool is already closed")
            if now < pool.sale_end_time:
                raise ClosingDisallowed("Sale has not ended")

            pool.closed = True
            result = CloseResult(
                pool=key,
                creator_assets=pool.asset_reserve,
                creator_shares=pool.share_reserve,
                platform_fees_asset=pool.total_platform_fees_asset,
                swap_fees_asset=pool.total_swap_fees_asset,
                swap_fees_share=pool.total_swap_fees_share,
                total_referred=pool.total_referred,
                total_purchased=pool.total_purchased,
            )
            self.events.emit(PoolClosedEvent(pool=key))

        logger.info("Pool %s closed by %s", key, caller)
        return result
