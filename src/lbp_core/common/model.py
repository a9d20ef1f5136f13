from dataclasses import dataclass, field
from typing import List, Optional

from lbp_core.common.enums import OrderSide, SwapKind


ZERO_ROOT = bytes(32)


@dataclass(frozen=True)
class PoolKey:
    """Identifies a pool: one pool per (asset, share, creator) triple."""
    asset_token: str
    share_token: str
    creator: str

    def __str__(self):
        return f"{self.asset_token}/{self.share_token}@{self.creator}"


@dataclass
class PoolParams:
    """Arguments for creating a pool. Amounts are token base units."""
    assets: int
    shares: int
    virtual_assets: int
    virtual_shares: int
    max_share_price: int
    max_shares_out: int
    max_assets_in: int
    start_weight_basis_points: int
    end_weight_basis_points: int
    sale_start_time: int
    sale_end_time: int
    vest_cliff: int
    vest_end: int
    whitelist_merkle_root: bytes = ZERO_ROOT
    selling_allowed: bool = False


@dataclass
class LiquidityBootstrappingPool:
    """Runtime record of a pool. Everything above 'selling_allowed' is immutable after creation."""
    asset_token: str
    share_token: str
    creator: str
    virtual_assets: int
    virtual_shares: int
    max_share_price: int
    max_shares_out: int
    max_assets_in: int
    start_weight_basis_points: int
    end_weight_basis_points: int
    sale_start_time: int
    sale_end_time: int
    vest_cliff: int
    vest_end: int
    whitelist_merkle_root: bytes = ZERO_ROOT
    selling_allowed: bool = False
    closed: bool = False
    asset_reserve: int = 0
    share_reserve: int = 0
    total_purchased: int = 0
    total_referred: int = 0
    total_swap_fees_asset: int = 0
    total_swap_fees_share: int = 0
    total_platform_fees_asset: int = 0

    @property
    def key(self) -> PoolKey:
        return PoolKey(self.asset_token, self.share_token, self.creator)

    @property
    def whitelist_enabled(self) -> bool:
        return self.whitelist_merkle_root != ZERO_ROOT

    @property
    def asset_balance(self) -> int:
        """Asset balance used for pricing: real reserve plus virtual reserve."""
        return self.asset_reserve + self.virtual_assets

    @property
    def share_balance(self) -> int:
        """Share balance used for pricing: real reserve plus virtual reserve."""
        return self.share_reserve + self.virtual_shares


@dataclass
class UserStateInPool:
    purchased_shares: int = 0
    referred_assets: int = 0
    redeemed_shares: int = 0


@dataclass
class OwnerConfig:
    owner: str
    fee_recipient: str
    platform_fee: int
    referral_fee: int
    swap_fee: int
    pending_owner: Optional[str] = None


@dataclass(frozen=True)
class FeeSplit:
    """How a gross amount divides between fees and the amount that reaches the reserves."""
    gross: int
    platform_fee: int = 0
    referral_fee: int = 0
    swap_fee: int = 0

    @property
    def total_fees(self) -> int:
        return self.platform_fee + self.referral_fee + self.swap_fee

    @property
    def net(self) -> int:
        return self.gross - self.total_fees


@dataclass(frozen=True)
class SwapResult:
    """
    Outcome of a committed swap. 'assets' and 'shares' are what the user pays or
    receives: for a buy, gross assets paid and shares credited; for a sell, gross
    shares given up and assets paid out.
    """
    pool: PoolKey
    user: str
    side: OrderSide
    kind: SwapKind
    assets: int
    shares: int
    fees: FeeSplit
    referrer: Optional[str] = None


@dataclass(frozen=True)
class RedeemResult:
    pool: PoolKey
    user: str
    shares: int
    redeemed_shares: int
    purchased_shares: int


@dataclass(frozen=True)
class CloseResult:
    """Amounts a host must settle when a pool closes."""
    pool: PoolKey
    creator_assets: int
    creator_shares: int
    platform_fees_asset: int
    swap_fees_asset: int
    swap_fees_share: int
    total_referred: int
    total_purchased: int


@dataclass(frozen=True)
class PoolCreatedEvent:
    pool: PoolKey


@dataclass(frozen=True)
class BuyEvent:
    pool: PoolKey
    user: str
    assets: int
    shares: int
    swap_fee: int


@dataclass(frozen=True)
class SellEvent:
    pool: PoolKey
    user: str
    shares: int
    assets: int
    swap_fee: int


@dataclass(frozen=True)
class FeeSetEvent:
    fee_recipient: str
    platform_fee: int
    referral_fee: int
    swap_fee: int


@dataclass(frozen=True)
class RedeemEvent:
    pool: PoolKey
    user: str
    shares: int


@dataclass(frozen=True)
class PoolClosedEvent:
    pool: PoolKey


@dataclass
class EventLog:
    """Append-only record of events emitted by the engine."""
    events: List[object] = field(default_factory=list)

    def emit(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> List[object]:
        return [e for e in self.events if isinstance(e, event_type)]

    def __len__(self):
        return len(self.events)
