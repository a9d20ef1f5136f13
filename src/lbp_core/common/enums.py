from enum import Enum


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class SwapKind(Enum):
    """Which leg of a swap the caller fixes."""
    EXACT_IN = "EXACT_IN"
    EXACT_OUT = "EXACT_OUT"

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class PoolStatus(Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    CLOSED = "CLOSED"

    @property
    def accepts_trades(self) -> bool:
        return self is PoolStatus.ACTIVE

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class Rounding(Enum):
    """Direction for integer rounding of a fractional result."""
    DOWN = "DOWN"
    UP = "UP"

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class PreviewKind(Enum):
    """The four read-only quotes a pool exposes."""
    ASSETS_IN = "ASSETS_IN"
    SHARES_IN = "SHARES_IN"
    SHARES_OUT = "SHARES_OUT"
    ASSETS_OUT = "ASSETS_OUT"

    @classmethod
    def from_str(cls, kind_str):
        for kind in PreviewKind:
            if kind_str.upper() == kind.name:
                return kind
        raise NotImplementedError(f"No preview kind enum for {kind_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()
