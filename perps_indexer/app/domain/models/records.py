from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OrderType(str, Enum):
    MARKET_SWAP = "MarketSwap"
    LIMIT_SWAP = "LimitSwap"
    MARKET_INCREASE = "MarketIncrease"
    LIMIT_INCREASE = "LimitIncrease"
    MARKET_DECREASE = "MarketDecrease"
    LIMIT_DECREASE = "LimitDecrease"
    STOP_LOSS_DECREASE = "StopLossDecrease"
    LIQUIDATION = "Liquidation"


class DecreasePositionSwapType(str, Enum):
    NO_SWAP = "NoSwap"
    SWAP_PNL_TOKEN_TO_COLLATERAL_TOKEN = "SwapPnlTokenToCollateralToken"
    SWAP_COLLATERAL_TOKEN_TO_PNL_TOKEN = "SwapCollateralTokenToPnlToken"


# On-chain integer codes, as emitted by the protocol contracts.
ORDER_TYPE_CODES: dict[int, OrderType] = {
    4: OrderType.MARKET_SWAP,
    5: OrderType.LIMIT_SWAP,
    6: OrderType.MARKET_INCREASE,
    7: OrderType.LIMIT_INCREASE,
    8: OrderType.MARKET_DECREASE,
    9: OrderType.LIMIT_DECREASE,
    10: OrderType.STOP_LOSS_DECREASE,
    11: OrderType.LIQUIDATION,
}

DECREASE_POSITION_SWAP_TYPE_CODES: dict[int, DecreasePositionSwapType] = {
    0: DecreasePositionSwapType.NO_SWAP,
    1: DecreasePositionSwapType.SWAP_PNL_TOKEN_TO_COLLATERAL_TOKEN,
    2: DecreasePositionSwapType.SWAP_COLLATERAL_TOKEN_TO_PNL_TOKEN,
}


@dataclass(frozen=True, kw_only=True)
class EventRecord:
    """
    Fields shared by every decoded record.

    (transaction_hash, event_index) is the record identity used for idempotent inserts.
    provisional records come from the pending block: their block_number and
    block_timestamp are estimates until the confirmed stream re-observes them.
    """

    transaction_hash: str
    block_number: int | None = None
    primary_key: str | None = None
    event_index: int = 0
    block_timestamp: str | None = None
    provisional: bool = False


@dataclass(frozen=True, kw_only=True)
class Order(EventRecord):
    order_key: str | None = None
    order_type: OrderType | None = None
    decrease_position_swap_type: DecreasePositionSwapType | None = None
    account: str | None = None
    receiver: str | None = None
    callback_contract: str | None = None
    ui_fee_receiver: str | None = None
    market: str | None = None
    initial_collateral_token: str | None = None
    swap_path: tuple[str, ...] = field(default_factory=tuple)
    size_delta_usd: int | None = None
    initial_collateral_delta_amount: int | None = None
    trigger_price: int | None = None
    acceptable_price: int | None = None
    execution_fee: int | None = None
    callback_gas_limit: int | None = None
    min_output_amount: int | None = None
    updated_at_block: int | None = None
    is_long: bool | None = None
    is_frozen: bool | None = None


@dataclass(frozen=True, kw_only=True)
class Deposit(EventRecord):
    account: str | None = None
    receiver: str | None = None
    callback_contract: str | None = None
    market: str | None = None
    initial_long_token: str | None = None
    initial_short_token: str | None = None
    long_token_swap_path: str | None = None
    short_token_swap_path: str | None = None
    initial_long_token_amount: int | None = None
    initial_short_token_amount: int | None = None
    min_market_tokens: int | None = None
    updated_at_block: int | None = None
    execution_fee: int | None = None
    callback_gas_limit: int | None = None


@dataclass(frozen=True, kw_only=True)
class Withdrawal(EventRecord):
    account: str | None = None
    receiver: str | None = None
    callback_contract: str | None = None
    market: str | None = None
    long_token_swap_path: str | None = None
    short_token_swap_path: str | None = None
    market_token_amount: int | None = None
    min_long_token_amount: int | None = None
    min_short_token_amount: int | None = None
    updated_at_block: int | None = None
    execution_fee: int | None = None
    callback_gas_limit: int | None = None


@dataclass(frozen=True, kw_only=True)
class MarketCreated(EventRecord):
    creator: str | None = None
    market_token: str | None = None
    index_token: str | None = None
    long_token: str | None = None
    short_token: str | None = None
    market_type: str | None = None


@dataclass(frozen=True, kw_only=True)
class SwapInfo(EventRecord):
    order_key: str | None = None
    market: str | None = None
    receiver: str | None = None
    token_in: str | None = None
    token_out: str | None = None
    token_in_price: int | None = None
    token_out_price: int | None = None
    amount_in: int | None = None
    amount_in_after_fees: int | None = None
    amount_out: int | None = None
    price_impact_usd_mag: int | None = None
    price_impact_usd_sign: bool | None = None
    price_impact_amount_mag: int | None = None
    price_impact_amount_sign: bool | None = None


@dataclass(frozen=True, kw_only=True)
class PoolAmountUpdated(EventRecord):
    market: str | None = None
    token: str | None = None
    delta_mag: int | None = None
    delta_sign: bool | None = None
    next_value: int | None = None


@dataclass(frozen=True, kw_only=True)
class PositionIncrease(EventRecord):
    # Every payload field is required for this kind; defaults only satisfy
    # dataclass ordering and are never relied upon by the decoder.
    key: str = ""
    account: str = ""
    market: str = ""
    collateral_token: str = ""
    size_in_usd: int = 0
    size_in_tokens: int = 0
    collateral_amount: int = 0
    borrowing_factor: int = 0
    funding_fee_amount_per_size: int = 0
    long_token_claimable_funding_amount_per_size: int = 0
    short_token_claimable_funding_amount_per_size: int = 0
    increased_at_block: int = 0
    decreased_at_block: int = 0
    is_long: bool = False


@dataclass(frozen=True, kw_only=True)
class SwapFeesCollected(EventRecord):
    market: str | None = None
    token: str | None = None
    token_price: int | None = None
    action: str | None = None
    fee_receiver_amount: int | None = None
    fee_amount_for_pool: int | None = None
    amount_after_fees: int | None = None
    ui_fee_receiver: str | None = None
    ui_fee_receiver_factor: int | None = None
    ui_fee_amount: int | None = None


@dataclass(frozen=True, kw_only=True)
class OrderExecuted(EventRecord):
    secondary_order_type: str | None = None


TypedRecord = (
    Order
    | Deposit
    | Withdrawal
    | MarketCreated
    | SwapInfo
    | PoolAmountUpdated
    | PositionIncrease
    | SwapFeesCollected
    | OrderExecuted
)
