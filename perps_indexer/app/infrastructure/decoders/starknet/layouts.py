from __future__ import annotations

from typing import Sequence

from perps_indexer.app.application.services.decoder_registry import (
    DecodeFn,
    DecoderRegistry,
    EventDescriptor,
)
from perps_indexer.app.domain.models.raw_event import RawEvent
from perps_indexer.app.domain.models.records import (
    DECREASE_POSITION_SWAP_TYPE_CODES,
    ORDER_TYPE_CODES,
    Deposit,
    EventRecord,
    MarketCreated,
    Order,
    OrderExecuted,
    PoolAmountUpdated,
    PositionIncrease,
    SwapFeesCollected,
    SwapInfo,
    Withdrawal,
)
from perps_indexer.app.infrastructure.decoders.positional import (
    Field,
    LayoutEntry,
    LengthPrefixed,
    Skip,
    address,
    dec_int,
    enum_code,
    flag,
    hex_int,
    read_fields,
    text,
)
from perps_indexer.app.infrastructure.decoders.starknet.selectors import starknet_selector


# -----------------------------------------------------------------------------
# Event selectors (keys[0] of each emitted event)
# -----------------------------------------------------------------------------
ORDER_CREATED_SIGNATURE = "0x03427759bfd3b941f14e687e129519da3c9b0046c5b9aaa290bb1dede63753b3"
DEPOSIT_CREATED_SIGNATURE = "0x00ee02d31cafad9001fbdc4dd5cf4957e152a372530316a7d856401e4c5d74bd"
WITHDRAWAL_CREATED_SIGNATURE = "0x02021e2242f6c652ae824bc1428ee0fe7e8771a27295b9450792445dc456e37d"
MARKET_CREATED_SIGNATURE = "0x015d762f1fc581b3e684cf095d93d3a2c10754f60124b09bec8bf3d76473baaf"
SWAP_INFO_SIGNATURE = "0x03534d650a9b8eb67820f87038b8e8b36b741c6f7eb14d1a7ac5027e80fd4a82"
POOL_AMOUNT_UPDATED_SIGNATURE = starknet_selector("PoolAmountUpdated")
POSITION_INCREASE_SIGNATURE = "0x014196ccb31f81a3e67df18f2a62cbfb50009c80a7d3c728a3f542e3abc5cb63"
SWAP_FEES_COLLECTED_SIGNATURE = "0x035c99b746450c623be607459294d15f458678f99d535718db6cfcbccb117c09"
ORDER_EXECUTED_SIGNATURE = "0x0392fd46c9dd1864ee8b38c8d7dd91cb8e1080856b554ce6d5560dae09b41181"

# Cairo bool serialized as a felt.
_FELT_TRUE = "0x1"
_U256 = 2


# -----------------------------------------------------------------------------
# Layouts: payload slots in wire order
# -----------------------------------------------------------------------------
ORDER_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("order_key", address),
    Skip(1),
    Field("order_type", enum_code(ORDER_TYPE_CODES)),
    Field("decrease_position_swap_type", enum_code(DECREASE_POSITION_SWAP_TYPE_CODES)),
    Field("account", address),
    Field("receiver", address),
    Field("callback_contract", address),
    Field("ui_fee_receiver", address),
    Field("market", address),
    Field("initial_collateral_token", address),
    LengthPrefixed("swap_path", address),
    Field("size_delta_usd", hex_int, width=_U256),
    Field("initial_collateral_delta_amount", hex_int, width=_U256),
    Field("trigger_price", hex_int, width=_U256),
    Field("acceptable_price", hex_int, width=_U256),
    Field("execution_fee", hex_int, width=_U256),
    Field("callback_gas_limit", hex_int, width=_U256),
    Field("min_output_amount", hex_int, width=_U256),
    Field("updated_at_block", hex_int),
    Field("is_long", flag(_FELT_TRUE)),
    Field("is_frozen", flag(_FELT_TRUE)),
)

DEPOSIT_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("account", address),
    Field("receiver", address),
    Field("callback_contract", address),
    Field("market", address),
    Field("initial_long_token", address),
    Field("initial_short_token", address),
    Field("long_token_swap_path", text),
    Field("short_token_swap_path", text),
    Field("initial_long_token_amount", dec_int),
    Field("initial_short_token_amount", dec_int),
    Field("min_market_tokens", dec_int),
    Field("updated_at_block", dec_int),
    Field("execution_fee", dec_int),
    Field("callback_gas_limit", dec_int),
)

WITHDRAWAL_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("account", address),
    Field("receiver", address),
    Field("callback_contract", address),
    Field("market", address),
    Field("long_token_swap_path", text),
    Field("short_token_swap_path", text),
    Field("market_token_amount", dec_int),
    Field("min_long_token_amount", dec_int),
    Field("min_short_token_amount", dec_int),
    Field("updated_at_block", dec_int),
    Field("execution_fee", dec_int),
    Field("callback_gas_limit", dec_int),
)

MARKET_CREATED_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("creator", address),
    Field("market_token", address),
    Field("index_token", address),
    Field("long_token", address),
    Field("short_token", address),
    Field("market_type", text),
)

SWAP_INFO_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("order_key", address),
    Field("market", address),
    Field("receiver", address),
    Field("token_in", address),
    Field("token_out", address),
    Field("token_in_price", dec_int),
    Field("token_out_price", dec_int),
    Field("amount_in", dec_int),
    Field("amount_in_after_fees", dec_int),
    Field("amount_out", dec_int),
    Field("price_impact_usd_mag", dec_int),
    Field("price_impact_usd_sign", flag(_FELT_TRUE)),
    Field("price_impact_amount_mag", dec_int),
    Field("price_impact_amount_sign", flag(_FELT_TRUE)),
)

POOL_AMOUNT_UPDATED_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("market", address),
    Field("token", address),
    Field("delta_mag", dec_int),
    Field("delta_sign", flag(_FELT_TRUE)),
    Field("next_value", dec_int),
)

# Position snapshots are only useful complete: every slot is required.
POSITION_INCREASE_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("key", address, required=True),
    Field("account", address, required=True),
    Field("market", address, required=True),
    Field("collateral_token", address, required=True),
    Field("size_in_usd", dec_int, required=True),
    Field("size_in_tokens", dec_int, required=True),
    Field("collateral_amount", dec_int, required=True),
    Field("borrowing_factor", dec_int, required=True),
    Field("funding_fee_amount_per_size", dec_int, required=True),
    Field("long_token_claimable_funding_amount_per_size", dec_int, required=True),
    Field("short_token_claimable_funding_amount_per_size", dec_int, required=True),
    Field("increased_at_block", dec_int, required=True),
    Field("decreased_at_block", dec_int, required=True),
    Field("is_long", flag("1"), required=True),
)

SWAP_FEES_COLLECTED_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("market", address),
    Field("token", address),
    Field("token_price", dec_int),
    Field("action", text),
    Field("fee_receiver_amount", dec_int),
    Field("fee_amount_for_pool", dec_int),
    Field("amount_after_fees", dec_int),
    Field("ui_fee_receiver", address),
    Field("ui_fee_receiver_factor", dec_int),
    Field("ui_fee_amount", dec_int),
)

ORDER_EXECUTED_LAYOUT: tuple[LayoutEntry, ...] = (
    Field("secondary_order_type", text),
)


def make_decoder(record_cls: type[EventRecord], layout: Sequence[LayoutEntry]) -> DecodeFn:
    """Bind a record class to its layout: RawEvent -> record."""

    def decode(event: RawEvent) -> EventRecord:
        fields = read_fields(event.payload, layout)
        return record_cls(
            transaction_hash=event.transaction_hash,
            block_number=event.block_number,
            primary_key=event.primary_key,
            event_index=event.event_index,
            block_timestamp=event.timestamp,
            provisional=event.provisional,
            **fields,
        )

    decode.__name__ = f"decode_{record_cls.__name__}"
    return decode


# name, signature, record class, layout
_KINDS: tuple[tuple[str, str, type[EventRecord], tuple[LayoutEntry, ...]], ...] = (
    ("OrderCreated", ORDER_CREATED_SIGNATURE, Order, ORDER_LAYOUT),
    ("DepositCreated", DEPOSIT_CREATED_SIGNATURE, Deposit, DEPOSIT_LAYOUT),
    ("WithdrawalCreated", WITHDRAWAL_CREATED_SIGNATURE, Withdrawal, WITHDRAWAL_LAYOUT),
    ("MarketCreated", MARKET_CREATED_SIGNATURE, MarketCreated, MARKET_CREATED_LAYOUT),
    ("SwapInfo", SWAP_INFO_SIGNATURE, SwapInfo, SWAP_INFO_LAYOUT),
    ("PoolAmountUpdated", POOL_AMOUNT_UPDATED_SIGNATURE, PoolAmountUpdated, POOL_AMOUNT_UPDATED_LAYOUT),
    ("PositionIncrease", POSITION_INCREASE_SIGNATURE, PositionIncrease, POSITION_INCREASE_LAYOUT),
    ("SwapFeesCollected", SWAP_FEES_COLLECTED_SIGNATURE, SwapFeesCollected, SWAP_FEES_COLLECTED_LAYOUT),
    ("OrderExecuted", ORDER_EXECUTED_SIGNATURE, OrderExecuted, ORDER_EXECUTED_LAYOUT),
)


def default_descriptors() -> list[EventDescriptor]:
    return [
        EventDescriptor(
            signature=signature,
            decode=make_decoder(record_cls, layout),
            name=name,
        )
        for name, signature, record_cls, layout in _KINDS
    ]


def build_default_registry() -> DecoderRegistry:
    """Registry with every protocol event kind this indexer understands."""
    return DecoderRegistry(default_descriptors())
