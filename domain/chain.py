"""
Domain: On-chain payment-link receipts.

The AaaSPaymentLink contract emits

    PaymentLinkCreated(uint256 indexed linkId, address indexed seller,
                       uint256 amount, string productName)

when a seller creates a payment link. Indexed arguments live in the log
topics (topics[0] is the event signature hash), so linkId is topics[1] and
seller is topics[2]. The first word of the data section is the amount in
USDC base units.

A buyer paying through a link emits

    PaymentReceived(uint256 indexed linkId, address indexed buyer,
                    address indexed seller, uint256 amount, uint256 fee)

with linkId, buyer and seller in topics[1..3] and amount, fee in the data.

When a receipt carries no creation event the link id falls back to
DEFAULT_LINK_ID. Callers get `from_event=False` so the branch can be logged
or rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Tuple

# keccak256("PaymentLinkCreated(uint256,address,uint256,string)")
PAYMENT_LINK_CREATED_TOPIC: str = (
    "0xef1f3d539c104c6347010f10ce2d8b167addb679bf025142b931a7ed96f69405"
)
# keccak256("PaymentReceived(uint256,address,address,uint256,uint256)")
PAYMENT_RECEIVED_TOPIC: str = (
    "0x97a560c1f75713f086cb846ee29d9284d3ce238c5913d3fb5d65dc4d16512283"
)

DEFAULT_LINK_ID: int = 1
USDC_DECIMALS: int = 6
_WORD_HEX_CHARS: int = 64


@dataclass(frozen=True, slots=True)
class LogEntry:
    address: str
    topics: Tuple[str, ...]
    data: str = "0x"

    @staticmethod
    def from_rpc(raw: Mapping[str, Any]) -> "LogEntry":
        return LogEntry(
            address=str(raw.get("address") or "").lower(),
            topics=tuple(str(t).lower() for t in raw.get("topics") or ()),
            data=str(raw.get("data") or "0x"),
        )


@dataclass(frozen=True, slots=True)
class TransactionReceipt:
    """Subset of an `eth_getTransactionReceipt` result."""

    tx_hash: str
    succeeded: bool
    from_address: str
    to_address: Optional[str] = None
    block_number: Optional[int] = None
    logs: Tuple[LogEntry, ...] = field(default_factory=tuple)

    @staticmethod
    def from_rpc(raw: Mapping[str, Any]) -> "TransactionReceipt":
        block = raw.get("blockNumber")
        return TransactionReceipt(
            tx_hash=str(raw["transactionHash"]).lower(),
            succeeded=_hex_to_int(raw.get("status", "0x1")) == 1,
            from_address=str(raw.get("from") or "").lower(),
            to_address=str(raw["to"]).lower() if raw.get("to") else None,
            block_number=_hex_to_int(block) if block is not None else None,
            logs=tuple(LogEntry.from_rpc(log) for log in raw.get("logs") or ()),
        )


@dataclass(frozen=True, slots=True)
class LinkIdResolution:
    """
    Outcome of scanning a receipt for the creation event.

    from_event is False when DEFAULT_LINK_ID was substituted.
    """

    link_id: int
    from_event: bool
    amount_base_units: Optional[int] = None
    seller: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return not self.from_event


@dataclass(frozen=True, slots=True)
class PaymentEvent:
    """
    Decoded PaymentReceived(uint256 indexed linkId, address indexed buyer,
    address indexed seller, uint256 amount, uint256 fee).
    """

    link_id: int
    buyer: str
    seller: str
    amount_base_units: Optional[int]
    fee_base_units: Optional[int] = None


def _hex_to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(str(value), 16)


def _topic_to_address(topic: str) -> str:
    # addresses are left-padded to 32 bytes
    return "0x" + topic[-40:].lower()


def _data_word(data: str, index: int) -> Optional[int]:
    payload = data[2:] if data.startswith("0x") else data
    start = index * _WORD_HEX_CHARS
    if len(payload) < start + _WORD_HEX_CHARS:
        return None
    return int(payload[start:start + _WORD_HEX_CHARS], 16)


def extract_link_id(
    logs: Iterable[LogEntry],
    contract_address: Optional[str] = None,
) -> LinkIdResolution:
    """
    Find the PaymentLinkCreated event and read its linkId.

    Logs emitted by other contracts are skipped when contract_address is given.
    Falls back to DEFAULT_LINK_ID when no matching event exists.
    """

    expected_address = contract_address.lower() if contract_address else None

    for log in logs:
        if expected_address and log.address != expected_address:
            continue
        if len(log.topics) < 3 or log.topics[0] != PAYMENT_LINK_CREATED_TOPIC:
            continue

        return LinkIdResolution(
            link_id=_hex_to_int(log.topics[1]),
            from_event=True,
            amount_base_units=_data_word(log.data, 0),
            seller=_topic_to_address(log.topics[2]),
        )

    return LinkIdResolution(link_id=DEFAULT_LINK_ID, from_event=False)


def extract_payments(
    logs: Iterable[LogEntry],
    contract_address: Optional[str] = None,
) -> Tuple[PaymentEvent, ...]:
    """
    All PaymentReceived events in a receipt, in log order.

    Logs emitted by other contracts are skipped when contract_address is given.
    """

    expected_address = contract_address.lower() if contract_address else None
    events = []

    for log in logs:
        if expected_address and log.address != expected_address:
            continue
        if len(log.topics) < 4 or log.topics[0] != PAYMENT_RECEIVED_TOPIC:
            continue

        events.append(
            PaymentEvent(
                link_id=_hex_to_int(log.topics[1]),
                buyer=_topic_to_address(log.topics[2]),
                seller=_topic_to_address(log.topics[3]),
                amount_base_units=_data_word(log.data, 0),
                fee_base_units=_data_word(log.data, 1),
            )
        )

    return tuple(events)


def extract_payment(
    logs: Iterable[LogEntry],
    contract_address: Optional[str] = None,
    *,
    link_id: int,
    buyer: str,
) -> Optional[PaymentEvent]:
    """The PaymentReceived event for this link id and buyer, or None."""

    wanted_buyer = buyer.lower()
    for event in extract_payments(logs, contract_address):
        if event.link_id == link_id and event.buyer == wanted_buyer:
            return event
    return None


def to_base_units(amount: Decimal, decimals: int = USDC_DECIMALS) -> int:
    """Convert a decimal token amount to integer base units (USDC has 6 decimals)."""

    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} decimal places")
    return int(scaled)


__all__ = [
    "DEFAULT_LINK_ID",
    "LinkIdResolution",
    "LogEntry",
    "PAYMENT_LINK_CREATED_TOPIC",
    "PAYMENT_RECEIVED_TOPIC",
    "PaymentEvent",
    "TransactionReceipt",
    "USDC_DECIMALS",
    "extract_link_id",
    "extract_payment",
    "extract_payments",
    "to_base_units",
]
