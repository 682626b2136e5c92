"""Keyword triggers and accept/reject vocabulary."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ..types import NftOperation, PendingKind
from .extraction import find_address, has_amount


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class Response:
    """An accept/reject reply; ``kind`` is ``None`` for generic synonyms."""

    decision: Decision
    kind: PendingKind | None = None


@dataclass(frozen=True)
class Trigger:
    kind: PendingKind
    operation: NftOperation | None = None


ACCEPT_WORDS = frozenset({"yes", "y", "confirm", "ok", "确认", "是", "好"})
REJECT_WORDS = frozenset({"no", "n", "cancel", "取消", "否"})

KIND_PHRASES: dict[PendingKind, tuple[frozenset[str], frozenset[str]]] = {
    PendingKind.TRANSFER: (
        frozenset({"confirm transfer", "确认转账", "yes transfer"}),
        frozenset({"cancel transfer", "取消转账"}),
    ),
    PendingKind.BALANCE: (
        frozenset({"confirm balance", "确认查询", "确认查询余额"}),
        frozenset({"cancel balance", "取消查询", "取消查询余额"}),
    ),
    PendingKind.NFT: (
        frozenset({"confirm nft", "确认nft", "确认操作"}),
        frozenset({"cancel nft", "取消nft", "取消操作"}),
    ),
}

_STRIP_CHARS = " \t\r\n.,!?;:。，！？；：、~"

TRANSFER_KEYWORDS = (
    "转账", "发送", "transfer", "send", "转给", "发给", "转", "给", "send to",
)
BALANCE_KEYWORDS = ("余额", "balance", "查询余额", "check balance", "钱包余额")

# Checked in order: more specific operations first ("unstake" before "stake").
NFT_KEYWORDS: tuple[tuple[NftOperation, tuple[str, ...]], ...] = (
    (
        NftOperation.UNSTAKE,
        ("解除质押", "unstake", "取回", "withdraw", "解锁", "unlock", "取消质押"),
    ),
    (
        NftOperation.REPAY_LOAN,
        ("还款", "repay", "偿还", "还贷"),
    ),
    (
        NftOperation.FULFILL_LOAN,
        ("出资", "fulfill loan", "fund loan", "fulfill", "放贷"),
    ),
    (
        NftOperation.CREATE_LOAN,
        ("创建借贷", "create loan", "发起借贷", "借贷", "loan", "抵押nft", "用nft抵押"),
    ),
    (
        NftOperation.BUY,
        ("购买", "buy", "purchase", "买"),
    ),
    (
        NftOperation.LIST,
        ("上架", "list", "出售", "售卖", "sell", "放到市场"),
    ),
    (
        NftOperation.STAKE,
        ("质押", "stake", "锁定", "lock"),
    ),
    (
        NftOperation.MINT,
        ("铸造", "mint", "创建nft", "生成nft", "create nft", "new nft", "create an nft"),
    ),
)

# Operations other than mint need a number (token or loan id) to trigger.
_NUMBER_RE = re.compile(r"\d")
_HEX_RE = re.compile(r"0x[0-9a-zA-Z]+")


def normalise(text: str) -> str:
    return text.strip().strip(_STRIP_CHARS).lower()


def _contains(text: str, keyword: str) -> bool:
    """Substring match; ASCII keywords must stand on word boundaries."""
    if keyword.isascii():
        return re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text) is not None
    return keyword in text


def parse_token(token: str | None) -> Response | None:
    if not token:
        return None
    value = token.strip().lower()
    for kind in PendingKind:
        if value == kind.accept_token:
            return Response(Decision.ACCEPT, kind)
        if value == kind.reject_token:
            return Response(Decision.REJECT, kind)
    return None


def parse_response(text: str, token: str | None = None) -> Response | None:
    """Interpret a message as accept/reject, or return ``None``."""

    by_token = parse_token(token) or parse_token(text)
    if by_token is not None:
        return by_token

    value = normalise(text)
    if not value:
        return None
    for kind, (accepts, rejects) in KIND_PHRASES.items():
        if value in accepts:
            return Response(Decision.ACCEPT, kind)
        if value in rejects:
            return Response(Decision.REJECT, kind)
    if value in ACCEPT_WORDS:
        return Response(Decision.ACCEPT)
    if value in REJECT_WORDS:
        return Response(Decision.REJECT)
    return None


def detect_nft_operation(text: str) -> NftOperation | None:
    value = text.lower()
    has_number = _NUMBER_RE.search(_HEX_RE.sub(" ", value)) is not None
    for operation, keywords in NFT_KEYWORDS:
        if any(_contains(value, keyword) for keyword in keywords):
            if operation is NftOperation.MINT or has_number:
                return operation
    return None


def detect_trigger(text: str) -> Trigger | None:
    """Match ``text`` against trigger vocabularies: transfer, then NFT, then balance."""

    value = text.lower()
    if (
        any(_contains(value, keyword) for keyword in TRANSFER_KEYWORDS)
        and find_address(text) is not None
        and has_amount(text)
    ):
        return Trigger(PendingKind.TRANSFER)

    operation = detect_nft_operation(text)
    if operation is not None:
        return Trigger(PendingKind.NFT, operation)

    if any(_contains(value, keyword) for keyword in BALANCE_KEYWORDS):
        return Trigger(PendingKind.BALANCE)
    return None


def trigger_from_intent(intent: str) -> Trigger | None:
    """Map an externally classified intent (``"transfer"``, ``"stake"``...) to a trigger."""

    value = intent.strip().lower()
    for kind in PendingKind:
        if value == kind.value:
            return Trigger(kind) if kind is not PendingKind.NFT else None
    for operation in NftOperation:
        if value == operation.value:
            return Trigger(PendingKind.NFT, operation)
    return None
