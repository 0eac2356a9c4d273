"""Turns one inbound chat message into exactly one reply.

The router knows nothing about Telegram itself: the transport hands it a
:class:`ChatMessage` and sends back whatever string ``dispatch`` returns
(HTML formatted).
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, Sequence
from uuid import UUID

from ..models.base import utcnow
from ..models.transaction import TransactionSource, TransactionType
from ..parser import DEFAULT_CATEGORY, ParsedCommand, parse_command
from ..schemas.chat_link import ChatLinkRecord, LinkCodeRecord
from ..schemas.transaction import TransactionCreate
from ..services.chat_links import LinkError, consume_link_code, deactivate_chat, get_active_link
from ..services.repositories import Repository
from ..services.wallets import match_wallet, total_balance
from ..utils.currency import format_rupiah

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5

START_TEXT = (
    "👋 <b>Selamat datang di FinTrack AI Bot!</b>\n\n"
    "Kirim pesan untuk mencatat transaksi:\n\n"
    "💸 <b>Pengeluaran:</b>\n"
    '• "Makan 50000 dari Cash"\n'
    '• "Kopi 25rb"\n\n'
    "💰 <b>Pemasukan:</b>\n"
    '• "Gaji 5000000 ke Bank"\n'
    '• "Freelance 2jt"\n\n'
    "🔄 <b>Transfer:</b>\n"
    '• "Transfer 100rb dari Cash ke Bank"\n\n'
    "📝 <b>Format singkat:</b>\n"
    '• Gunakan "rb" untuk ribu (50rb = 50.000)\n'
    '• Gunakan "jt" untuk juta (5jt = 5.000.000)'
)

HELP_TEXT = (
    "📖 <b>Panduan FinTrack AI Bot</b>\n\n"
    "<b>Format Pesan:</b>\n"
    "[deskripsi] [jumlah] [dari/ke] [akun]\n\n"
    "<b>Contoh:</b>\n"
    "• Makan siang 50000\n"
    "• Grab 15rb dari GoPay\n"
    "• Gaji 5jt ke Bank\n"
    "• Transfer 1jt dari Bank ke Cash\n\n"
    "<b>Akun:</b> Cash, Bank, E-Wallet\n\n"
    "<b>Perintah:</b>\n"
    "/link KODE - hubungkan chat ini ke akun Anda\n"
    "/unlink - putuskan chat ini dari akun\n"
    "/saldo - lihat saldo semua dompet\n"
    "/riwayat - 5 transaksi terakhir\n\n"
    "🔗 Hubungkan akun Anda di menu Pengaturan > Hubungkan Telegram"
)

NOT_LINKED_TEXT = (
    "🔗 <b>Akun belum terhubung.</b>\n\n"
    "Buka FinTrack AI, pilih Pengaturan > Hubungkan Telegram, "
    "lalu kirim <code>/link KODE</code> ke bot ini."
)

LINK_USAGE_TEXT = "Gunakan <code>/link KODE</code> dengan kode dari menu Pengaturan > Hubungkan Telegram."

_TYPE_LABELS = {
    TransactionType.INCOME: ("💰", "Pemasukan"),
    TransactionType.EXPENSE: ("💸", "Pengeluaran"),
    TransactionType.TRANSFER: ("🔄", "Transfer"),
}


@dataclass(frozen=True)
class ChatMessage:
    chat_id: str
    text: str
    username: Optional[str] = None


class Ledger(Protocol):
    """What the router needs from the wallet/transaction store."""

    async def list_wallets(self, user_id: UUID) -> Sequence[Any]: ...

    async def recent_transactions(self, user_id: UUID, limit: int) -> Sequence[Any]: ...

    async def record_transaction(self, payload: TransactionCreate) -> Any: ...

    async def set_chat_id(self, user_id: UUID, chat_id: Optional[str]) -> None: ...


def _command_name(text: str) -> Optional[str]:
    if not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0]
    return head[1:].split("@", 1)[0].lower()


def format_confirmation(
    transaction_type: TransactionType,
    amount: Decimal | int,
    description: str,
    account_label: Optional[str] = None,
) -> str:
    emoji, label = _TYPE_LABELS[transaction_type]
    lines = [
        f"{emoji} <b>{label} Tercatat!</b>",
        "",
        f"📝 {html.escape(description)}",
        f"💵 {format_rupiah(amount)}",
    ]
    if account_label:
        lines.append(f"👛 {html.escape(account_label)}")
    lines.extend(["", "✅ Berhasil disimpan ke FinTrack AI"])
    return "\n".join(lines)


class ChatCommandRouter:
    def __init__(
        self,
        links: Repository[ChatLinkRecord],
        link_codes: Repository[LinkCodeRecord],
        ledger: Ledger,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.links = links
        self.link_codes = link_codes
        self.ledger = ledger
        self.clock = clock

    async def dispatch(self, message: ChatMessage) -> str:
        text = (message.text or "").strip()
        command = _command_name(text)

        if command == "start":
            return START_TEXT
        if command == "help":
            return HELP_TEXT
        if command == "link":
            return await self._link(message, text)
        if command == "unlink":
            return await self._unlink(message)

        link = await get_active_link(self.links, message.chat_id)
        if link is None:
            return NOT_LINKED_TEXT

        if command in ("balance", "saldo"):
            return await self._balance(link.user_id)
        if command in ("history", "riwayat"):
            return await self._history(link.user_id)

        parsed = parse_command(text)
        if not parsed.is_valid:
            return f"❌ {html.escape(parsed.error_reason or '')}"
        return await self._record(link.user_id, parsed)

    async def _link(self, message: ChatMessage, text: str) -> str:
        parts = text.split()
        if len(parts) < 2:
            return LINK_USAGE_TEXT
        try:
            link = await consume_link_code(
                self.links,
                self.link_codes,
                parts[1],
                message.chat_id,
                display_handle=message.username,
                clock=self.clock,
            )
        except LinkError as exc:
            return f"❌ {html.escape(str(exc))}"
        await self.ledger.set_chat_id(link.user_id, message.chat_id)
        return (
            "✅ <b>Akun berhasil terhubung!</b>\n\n"
            'Sekarang kirim pesan seperti "Makan 50rb dari Cash" untuk mencatat transaksi.'
        )

    async def _unlink(self, message: ChatMessage) -> str:
        link = await deactivate_chat(self.links, message.chat_id)
        if link is None:
            return "ℹ️ Chat ini belum terhubung ke akun mana pun."
        await self.ledger.set_chat_id(link.user_id, None)
        return "✅ Chat ini sudah diputus dari akun FinTrack AI."

    async def _balance(self, user_id: UUID) -> str:
        wallets = list(await self.ledger.list_wallets(user_id))
        if not wallets:
            return "Belum ada dompet."
        lines = ["💼 <b>Saldo Dompet</b>", ""]
        for wallet in wallets:
            lines.append(f"• {html.escape(wallet.name)}: {format_rupiah(wallet.balance)}")
        lines.extend(["", f"<b>Total:</b> {format_rupiah(total_balance(wallets))}"])
        return "\n".join(lines)

    async def _history(self, user_id: UUID) -> str:
        transactions = list(await self.ledger.recent_transactions(user_id, HISTORY_LIMIT))
        if not transactions:
            return "Belum ada transaksi."
        lines = [f"🧾 <b>{len(transactions)} Transaksi Terakhir</b>", ""]
        for tx in transactions:
            emoji, _ = _TYPE_LABELS[TransactionType(tx.type)]
            description = html.escape(tx.description or tx.category or "-")
            lines.append(
                f"{emoji} {tx.occurred_at:%d/%m} {description}, {format_rupiah(tx.amount)}"
            )
        return "\n".join(lines)

    async def _record(self, user_id: UUID, parsed: ParsedCommand) -> str:
        wallets = list(await self.ledger.list_wallets(user_id))
        source_ref = parsed.source_account_ref
        destination_ref = parsed.destination_account_ref

        wallet = None
        to_wallet = None
        if parsed.transaction_type != TransactionType.TRANSFER:
            if parsed.transaction_type == TransactionType.INCOME:
                tag = destination_ref or source_ref
            else:
                tag = source_ref or destination_ref
            wallet = match_wallet(wallets, tag)
            account_label = wallet.name if wallet else tag
        else:
            source = match_wallet(wallets, source_ref)
            destination = match_wallet(wallets, destination_ref)
            if source and destination and source.id != destination.id:
                wallet, to_wallet = source, destination
            from_label = source.name if source else source_ref
            to_label = destination.name if destination else destination_ref
            account_label = " → ".join(label for label in (from_label, to_label) if label) or None

        payload = TransactionCreate(
            type=parsed.transaction_type,
            amount=Decimal(parsed.amount),
            description=parsed.description,
            category=parsed.category_hint or DEFAULT_CATEGORY,
            occurred_at=self.clock(),
            source=TransactionSource.CHAT,
            user_id=user_id,
            wallet_id=wallet.id if wallet else None,
            to_wallet_id=to_wallet.id if to_wallet else None,
        )
        await self.ledger.record_transaction(payload)
        logger.info(
            "Recorded %s of %s from chat for user %s", parsed.transaction_type.value, parsed.amount, user_id
        )
        return format_confirmation(
            parsed.transaction_type, parsed.amount, parsed.description, account_label
        )
