from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.chat_link import ChatLink, ChatLinkCode
from ..models.transaction import Transaction
from ..models.user import User
from ..models.wallet import Wallet
from ..schemas.chat_link import ChatLinkRecord, LinkCodeRecord
from ..schemas.transaction import TransactionCreate
from ..services.notifications import notify_transaction_recorded
from ..services.repositories import SqlAlchemyRepository
from ..services.transactions import create_transaction, list_transactions
from ..services.users import set_chat_id
from ..services.wallets import list_wallets
from ..services.whatsapp import FonnteClient


class SqlChatLedger:
    """Ledger backed by the service layer for one database session."""

    def __init__(self, session: AsyncSession, sender: Optional[FonnteClient] = None) -> None:
        self.session = session
        self.sender = sender

    async def list_wallets(self, user_id: UUID) -> Sequence[Wallet]:
        return await list_wallets(self.session, user_id)

    async def recent_transactions(self, user_id: UUID, limit: int) -> Sequence[Transaction]:
        return await list_transactions(self.session, user_id=user_id, limit=limit)

    async def record_transaction(self, payload: TransactionCreate) -> Transaction:
        transaction = await create_transaction(self.session, payload)
        if self.sender is not None:
            # The chat reply already confirms the entry; only budget warnings go out.
            user = await self.session.get(User, payload.user_id)
            if user is not None:
                await notify_transaction_recorded(self.session, self.sender, user, transaction, confirm=False)
        return transaction

    async def set_chat_id(self, user_id: UUID, chat_id: Optional[str]) -> None:
        await set_chat_id(self.session, user_id, chat_id)


def chat_link_repository(session: AsyncSession) -> SqlAlchemyRepository[ChatLinkRecord]:
    return SqlAlchemyRepository(session, ChatLink, ChatLinkRecord, key_column="user_id")


def link_code_repository(session: AsyncSession) -> SqlAlchemyRepository[LinkCodeRecord]:
    return SqlAlchemyRepository(session, ChatLinkCode, LinkCodeRecord, key_column="code")
