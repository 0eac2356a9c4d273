from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..schemas.user import UserCreate
from .wallets import ensure_default_wallets


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    user = User(
        display_name=payload.display_name,
        email=payload.email,
        phone_number=payload.phone_number,
        phone_verified=payload.phone_verified,
        password_hash=payload.password_hash,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    await ensure_default_wallets(session, user.id, user.currency)
    return user


async def get_user(session: AsyncSession, user_id: UUID) -> Optional[User]:
    return await session.get(User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalars().first()


async def get_user_by_phone(session: AsyncSession, phone: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.phone_number == phone))
    return result.scalars().first()


async def attach_phone(session: AsyncSession, user: User, phone: str) -> User:
    user.phone_number = phone
    user.phone_verified = True
    await session.commit()
    await session.refresh(user)
    return user


async def set_chat_id(session: AsyncSession, user_id: UUID, chat_id: Optional[str]) -> Optional[User]:
    user = await session.get(User, user_id)
    if user is None:
        return None
    user.telegram_chat_id = chat_id
    await session.commit()
    return user
