import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from ..schemas import WalletCreate, WalletCreateRequest, WalletRead, WalletSummary, WalletUpdate
from ..services import create_wallet, delete_wallet, get_wallet, list_wallets, total_balance, update_wallet
from .dependencies import CurrentUser, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


async def _owned_wallet(session, wallet_id: UUID, user_id: UUID):
    wallet = await get_wallet(session, wallet_id)
    if not wallet or wallet.user_id != user_id:
        raise HTTPException(status_code=404, detail="Wallet not found")
    return wallet


@router.post("", response_model=WalletRead, status_code=status.HTTP_201_CREATED)
async def create_wallet_endpoint(
    payload: WalletCreateRequest, session: SessionDep, current_user: CurrentUser
) -> WalletRead:
    wallet = await create_wallet(session, WalletCreate(**payload.model_dump(), user_id=current_user.id))
    return WalletRead.model_validate(wallet)


@router.get("", response_model=WalletSummary)
async def list_wallets_endpoint(session: SessionDep, current_user: CurrentUser) -> WalletSummary:
    wallets = await list_wallets(session, current_user.id)
    return WalletSummary(
        wallets=[WalletRead.model_validate(wallet) for wallet in wallets],
        total=total_balance(wallets),
    )


@router.get("/{wallet_id}", response_model=WalletRead)
async def get_wallet_endpoint(wallet_id: UUID, session: SessionDep, current_user: CurrentUser) -> WalletRead:
    return WalletRead.model_validate(await _owned_wallet(session, wallet_id, current_user.id))


@router.patch("/{wallet_id}", response_model=WalletRead)
async def update_wallet_endpoint(
    wallet_id: UUID,
    payload: WalletUpdate,
    session: SessionDep,
    current_user: CurrentUser,
) -> WalletRead:
    wallet = await _owned_wallet(session, wallet_id, current_user.id)
    wallet = await update_wallet(session, wallet, payload)
    return WalletRead.model_validate(wallet)


@router.delete("/{wallet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_wallet_endpoint(wallet_id: UUID, session: SessionDep, current_user: CurrentUser) -> None:
    wallet = await _owned_wallet(session, wallet_id, current_user.id)
    removed = await delete_wallet(session, wallet)
    logger.info("Deleted wallet %s with %s transactions", wallet_id, removed)
