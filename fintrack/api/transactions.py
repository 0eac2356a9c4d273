from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import ValidationError

from ..models.base import utcnow
from ..models.transaction import TransactionSource, TransactionType
from ..schemas.transaction import TransactionCreate, TransactionCreateRequest, TransactionRead
from ..services import (
    create_transaction,
    delete_transaction,
    get_transaction,
    list_transactions,
    notify_transaction_recorded,
)
from .dependencies import CurrentUser, SenderDep, SessionDep

router = APIRouter()


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def create_transaction_endpoint(
    payload: TransactionCreateRequest,
    session: SessionDep,
    current_user: CurrentUser,
    sender: SenderDep,
) -> TransactionRead:
    try:
        tx_payload = TransactionCreate(
            **payload.model_dump(exclude={"occurred_at"}),
            occurred_at=payload.occurred_at or utcnow(),
            source=TransactionSource.MANUAL,
            user_id=current_user.id,
        )
        transaction = await create_transaction(session, tx_payload)
    except ValidationError as exc:
        detail = exc.errors(include_url=False, include_context=False, include_input=False)
        raise HTTPException(status_code=422, detail=detail) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    await notify_transaction_recorded(session, sender, current_user, transaction)
    return TransactionRead.model_validate(transaction)


@router.get("", response_model=list[TransactionRead])
async def list_transactions_endpoint(
    session: SessionDep,
    current_user: CurrentUser,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    transaction_type: Optional[TransactionType] = Query(default=None),
    wallet_id: Optional[UUID] = Query(default=None),
    occurred_after: Optional[datetime] = Query(default=None),
    occurred_before: Optional[datetime] = Query(default=None),
) -> list[TransactionRead]:
    transactions = await list_transactions(
        session,
        limit=limit,
        offset=offset,
        transaction_type=transaction_type,
        user_id=current_user.id,
        wallet_id=wallet_id,
        occurred_after=occurred_after,
        occurred_before=occurred_before,
    )
    return [TransactionRead.model_validate(tx) for tx in transactions]


@router.get("/{transaction_id}", response_model=TransactionRead)
async def get_transaction_endpoint(
    transaction_id: UUID, session: SessionDep, current_user: CurrentUser
) -> TransactionRead:
    transaction = await get_transaction(session, transaction_id)
    if not transaction or transaction.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionRead.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_endpoint(
    transaction_id: UUID, session: SessionDep, current_user: CurrentUser
) -> None:
    transaction = await get_transaction(session, transaction_id)
    if not transaction or transaction.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Transaction not found")
    await delete_transaction(session, transaction)
