from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from ..models.base import utcnow
from ..schemas import BudgetCreate, BudgetCreateRequest, BudgetRead, BudgetStatus, BudgetUpdate
from ..services import budget_statuses, create_budget, delete_budget, get_budget, update_budget
from .dependencies import CurrentUser, SessionDep

router = APIRouter()

MonthQuery = Annotated[Optional[int], Query(ge=1, le=12)]
YearQuery = Annotated[Optional[int], Query(ge=2000, le=2100)]


async def _owned_budget(session, budget_id: UUID, user_id: UUID):
    budget = await get_budget(session, budget_id)
    if not budget or budget.user_id != user_id:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.get("", response_model=list[BudgetStatus])
async def list_budgets_endpoint(
    session: SessionDep,
    current_user: CurrentUser,
    month: MonthQuery = None,
    year: YearQuery = None,
) -> list[BudgetStatus]:
    """Budgets of one month (the current one by default) with spending so far."""
    today = utcnow()
    return await budget_statuses(
        session, current_user.id, month=month or today.month, year=year or today.year
    )


@router.post("", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
async def create_budget_endpoint(
    payload: BudgetCreateRequest, session: SessionDep, current_user: CurrentUser
) -> BudgetRead:
    try:
        budget = await create_budget(session, BudgetCreate(**payload.model_dump(), user_id=current_user.id))
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return BudgetRead.model_validate(budget)


@router.patch("/{budget_id}", response_model=BudgetRead)
async def update_budget_endpoint(
    budget_id: UUID, payload: BudgetUpdate, session: SessionDep, current_user: CurrentUser
) -> BudgetRead:
    budget = await _owned_budget(session, budget_id, current_user.id)
    try:
        budget = await update_budget(session, budget, payload)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return BudgetRead.model_validate(budget)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget_endpoint(budget_id: UUID, session: SessionDep, current_user: CurrentUser) -> None:
    budget = await _owned_budget(session, budget_id, current_user.id)
    await delete_budget(session, budget)
