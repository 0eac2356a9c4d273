from fastapi import APIRouter

from ..schemas import UserRead
from .dependencies import CurrentUser, SessionDep

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def get_current_user_endpoint(session: SessionDep, current_user: CurrentUser) -> UserRead:
    await session.refresh(current_user)
    return UserRead.model_validate(current_user)
