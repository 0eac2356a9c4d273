import logging
from datetime import date, datetime, time, timezone
from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from ..models.base import utcnow
from ..models.transaction import TransactionSource, TransactionType
from ..parser import DEFAULT_CATEGORY
from ..schemas.ocr import ReceiptScan
from ..schemas.transaction import TransactionCreate, TransactionRead
from ..services import create_transaction, get_receipt_service, get_wallet, notify_transaction_recorded
from ..services.ocr import ReceiptExtractionError, ReceiptServiceUnavailable
from .dependencies import CurrentUser, SenderDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


def _occurred_at(scan: ReceiptScan) -> datetime:
    if scan.date:
        try:
            return datetime.combine(date.fromisoformat(scan.date), time(12, 0), tzinfo=timezone.utc)
        except ValueError:
            logger.info("Unreadable receipt date %r, using current time", scan.date)
    return utcnow()


def _transaction_payload(scan: ReceiptScan, *, user_id: UUID, wallet_id: UUID | None) -> TransactionCreate:
    if scan.total is None or scan.total <= 0:
        raise ReceiptExtractionError("Total belanja tidak terbaca dari struk.")
    return TransactionCreate(
        type=TransactionType.EXPENSE,
        amount=scan.total,
        description=scan.merchant or "Struk belanja",
        category=scan.category or DEFAULT_CATEGORY,
        occurred_at=_occurred_at(scan),
        items=scan.items or None,
        source=TransactionSource.OCR,
        user_id=user_id,
        wallet_id=wallet_id,
    )


@router.post("/receipt", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def scan_receipt_endpoint(
    session: SessionDep,
    current_user: CurrentUser,
    sender: SenderDep,
    file: UploadFile = File(...),
    commit_transaction: bool = Form(default=False),
    wallet_id: UUID | None = Form(default=None),
) -> TransactionRead | JSONResponse:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are supported.")

    if wallet_id:
        wallet = await get_wallet(session, wallet_id)
        if not wallet or wallet.user_id != current_user.id:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Wallet not found")

    image_bytes = await file.read()
    try:
        service = get_receipt_service()
        scan = await service.parse_receipt(image_bytes, file.content_type)
        if not commit_transaction:
            return JSONResponse(
                status_code=status.HTTP_202_ACCEPTED,
                content={"receipt": scan.model_dump(mode="json"), "message": "Preview only, not stored."},
            )
        transaction_payload = _transaction_payload(scan, user_id=current_user.id, wallet_id=wallet_id)
    except ReceiptExtractionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ReceiptServiceUnavailable as exc:
        logger.error("Receipt scanning unavailable: %s", exc)
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Receipt scanning is not available.") from exc
    except Exception as exc:
        logger.exception("Receipt model call failed")
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail="Receipt scanning failed upstream.") from exc

    transaction = await create_transaction(session, transaction_payload)
    await notify_transaction_recorded(session, sender, current_user, transaction)
    return TransactionRead.model_validate(transaction)
