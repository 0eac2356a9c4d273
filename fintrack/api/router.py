from fastapi import APIRouter

from . import auth, budgets, currency, ocr, reports, telegram, transactions, users, wallets

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(wallets.router, prefix="/wallets", tags=["wallets"])
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(ocr.router, prefix="/ocr", tags=["ocr"])
api_router.include_router(currency.router, prefix="/currency", tags=["currency"])
api_router.include_router(telegram.router, prefix="/telegram", tags=["telegram"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
