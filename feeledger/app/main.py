# FeeLedger backend entrypoint: FastAPI app wiring routers, logging and store error handling.

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feeledger.app.api import auth
from feeledger.app.api import fee_payments
from feeledger.app.api import finance_accounts
from feeledger.app.api import finance_categories
from feeledger.app.api import finance_reports
from feeledger.app.api import finance_services
from feeledger.app.api import finance_settings
from feeledger.app.api import finance_transactions
from feeledger.app.api import student_fees
from feeledger.app.api import students
from feeledger.app.core.errors import StoreError
from feeledger.app.core.log_config import configure_logging
from feeledger.app.core.settings import get_settings
from feeledger.app.db.base import Base
from feeledger.app.db.session import engine

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.api_version)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(students.router)
app.include_router(finance_accounts.router)
app.include_router(finance_categories.router)
app.include_router(finance_services.router)
app.include_router(finance_settings.router)
app.include_router(finance_transactions.router)
app.include_router(student_fees.router)
app.include_router(fee_payments.router)
app.include_router(finance_reports.router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    status_code = 503 if exc.retryable else 500
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "retryable": exc.retryable})


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)
    logger.info("%s started (environment=%s)", settings.app_name, settings.environment)
