from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

from app.api import (
    allocations,
    auth,
    borrowed_funds,
    cron,
    expenses,
    holdings,
    income,
    investment_transactions,
    loans,
    member_transactions,
    members,
    monthly_snapshots,
    one_time,
    salary,
    sips,
    tax,
)
from app.core.config import CORS_ORIGINS
from app.core.errors import FinanceError, finance_error_handler
from app.core.logging import configure_logging
from app.database import create_db_and_tables
from app.routes import fx


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    create_db_and_tables()
    yield


app = FastAPI(title="Personal Finance Tracker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(FinanceError, finance_error_handler)

app.include_router(auth.router)
app.include_router(salary.router)
app.include_router(tax.router)
app.include_router(income.router)
app.include_router(expenses.router)
app.include_router(members.router)
app.include_router(member_transactions.router)
app.include_router(loans.router)
app.include_router(sips.router)
app.include_router(monthly_snapshots.router)
app.include_router(cron.router)
app.include_router(holdings.router)
app.include_router(investment_transactions.router)
app.include_router(allocations.router)
app.include_router(one_time.router)
app.include_router(borrowed_funds.router)
app.include_router(fx.router)


@app.get("/")
def root():
    return {"message": "Personal finance tracker API"}
