import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import app.models  # noqa: F401
from app.core.clock import get_now, get_today
from app.core.errors import PriceUnavailableError
from app.core.security import get_current_user
from app.database import get_session
from app.main import app as fastapi_app
from app.models.enums import Currency
from app.models.user import User
from app.services.prices import get_price_lookup

TODAY = dt.date(2025, 4, 10)
NOW = dt.datetime(2025, 4, 10, 9, 30)


class FakePriceLookup:
    """In-memory stand-in for PriceLookup; unknown symbols are unavailable."""

    def __init__(self, prices=None, usd_inr=83.0):
        self.prices = {k.upper(): v for k, v in (prices or {}).items()}
        self.usd_inr = usd_inr
        self.calls = []

    def get_price(self, symbol, bucket, currency=Currency.INR):
        self.calls.append(symbol)
        try:
            return self.prices[symbol.upper()]
        except KeyError:
            raise PriceUnavailableError(f"Price unavailable for {symbol}")

    def get_usd_inr_rate(self):
        if self.usd_inr is None:
            raise PriceUnavailableError("Could not fetch the USD/INR exchange rate")
        return self.usd_inr

    def get_rate(self, base, target):
        if base == target:
            return 1.0
        rate = self.get_usd_inr_rate()
        return rate if base == "USD" else 1 / rate


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def make_user(session, email="asha@example.com", name="Asha"):
    user = User(email=email, name=name, hashed_password="not-a-real-hash")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user(session):
    return make_user(session)


@pytest.fixture
def other_user(session):
    return make_user(session, email="ravi@example.com", name="Ravi")


@pytest.fixture
def prices():
    return FakePriceLookup()


@pytest.fixture
def client(session, user, prices):
    user_id = user.id
    fastapi_app.dependency_overrides[get_session] = lambda: session
    fastapi_app.dependency_overrides[get_current_user] = lambda: user_id
    fastapi_app.dependency_overrides[get_today] = lambda: TODAY
    fastapi_app.dependency_overrides[get_now] = lambda: NOW
    fastapi_app.dependency_overrides[get_price_lookup] = lambda: prices

    # No context manager: the lifespan would create tables on the configured database
    yield TestClient(fastapi_app)

    fastapi_app.dependency_overrides.clear()
