"""Weighted-average cost basis for holdings.

The arithmetic works on ``HoldingState`` values and never touches the
database; the ``record_/delete_/edit_transaction`` helpers apply it to a
Holding row together with the Transaction write in a single commit.

FX rates are weighted by invested amount (qty * cost) in both directions,
so removing a contribution exactly undoes adding it.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.errors import NegativeQuantityError, NotFoundError, ValidationError
from app.models.enums import Currency, InvestmentBucket, TransactionType
from app.models.holding import Holding
from app.models.sip import SIPExecution
from app.models.transaction import Transaction

logger = logging.getLogger(__name__)

QTY_EPSILON = 1e-9


@dataclass(frozen=True)
class HoldingState:
    qty: float
    avg_cost: float
    usd_inr_rate: Optional[float] = None

    @property
    def investment(self) -> float:
        return self.qty * self.avg_cost


def add_contribution(
    state: Optional[HoldingState],
    qty: float,
    price: float,
    fx_rate: Optional[float] = None,
) -> HoldingState:
    if qty <= 0:
        raise ValidationError("Quantity must be positive")
    if state is None or state.qty <= QTY_EPSILON:
        return HoldingState(qty=qty, avg_cost=price, usd_inr_rate=fx_rate)

    new_qty = state.qty + qty
    added_investment = qty * price
    total_investment = state.investment + added_investment
    new_avg_cost = total_investment / new_qty

    new_rate = state.usd_inr_rate
    if fx_rate is not None:
        if state.usd_inr_rate is None or total_investment <= 0:
            new_rate = fx_rate
        else:
            new_rate = (state.investment * state.usd_inr_rate + added_investment * fx_rate) / total_investment

    return HoldingState(qty=new_qty, avg_cost=new_avg_cost, usd_inr_rate=new_rate)


def remove_contribution(
    state: HoldingState,
    qty: float,
    price: float,
    fx_rate: Optional[float] = None,
) -> Optional[HoldingState]:
    """Undo one contribution. Returns None when nothing is left."""
    new_qty = state.qty - qty
    if new_qty < -QTY_EPSILON:
        raise NegativeQuantityError(
            "Cannot remove transaction: would result in negative quantity "
            f"({state.qty:g} held, {qty:g} removed)"
        )
    if new_qty <= QTY_EPSILON:
        return None

    removed_investment = qty * price
    remaining_investment = state.investment - removed_investment
    new_avg_cost = remaining_investment / new_qty

    new_rate = state.usd_inr_rate
    if fx_rate is not None and state.usd_inr_rate is not None and remaining_investment > 0:
        new_rate = (state.investment * state.usd_inr_rate - removed_investment * fx_rate) / remaining_investment

    return HoldingState(qty=new_qty, avg_cost=new_avg_cost, usd_inr_rate=new_rate)


def replace_contribution(
    state: HoldingState,
    old_qty: float,
    old_price: float,
    new_qty: float,
    new_price: float,
    old_fx_rate: Optional[float] = None,
    new_fx_rate: Optional[float] = None,
) -> HoldingState:
    # Two legs against the same base: weighted averages are not linear in a
    # simultaneous qty+price change, so a combined delta would be wrong.
    without_old = remove_contribution(state, old_qty, old_price, old_fx_rate)
    return add_contribution(without_old, new_qty, new_price, new_fx_rate)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def state_of(holding: Holding) -> HoldingState:
    return HoldingState(qty=holding.qty, avg_cost=holding.avg_cost, usd_inr_rate=holding.usd_inr_rate)


def _fx_leg(currency: Currency, rate: Optional[float]) -> Optional[float]:
    return rate if currency == Currency.USD else None


def _amount_inr(currency: Currency, amount: float, rate: Optional[float], given: Optional[float]) -> Optional[float]:
    if given is not None:
        return given
    if currency == Currency.USD and rate:
        return amount * rate
    return None


def _apply_state(holding: Holding, state: HoldingState, now: dt.datetime) -> None:
    holding.qty = state.qty
    holding.avg_cost = state.avg_cost
    holding.usd_inr_rate = state.usd_inr_rate
    holding.updated_at = now


def _detach_and_delete_holding(session: Session, holding: Holding) -> None:
    for tx in session.exec(select(Transaction).where(Transaction.holding_id == holding.id)).all():
        tx.holding_id = None
        session.add(tx)
    for execution in session.exec(select(SIPExecution).where(SIPExecution.holding_id == holding.id)).all():
        execution.holding_id = None
        session.add(execution)
    # Detach first: nothing tells the flush to order these before the delete
    session.flush()
    session.delete(holding)


def find_holding(session: Session, user_id: UUID, bucket: InvestmentBucket, symbol: str) -> Optional[Holding]:
    return session.exec(
        select(Holding).where(
            Holding.user_id == user_id,
            Holding.bucket == bucket,
            Holding.symbol == normalize_symbol(symbol),
        )
    ).first()


def get_owned_transaction(session: Session, user_id: UUID, transaction_id: int) -> Transaction:
    tx = session.exec(
        select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    ).first()
    if not tx:
        raise NotFoundError("Transaction not found")
    return tx


def record_transaction(
    session: Session,
    user_id: UUID,
    *,
    bucket: InvestmentBucket,
    symbol: str,
    name: str,
    qty: float,
    price: float,
    transaction_type: TransactionType,
    purchase_date: dt.date,
    currency: Currency = Currency.INR,
    usd_inr_rate: Optional[float] = None,
    amount_inr: Optional[float] = None,
    description: Optional[str] = None,
    current_price: Optional[float] = None,
    is_manual: bool = False,
    commit: bool = True,
) -> Transaction:
    """Add a contribution to the (user, bucket, symbol) holding and log it.

    With ``commit=False`` the caller owns the commit, e.g. to write an
    execution record in the same unit of work.
    """
    now = utcnow()
    symbol = normalize_symbol(symbol)
    holding = find_holding(session, user_id, bucket, symbol)

    if holding is None:
        state = add_contribution(None, qty, price, _fx_leg(currency, usd_inr_rate))
        holding = Holding(
            user_id=user_id,
            bucket=bucket,
            symbol=symbol,
            name=name,
            qty=state.qty,
            avg_cost=state.avg_cost,
            usd_inr_rate=state.usd_inr_rate,
            currency=currency,
            current_price=current_price,
            is_manual=is_manual,
            created_at=now,
            updated_at=now,
        )
        logger.debug("Creating holding %s/%s for user %s", bucket.value, symbol, user_id)
    else:
        state = add_contribution(state_of(holding), qty, price, _fx_leg(holding.currency, usd_inr_rate))
        _apply_state(holding, state, now)
        if current_price is not None:
            holding.current_price = current_price
        logger.debug("Updating holding %s: qty=%s avg_cost=%s", holding.id, state.qty, state.avg_cost)

    session.add(holding)
    session.flush()

    amount = qty * price
    tx = Transaction(
        user_id=user_id,
        holding_id=holding.id,
        bucket=bucket,
        symbol=symbol,
        name=name,
        qty=qty,
        price=price,
        amount=amount,
        currency=currency,
        amount_inr=_amount_inr(currency, amount, usd_inr_rate, amount_inr),
        usd_inr_rate=usd_inr_rate,
        transaction_type=transaction_type,
        purchase_date=purchase_date,
        description=description,
    )
    session.add(tx)

    if commit:
        session.commit()
        session.refresh(tx)
    else:
        session.flush()
    return tx


def delete_transaction(session: Session, user_id: UUID, transaction_id: int) -> bool:
    """Delete a ledger row and unwind its contribution.

    Returns True when the holding was emptied and removed with it.
    """
    tx = get_owned_transaction(session, user_id, transaction_id)
    holding = session.get(Holding, tx.holding_id) if tx.holding_id is not None else None

    # Manual edits are audit rows: the holding was set directly, there is no leg to unwind
    if holding is None or tx.transaction_type == TransactionType.MANUAL_EDIT:
        session.delete(tx)
        session.commit()
        return False

    new_state = remove_contribution(
        state_of(holding), tx.qty, tx.price, _fx_leg(holding.currency, tx.usd_inr_rate)
    )

    session.delete(tx)
    if new_state is None:
        session.flush()
        _detach_and_delete_holding(session, holding)
        holding_deleted = True
    else:
        _apply_state(holding, new_state, utcnow())
        session.add(holding)
        holding_deleted = False

    session.commit()
    logger.info("Deleted transaction %s (holding deleted: %s)", transaction_id, holding_deleted)
    return holding_deleted


def edit_transaction(
    session: Session,
    user_id: UUID,
    transaction_id: int,
    *,
    qty: Optional[float] = None,
    price: Optional[float] = None,
    usd_inr_rate: Optional[float] = None,
    amount_inr: Optional[float] = None,
    purchase_date: Optional[dt.date] = None,
    description: Optional[str] = None,
) -> Transaction:
    tx = get_owned_transaction(session, user_id, transaction_id)
    if tx.transaction_type == TransactionType.MANUAL_EDIT:
        raise ValidationError("Manual edit records cannot be changed; edit the holding instead.")

    new_qty = qty if qty is not None else tx.qty
    new_price = price if price is not None else tx.price
    new_rate = usd_inr_rate if usd_inr_rate is not None else tx.usd_inr_rate
    if new_qty <= 0 or new_price <= 0:
        raise ValidationError("Quantity and price must be positive")

    holding = session.get(Holding, tx.holding_id) if tx.holding_id is not None else None
    if holding is not None:
        new_state = replace_contribution(
            state_of(holding),
            old_qty=tx.qty,
            old_price=tx.price,
            new_qty=new_qty,
            new_price=new_price,
            old_fx_rate=_fx_leg(holding.currency, tx.usd_inr_rate),
            new_fx_rate=_fx_leg(holding.currency, new_rate),
        )
        _apply_state(holding, new_state, utcnow())
        session.add(holding)

    amount = new_qty * new_price
    price_changed = qty is not None or price is not None or usd_inr_rate is not None
    tx.qty = new_qty
    tx.price = new_price
    tx.amount = amount
    tx.usd_inr_rate = new_rate
    if amount_inr is not None:
        tx.amount_inr = amount_inr
    elif price_changed:
        tx.amount_inr = _amount_inr(tx.currency, amount, new_rate, None)
    if purchase_date is not None:
        tx.purchase_date = purchase_date
    if description is not None:
        tx.description = description
    tx.updated_at = utcnow()

    session.add(tx)
    session.commit()
    session.refresh(tx)
    return tx


def get_owned_holding(session: Session, user_id: UUID, holding_id: int) -> Holding:
    holding = session.exec(
        select(Holding).where(Holding.id == holding_id, Holding.user_id == user_id)
    ).first()
    if not holding:
        raise NotFoundError("Holding not found")
    return holding


def manual_edit_holding(
    session: Session,
    user_id: UUID,
    holding_id: int,
    *,
    edit_date: dt.date,
    name: Optional[str] = None,
    qty: Optional[float] = None,
    avg_cost: Optional[float] = None,
    current_price: Optional[float] = None,
    usd_inr_rate: Optional[float] = None,
) -> Holding:
    """Overwrite a holding's position directly and leave a MANUAL_EDIT audit row.

    The audit row records the resulting qty and avg_cost; it is not a leg and
    is never unwound.
    """
    holding = get_owned_holding(session, user_id, holding_id)
    if qty is not None and qty <= QTY_EPSILON:
        raise ValidationError("Quantity must be positive; delete the holding instead")

    position_changed = any(v is not None for v in (qty, avg_cost, usd_inr_rate))
    if name is not None:
        holding.name = name
    if qty is not None:
        holding.qty = qty
    if avg_cost is not None:
        holding.avg_cost = avg_cost
    if usd_inr_rate is not None and holding.currency == Currency.USD:
        holding.usd_inr_rate = usd_inr_rate
    if current_price is not None:
        holding.current_price = current_price
    holding.updated_at = utcnow()
    session.add(holding)

    if position_changed:
        amount = holding.qty * holding.avg_cost
        session.add(
            Transaction(
                user_id=user_id,
                holding_id=holding.id,
                bucket=holding.bucket,
                symbol=holding.symbol,
                name=holding.name,
                qty=holding.qty,
                price=holding.avg_cost,
                amount=amount,
                currency=holding.currency,
                amount_inr=_amount_inr(holding.currency, amount, holding.usd_inr_rate, None),
                usd_inr_rate=holding.usd_inr_rate if holding.currency == Currency.USD else None,
                transaction_type=TransactionType.MANUAL_EDIT,
                purchase_date=edit_date,
                description="Manual edit",
            )
        )

    session.commit()
    session.refresh(holding)
    return holding


def delete_holding(session: Session, user_id: UUID, holding_id: int) -> None:
    """Remove a holding; its ledger rows stay, detached."""
    holding = get_owned_holding(session, user_id, holding_id)
    _detach_and_delete_holding(session, holding)
    session.commit()
    logger.info("Deleted holding %s for user %s", holding_id, user_id)
