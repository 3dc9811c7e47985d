from fastapi import Request, status
from fastapi.responses import JSONResponse


class FinanceError(Exception):
    """Base class for errors raised by the finance engine.

    Each subclass carries the HTTP status the API answers with, so routers
    can let these propagate instead of translating them one by one.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FinanceError):
    """Input breaks a business rule (nothing was written)."""


class ClosedPeriodError(FinanceError):
    """The mutation targets a month whose snapshot is already closed."""


class NegativeQuantityError(FinanceError):
    """Reversing a transaction would leave a holding with negative quantity."""


class AllocationExceededError(ValidationError):
    def __init__(self, bucket: str, total_allocation: float, used: float, remaining: float, requested: float):
        self.bucket = bucket
        self.total_allocation = total_allocation
        self.used = used
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Cannot add purchase. {bucket} bucket allocation is ₹{total_allocation:,.2f}, "
            f"₹{used:,.2f} is already used and ₹{remaining:,.2f} remains, "
            f"but you're trying to invest ₹{requested:,.2f}."
        )


class NotFoundError(FinanceError):
    status_code = status.HTTP_404_NOT_FOUND


class PriceUnavailableError(FinanceError):
    """A price or FX lookup could not be answered by any provider."""

    status_code = status.HTTP_502_BAD_GATEWAY


async def finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
