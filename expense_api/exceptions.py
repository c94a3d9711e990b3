"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors without importing HTTP
concepts. The handlers registered here translate them into HTTP responses
with a consistent body: {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    ExpenseAPIError (base)
    ├── ValidationError              — malformed or missing input (400)
    ├── NotFoundError                — absent, or not owned by the caller (404)
    │   ├── AccountNotFoundError
    │   └── TransactionNotFoundError
    ├── ConflictError                — blocked by existing state (409)
    │   ├── AccountHasTransactionsError
    │   └── DuplicateEmailError
    ├── InvalidCredentialsError      — bad email/password (401)
    └── ConsistencyError             — paired journal/ledger write failed (500)
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class ExpenseAPIError(Exception):
    """Base exception for all Expense Tracker domain errors."""

    status_code = 500
    error_type = "error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class ValidationError(ExpenseAPIError):
    """Raised when input is missing or malformed. The caller must correct and resend."""

    status_code = 400
    error_type = "validation_error"


class NotFoundError(ExpenseAPIError):
    """Raised when a referenced record is absent or owned by someone else."""

    status_code = 404
    error_type = "not_found"


class AccountNotFoundError(NotFoundError):
    """Raised when a requested account does not exist for the caller."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class TransactionNotFoundError(NotFoundError):
    """Raised when a requested transaction does not exist for the caller."""

    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class ConflictError(ExpenseAPIError):
    """Raised when existing state blocks the request until the caller resolves it."""

    status_code = 409
    error_type = "conflict"


class AccountHasTransactionsError(ConflictError):
    """Raised when deleting an account that still has transactions."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(
            "Cannot delete account with existing transactions. "
            "Please delete its transactions first."
        )


class DuplicateEmailError(ConflictError):
    """Raised when attempting to register with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(ExpenseAPIError):
    """Raised when signin credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid email or password")


class ConsistencyError(ExpenseAPIError):
    """
    Raised when a transaction record and its account update could not be
    written together.

    The session has already been rolled back when this is raised, so the
    journal and the ledger are left exactly as they were before the request.

    Attributes:
        operation: The journal operation that failed ("create", "update", "delete").
    """

    status_code = 500
    error_type = "consistency_error"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        super().__init__(
            f"Transaction {operation} could not be applied consistently "
            f"to the account: {reason}"
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Every domain error carries its own status code and error_type, so a
    single handler on the base class covers the whole hierarchy. Request
    body/query validation failures are reported as validation errors (400)
    as well, so callers see one status for "fix your input".

    This is called once during app startup in main.py.
    """

    @app.exception_handler(ExpenseAPIError)
    async def expense_api_error_handler(
        request: Request, exc: ExpenseAPIError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={
                "detail": f"{location}: {message}" if location else message,
                "error_type": ValidationError.error_type,
                "errors": jsonable_errors(errors),
            },
        )


def jsonable_errors(errors) -> list[dict]:
    """Strip non-serializable context (e.g. exception objects) from pydantic errors."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]
