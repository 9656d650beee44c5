from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from app.domain import (
    DomainValidationError,
    NotFoundError,
    SessionStateError,
    SettlementImbalanceError,
    format_amount,
)


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


def domain_error(exc: DomainValidationError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return api_error(code="not_found", message=str(exc), status_code=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, SessionStateError):
        return api_error(code="invalid_state", message=str(exc), status_code=status.HTTP_409_CONFLICT)
    if isinstance(exc, SettlementImbalanceError):
        return api_error(
            code="imbalance",
            message=str(exc),
            details={
                "total_buy_in": format_amount(exc.check.total_buy_in),
                "total_cash_out": format_amount(exc.check.total_cash_out),
                "diff": format_amount(exc.check.diff),
            },
        )
    return api_error(code="validation_error", message=str(exc))
