"""
errors.py — AppError base class and error code registry.

Every error returned by the GroupLedger API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Never conflate 401 (unauthenticated) with 403 (not a group member).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"

    # ── Ledger Rule Violations (422) ───────────────────────────────────────
    # Zero amount, empty participants, non-member payer, split-data
    # length or sum mismatch.
    INVALID_PARAMETERS         = "INVALID_PARAMETERS"
    # Settlement amount zero, negative, or above the recorded debt.
    INVALID_PAYMENT            = "INVALID_PAYMENT"

    # ── Payment Rail (502) ─────────────────────────────────────────────────
    # The rail declined or errored; settlement state is unchanged.
    TRANSFER_FAILED            = "TRANSFER_FAILED"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but you are not in this group
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    NOT_GROUP_MEMBER           = "NOT_GROUP_MEMBER"       # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Constructors for the ledger error kinds ────────────────────────────────
# Services raise through these so the code/status pairing lives in one place.

def group_not_found(group_id: int) -> AppError:
    return AppError(
        ErrorCode.GROUP_NOT_FOUND,
        f"Group {group_id} does not exist.",
        404,
    )


def not_group_member(group_id: int) -> AppError:
    return AppError(
        ErrorCode.NOT_GROUP_MEMBER,
        f"You are not a member of group {group_id}.",
        403,
    )


def invalid_parameters(message: str, field: str | None = None) -> AppError:
    return AppError(ErrorCode.INVALID_PARAMETERS, message, 422, field=field)


def invalid_payment(message: str) -> AppError:
    return AppError(ErrorCode.INVALID_PAYMENT, message, 422, field="amount")


def transfer_failed(message: str) -> AppError:
    return AppError(ErrorCode.TRANSFER_FAILED, message, 502)
