"""Rejection taxonomy for ledger commands and decryption callbacks.

Every command either succeeds or raises exactly one of these. ``code`` is
stable for log lines and event consumers; ``security_relevant`` marks the
rejections integrators must surface separately from ordinary validation
failures (replays and integrity mismatches).
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger rejections."""

    code = "ledger_error"
    security_relevant = False

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.code)
        self.details = details


class NotAuthorized(LedgerError):
    code = "not_authorized"


class PausedState(LedgerError):
    code = "paused"


class CooldownActive(LedgerError):
    code = "cooldown_active"

    @property
    def retry_at(self) -> float | None:
        return self.details.get("retry_at")


class BatchNotOpen(LedgerError):
    code = "batch_not_open"


class BatchAlreadyOpen(LedgerError):
    code = "batch_already_open"


class InvalidBatchReference(LedgerError):
    code = "invalid_batch"


class ReplayAttempt(LedgerError):
    code = "replay_attempt"
    security_relevant = True


class StateMismatch(LedgerError):
    code = "state_mismatch"
    security_relevant = True


class ProofVerificationFailed(LedgerError):
    code = "decryption_failed"


class MalformedCleartext(ProofVerificationFailed):
    code = "malformed_cleartext"


# Short names used by callers that follow the command table wording.
InvalidBatch = InvalidBatchReference
DecryptionFailed = ProofVerificationFailed


__all__ = [
    "BatchAlreadyOpen",
    "BatchNotOpen",
    "CooldownActive",
    "DecryptionFailed",
    "InvalidBatch",
    "InvalidBatchReference",
    "LedgerError",
    "MalformedCleartext",
    "NotAuthorized",
    "PausedState",
    "ProofVerificationFailed",
    "ReplayAttempt",
    "StateMismatch",
]
