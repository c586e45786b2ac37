"""
events.py — Ledger notification signals.

The ledger announces what happened through blinker signals (the same
mechanism Flask uses for its own request signals). Subscribers are
observability only: ledger state is already final when a signal fires, and a
failing subscriber never fails the operation that emitted it.

Signals and their keyword payloads:
  group_created      group_id, name
  member_joined      group_id, member
  expense_added      group_id, description, total_amount
  debt_settled       group_id, payer, payee, amount
  debts_simplified   group_id
"""

from __future__ import annotations

import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

ledger_signals = Namespace()

group_created    = ledger_signals.signal("group-created")
member_joined    = ledger_signals.signal("member-joined")
expense_added    = ledger_signals.signal("expense-added")
debt_settled     = ledger_signals.signal("debt-settled")
debts_simplified = ledger_signals.signal("debts-simplified")

ALL_SIGNALS = (
    group_created,
    member_joined,
    expense_added,
    debt_settled,
    debts_simplified,
)


def emit(signal, **payload) -> None:
    """
    Sends `signal` to every receiver one at a time.

    Each receiver is called separately so one failing subscriber does not
    stop delivery to the others. Failures are logged with their traceback.
    """
    for receiver in list(signal.receivers_for(None)):
        try:
            receiver(None, **payload)
        except Exception:
            logger.exception(
                "Ledger event receiver %r failed for %s",
                receiver,
                signal.name,
            )


def connect_event_logging() -> None:
    """Subscribes an INFO-level log line to every ledger signal. Idempotent."""
    for signal in ALL_SIGNALS:
        signal.connect(_make_logger(signal.name), weak=False)


_event_loggers: dict[str, object] = {}


def _make_logger(name: str):
    receiver = _event_loggers.get(name)
    if receiver is None:
        def receiver(sender, **payload):
            logger.info("ledger event %s %s", name, payload)

        _event_loggers[name] = receiver
    return receiver
