"""
POS Bootstrap - Self-Check Orchestrator
=======================================
Runs every invariant check at startup; the first failure propagates and
the process refuses to start.
"""

import logging

from core.bootstrap.invariants import (
    check_append_only_guards,
    check_ledger_tables,
    check_on_hand_replay,
    check_single_open_shift,
)

logger = logging.getLogger("pos.bootstrap")


def run_bootstrap_checks():
    logger.info("POS bootstrap self-check starting")

    check_ledger_tables()
    check_append_only_guards()
    check_single_open_shift()
    check_on_hand_replay()

    logger.info("POS bootstrap self-check passed")
