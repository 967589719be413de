"""
POS Bootstrap - Wiring and Startup Checks
=========================================
build_pos_system() assembles the engines; run_bootstrap_checks() refuses
to start the Django runtime on a broken ledger schema.
"""

from core.bootstrap.errors import SystemBootstrapError
from core.bootstrap.wiring import PosSystem, build_django_pos_system, build_pos_system

__all__ = [
    "PosSystem",
    "SystemBootstrapError",
    "build_django_pos_system",
    "build_pos_system",
]
