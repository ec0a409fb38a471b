"""
Domain models — Pydantic types for the acceptance run.

    from clustercheck.core.models import Binding, CheckResult
"""

from clustercheck.core.models.binding import Binding, BindingCredentials
from clustercheck.core.models.check import CheckResult, CheckStatus

__all__ = [
    # binding.py
    "Binding",
    "BindingCredentials",
    # check.py
    "CheckResult",
    "CheckStatus",
]
