"""Book lending module.

Provides functionality for:
- Opening and closing loans against the book inventory
- Enforcing one active loan per book and member
- Read-side views of active and historical loans
"""

from .ledger import FIRST_LOAN_ID, LoanLedger
from .schemas import Loan, LoanDetail, LoanStatus
from .store import LoanCodec, LoanMapper

__all__ = [
    "FIRST_LOAN_ID",
    "LoanLedger",
    "Loan",
    "LoanDetail",
    "LoanStatus",
    "LoanCodec",
    "LoanMapper",
]
