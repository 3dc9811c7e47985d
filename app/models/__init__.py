from app.models.user import User
from app.models.salary import SalaryRecord
from app.models.tax_setting import TaxSetting
from app.models.loan import Loan, LoanEmi
from app.models.sip import SIP, SIPExecution
from app.models.income import Income
from app.models.member import Member, MemberTransaction
from app.models.expense import Expense
from app.models.monthly_snapshot import MonthlySnapshot
from app.models.holding import Holding
from app.models.transaction import Transaction
from app.models.allocation import InvestmentAllocation
from app.models.borrowed_fund import BorrowedFund

__all__ = [
    "User",
    "SalaryRecord",
    "TaxSetting",
    "Loan",
    "LoanEmi",
    "SIP",
    "SIPExecution",
    "Income",
    "Member",
    "MemberTransaction",
    "Expense",
    "MonthlySnapshot",
    "Holding",
    "Transaction",
    "InvestmentAllocation",
    "BorrowedFund",
]
