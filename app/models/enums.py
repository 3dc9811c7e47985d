from enum import Enum


class InvestmentBucket(str, Enum):
    MUTUAL_FUND = "MUTUAL_FUND"
    IND_STOCK = "IND_STOCK"
    US_STOCK = "US_STOCK"
    CRYPTO = "CRYPTO"
    EMERGENCY_FUND = "EMERGENCY_FUND"


class SIPFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


class TransactionType(str, Enum):
    ONE_TIME_PURCHASE = "ONE_TIME_PURCHASE"
    SIP_EXECUTION = "SIP_EXECUTION"
    MANUAL_ENTRY = "MANUAL_ENTRY"
    MANUAL_EDIT = "MANUAL_EDIT"


class TaxMode(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"
    HYBRID = "HYBRID"


class ExpenseType(str, Enum):
    EXPECTED = "EXPECTED"
    UNEXPECTED = "UNEXPECTED"


class ExpenseCategory(str, Enum):
    NEEDS = "NEEDS"
    PARTIAL_NEEDS = "PARTIAL_NEEDS"
    AVOID = "AVOID"


class AllocationType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    AMOUNT = "AMOUNT"


class MemberTransactionType(str, Enum):
    GAVE = "GAVE"
    OWE = "OWE"
    EXPENSE_PAID_FOR_THEM = "EXPENSE_PAID_FOR_THEM"
    EXPENSE_PAID_BY_THEM = "EXPENSE_PAID_BY_THEM"


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"


class SIPExecutionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
