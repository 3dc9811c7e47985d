"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-20 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name, *values):
    # Types are created once up front; several tables share them
    return postgresql.ENUM(*values, name=name, create_type=False)


investment_bucket = _enum("investmentbucket", "MUTUAL_FUND", "IND_STOCK", "US_STOCK", "CRYPTO", "EMERGENCY_FUND")
sip_frequency = _enum("sipfrequency", "MONTHLY", "YEARLY", "CUSTOM")
transaction_type = _enum("transactiontype", "ONE_TIME_PURCHASE", "SIP_EXECUTION", "MANUAL_ENTRY", "MANUAL_EDIT")
tax_mode = _enum("taxmode", "PERCENTAGE", "FIXED", "HYBRID")
expense_type = _enum("expensetype", "EXPECTED", "UNEXPECTED")
expense_category = _enum("expensecategory", "NEEDS", "PARTIAL_NEEDS", "AVOID")
allocation_type = _enum("allocationtype", "PERCENTAGE", "AMOUNT")
member_transaction_type = _enum("membertransactiontype", "EXPENSE_PAID_FOR_THEM", "EXPENSE_PAID_BY_THEM")
currency = _enum("currency", "INR", "USD")
sip_execution_status = _enum("sipexecutionstatus", "SUCCESS", "FAILED")

ENUMS = [
    investment_bucket,
    sip_frequency,
    transaction_type,
    tax_mode,
    expense_type,
    expense_category,
    allocation_type,
    member_transaction_type,
    currency,
    sip_execution_status,
]


def _owner():
    return sa.Column("user_id", sa.Uuid(), sa.ForeignKey("user.id"), nullable=False)


def upgrade():
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum in ENUMS:
            enum.create(bind, checkfirst=True)

    op.create_table(
        "user",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
    )
    op.create_index(op.f("ix_user_email"), "user", ["email"], unique=True)

    op.create_table(
        "salary_record",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("monthly", sa.Float(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_salary_record_user_id"), "salary_record", ["user_id"])
    op.create_index(op.f("ix_salary_record_effective_from"), "salary_record", ["effective_from"])

    op.create_table(
        "tax_setting",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("mode", tax_mode, nullable=False),
        sa.Column("percentage", sa.Float(), nullable=True),
        sa.Column("fixed_amount", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_tax_setting_user_id"), "tax_setting", ["user_id"])

    op.create_table(
        "loan",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("principal_amount", sa.Float(), nullable=False),
        sa.Column("emi_amount", sa.Float(), nullable=False),
        sa.Column("interest_rate", sa.Float(), nullable=False),
        sa.Column("tenure", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("current_outstanding", sa.Float(), nullable=False),
        sa.Column("is_closed", sa.Boolean(), nullable=False),
        sa.Column("closed_at", sa.Date(), nullable=True),
    )
    op.create_index(op.f("ix_loan_user_id"), "loan", ["user_id"])

    op.create_table(
        "loan_emi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("loan_id", sa.Integer(), sa.ForeignKey("loan.id"), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_loan_emi_loan_id"), "loan_emi", ["loan_id"])

    op.create_table(
        "sip",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("bucket", investment_bucket, nullable=False),
        sa.Column("symbol", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("frequency", sip_frequency, nullable=False),
        sa.Column("custom_day", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_sip_user_id"), "sip", ["user_id"])

    op.create_table(
        "holding",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("bucket", investment_bucket, nullable=False),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("qty", sa.Float(), nullable=False),
        sa.Column("avg_cost", sa.Float(), nullable=False),
        sa.Column("current_price", sa.Float(), nullable=True),
        sa.Column("currency", currency, nullable=False),
        sa.Column("usd_inr_rate", sa.Float(), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "bucket", "symbol", name="uq_holding_user_bucket_symbol"),
    )
    op.create_index(op.f("ix_holding_user_id"), "holding", ["user_id"])

    op.create_table(
        "sip_execution",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sip_id", sa.Integer(), sa.ForeignKey("sip.id"), nullable=False),
        _owner(),
        sa.Column("holding_id", sa.Integer(), sa.ForeignKey("holding.id"), nullable=True),
        sa.Column("execution_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("qty", sa.Float(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("status", sip_execution_status, nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
    )
    op.create_index(op.f("ix_sip_execution_sip_id"), "sip_execution", ["sip_id"])

    op.create_table(
        "income",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_income_user_id"), "income", ["user_id"])
    op.create_index(op.f("ix_income_date"), "income", ["date"])

    op.create_table(
        "member",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("relation", sa.String(), nullable=True),
        sa.Column("current_balance", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_member_user_id"), "member", ["user_id"])

    op.create_table(
        "expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("expense_type", expense_type, nullable=False),
        sa.Column("category", expense_category, nullable=False),
        sa.Column("needs_portion", sa.Float(), nullable=True),
        sa.Column("avoid_portion", sa.Float(), nullable=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("member.id"), nullable=True),
        sa.Column("paid_by_member", sa.Boolean(), nullable=False),
        sa.Column("paid_for_member", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_expense_user_id"), "expense", ["user_id"])
    op.create_index(op.f("ix_expense_date"), "expense", ["date"])

    op.create_table(
        "member_transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("member.id"), nullable=False),
        sa.Column("expense_id", sa.Integer(), sa.ForeignKey("expense.id"), nullable=True, unique=True),
        sa.Column("transaction_type", member_transaction_type, nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
    )
    op.create_index(op.f("ix_member_transaction_member_id"), "member_transaction", ["member_id"])

    op.create_table(
        "monthly_snapshot",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        *[
            sa.Column(name, sa.Float(), nullable=False)
            for name in (
                "net_salary",
                "tax_amount",
                "after_tax",
                "total_loans",
                "total_sips",
                "total_expenses",
                "expected_expenses",
                "unexpected_expenses",
                "needs_expenses",
                "avoid_expenses",
                "available_amount",
                "spent_amount",
                "surplus_amount",
                "previous_surplus",
            )
        ],
        sa.Column("is_closed", sa.Boolean(), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "year", "month", name="uq_snapshot_user_year_month"),
    )
    op.create_index(op.f("ix_monthly_snapshot_user_id"), "monthly_snapshot", ["user_id"])

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("holding_id", sa.Integer(), sa.ForeignKey("holding.id"), nullable=True),
        sa.Column("bucket", investment_bucket, nullable=False),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("qty", sa.Float(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", currency, nullable=False),
        sa.Column("amount_inr", sa.Float(), nullable=True),
        sa.Column("usd_inr_rate", sa.Float(), nullable=True),
        sa.Column("transaction_type", transaction_type, nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_transaction_user_id"), "transaction", ["user_id"])
    op.create_index(op.f("ix_transaction_holding_id"), "transaction", ["holding_id"])
    op.create_index(op.f("ix_transaction_purchase_date"), "transaction", ["purchase_date"])

    op.create_table(
        "investment_allocation",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("bucket", investment_bucket, nullable=False),
        sa.Column("allocation_type", allocation_type, nullable=False),
        sa.Column("percent", sa.Float(), nullable=True),
        sa.Column("custom_amount", sa.Float(), nullable=True),
        sa.UniqueConstraint("user_id", "bucket", name="uq_allocation_user_bucket"),
    )
    op.create_index(op.f("ix_investment_allocation_user_id"), "investment_allocation", ["user_id"])

    op.create_table(
        "borrowed_fund",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("member.id"), nullable=True),
        sa.Column("lender_name", sa.String(), nullable=False),
        sa.Column("borrowed_amount", sa.Float(), nullable=False),
        sa.Column("borrowed_date", sa.Date(), nullable=False),
        sa.Column("expected_return_date", sa.Date(), nullable=True),
        sa.Column("returned_amount", sa.Float(), nullable=False),
        sa.Column("is_fully_returned", sa.Boolean(), nullable=False),
        sa.Column("actual_return_date", sa.Date(), nullable=True),
        sa.Column("transaction_ids", sa.JSON(), nullable=False),
        sa.Column("sip_execution_ids", sa.JSON(), nullable=False),
        sa.Column("invested_amount", sa.Float(), nullable=False),
        sa.Column("surplus_amount", sa.Float(), nullable=False),
        sa.Column("interest_rate", sa.Float(), nullable=True),
        sa.Column("purpose", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_borrowed_fund_user_id"), "borrowed_fund", ["user_id"])


def downgrade():
    for table in (
        "borrowed_fund",
        "investment_allocation",
        "transaction",
        "monthly_snapshot",
        "member_transaction",
        "expense",
        "member",
        "income",
        "sip_execution",
        "holding",
        "sip",
        "loan_emi",
        "loan",
        "tax_setting",
        "salary_record",
        "user",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum in ENUMS:
            enum.drop(bind, checkfirst=True)
