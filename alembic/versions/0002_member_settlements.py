"""direct member entries and settlements

Revision ID: 0002_member_settlements
Revises: 0001_initial_schema
Create Date: 2025-11-03 18:20:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_member_settlements"
down_revision: Union[str, Sequence[str], None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        with op.get_context().autocommit_block():
            op.execute("ALTER TYPE membertransactiontype ADD VALUE IF NOT EXISTS 'GAVE'")
            op.execute("ALTER TYPE membertransactiontype ADD VALUE IF NOT EXISTS 'OWE'")

    with op.batch_alter_table("member") as batch:
        batch.add_column(sa.Column("extra_spent", sa.Float(), nullable=False, server_default=sa.text("0")))
        batch.add_column(sa.Column("extra_owe", sa.Float(), nullable=False, server_default=sa.text("0")))

    with op.batch_alter_table("member_transaction") as batch:
        batch.add_column(sa.Column("is_settled", sa.Boolean(), nullable=False, server_default=sa.false()))
        batch.add_column(sa.Column("settled_date", sa.Date(), nullable=True))
        batch.add_column(sa.Column("settled_amount", sa.Float(), nullable=True))
        batch.add_column(sa.Column("settled_notes", sa.String(), nullable=True))
        batch.add_column(sa.Column("settlement_income_id", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("settlement_expense_id", sa.Integer(), nullable=True))
        batch.create_foreign_key(
            "fk_member_transaction_settlement_income_id", "income", ["settlement_income_id"], ["id"]
        )
        batch.create_foreign_key(
            "fk_member_transaction_settlement_expense_id", "expense", ["settlement_expense_id"], ["id"]
        )


def downgrade() -> None:
    # Postgres cannot drop enum values; GAVE/OWE stay on the type
    with op.batch_alter_table("member_transaction") as batch:
        batch.drop_constraint("fk_member_transaction_settlement_expense_id", type_="foreignkey")
        batch.drop_constraint("fk_member_transaction_settlement_income_id", type_="foreignkey")
        batch.drop_column("settlement_expense_id")
        batch.drop_column("settlement_income_id")
        batch.drop_column("settled_notes")
        batch.drop_column("settled_amount")
        batch.drop_column("settled_date")
        batch.drop_column("is_settled")

    with op.batch_alter_table("member") as batch:
        batch.drop_column("extra_owe")
        batch.drop_column("extra_spent")
