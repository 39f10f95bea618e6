"""initial schema

Revision ID: 4b1e7c9a2d30
Revises:
Create Date: 2026-10-19 09:12:41.207311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b1e7c9a2d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create import_runs table
    op.create_table(
        'import_runs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('file_hash', sa.String(length=64), nullable=False),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('file_type', sa.String(length=16), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('total_records', sa.Integer(), nullable=True),
        sa.Column('processed_records', sa.Integer(), nullable=True),
        sa.Column('failed_records', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_hash', name='uq_import_runs_file_hash')
    )
    op.create_index(op.f('ix_import_runs_id'), 'import_runs', ['id'], unique=False)

    # Create bank_accounts table
    op.create_table(
        'bank_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_no', sa.String(length=64), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('iban', sa.String(length=34), nullable=True),
        sa.Column('bank_bic', sa.String(length=11), nullable=True),
        sa.Column('holder_name', sa.String(length=128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_no', 'currency', name='uq_bank_accounts_account_currency')
    )
    op.create_index(op.f('ix_bank_accounts_id'), 'bank_accounts', ['id'], unique=False)

    # Create statement_files table
    op.create_table(
        'statement_files',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('import_run_id', sa.Integer(), nullable=False),
        sa.Column('bank_account_id', sa.Integer(), nullable=False),
        sa.Column('statement_reference', sa.String(length=35), nullable=False),
        sa.Column('sequence_number', sa.String(length=35), nullable=False),
        sa.Column('statement_date', sa.Date(), nullable=False),
        sa.Column('opening_dc', sa.String(length=1), nullable=False),
        sa.Column('opening_amount', sa.Numeric(precision=19, scale=3), nullable=False),
        sa.Column('closing_dc', sa.String(length=1), nullable=False),
        sa.Column('closing_amount', sa.Numeric(precision=19, scale=3), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('is_interim', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['import_run_id'], ['import_runs.id'], ),
        sa.ForeignKeyConstraint(['bank_account_id'], ['bank_accounts.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bank_account_id', 'statement_reference', 'sequence_number', name='uq_statement_files_natural_key')
    )
    op.create_index(op.f('ix_statement_files_id'), 'statement_files', ['id'], unique=False)
    op.create_index(op.f('ix_statement_files_import_run_id'), 'statement_files', ['import_run_id'], unique=False)

    # Create import_errors table
    op.create_table(
        'import_errors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('import_run_id', sa.Integer(), nullable=False),
        sa.Column('statement_file_id', sa.Integer(), nullable=True),
        sa.Column('line_no', sa.Integer(), nullable=True),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['import_run_id'], ['import_runs.id'], ),
        sa.ForeignKeyConstraint(['statement_file_id'], ['statement_files.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_import_errors_id'), 'import_errors', ['id'], unique=False)
    op.create_index(op.f('ix_import_errors_import_run_id'), 'import_errors', ['import_run_id'], unique=False)

    # Create statement_balances table
    op.create_table(
        'statement_balances',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('statement_file_id', sa.Integer(), nullable=False),
        sa.Column('balance_type', sa.String(length=16), nullable=False),
        sa.Column('dc', sa.String(length=1), nullable=False),
        sa.Column('balance_date', sa.Date(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('amount', sa.Numeric(precision=19, scale=3), nullable=False),
        sa.ForeignKeyConstraint(['statement_file_id'], ['statement_files.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_statement_balances_id'), 'statement_balances', ['id'], unique=False)
    op.create_index(op.f('ix_statement_balances_statement_file_id'), 'statement_balances', ['statement_file_id'], unique=False)

    # Create statement_transactions table
    op.create_table(
        'statement_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('statement_file_id', sa.Integer(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('value_date', sa.Date(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=True),
        sa.Column('dc', sa.String(length=2), nullable=False),
        sa.Column('funds_code', sa.String(length=1), nullable=True),
        sa.Column('amount', sa.Numeric(precision=19, scale=3), nullable=False),
        sa.Column('signed_amount', sa.Numeric(precision=19, scale=3), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('txn_type_code', sa.String(length=4), nullable=True),
        sa.Column('customer_reference', sa.String(length=35), nullable=True),
        sa.Column('bank_reference', sa.String(length=35), nullable=True),
        sa.Column('entry_reference', sa.String(length=35), nullable=True),
        sa.Column('narrative', sa.Text(), nullable=True),
        sa.Column('idempotency_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['statement_file_id'], ['statement_files.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_hash', name='uq_statement_transactions_idempotency_hash')
    )
    op.create_index(op.f('ix_statement_transactions_id'), 'statement_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_statement_transactions_statement_file_id'), 'statement_transactions', ['statement_file_id'], unique=False)

    # Create transaction_86_segments table
    op.create_table(
        'transaction_86_segments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('statement_transaction_id', sa.Integer(), nullable=False),
        sa.Column('seg_key', sa.String(length=32), nullable=False),
        sa.Column('seg_value', sa.String(length=512), nullable=True),
        sa.Column('seg_seq', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['statement_transaction_id'], ['statement_transactions.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_transaction_86_segments_id'), 'transaction_86_segments', ['id'], unique=False)
    op.create_index(op.f('ix_transaction_86_segments_statement_transaction_id'), 'transaction_86_segments', ['statement_transaction_id'], unique=False)

    # Create raw_statement_lines table
    op.create_table(
        'raw_statement_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('statement_file_id', sa.Integer(), nullable=False),
        sa.Column('statement_transaction_id', sa.Integer(), nullable=True),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('tag', sa.String(length=8), nullable=True),
        sa.Column('raw_text', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['statement_file_id'], ['statement_files.id'], ),
        sa.ForeignKeyConstraint(['statement_transaction_id'], ['statement_transactions.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_raw_statement_lines_id'), 'raw_statement_lines', ['id'], unique=False)
    op.create_index(op.f('ix_raw_statement_lines_statement_file_id'), 'raw_statement_lines', ['statement_file_id'], unique=False)

    # Create van_transactions table
    op.create_table(
        'van_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('import_run_id', sa.Integer(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=True),
        sa.Column('main_account_number', sa.String(), nullable=False),
        sa.Column('virtual_account_number', sa.String(), nullable=False),
        sa.Column('transaction_reference_number', sa.String(), nullable=True),
        sa.Column('bank_reference_trace_id', sa.String(), nullable=True),
        sa.Column('remitter_name', sa.String(), nullable=True),
        sa.Column('remitter_account_number', sa.String(), nullable=True),
        sa.Column('remitter_ifsc_bank_name', sa.String(), nullable=True),
        sa.Column('remitter_vpa', sa.String(), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=True),
        sa.Column('value_date', sa.Date(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=19, scale=2), nullable=False),
        sa.Column('mode_channel', sa.String(), nullable=True),
        sa.Column('payment_description_narration', sa.String(), nullable=True),
        sa.Column('payment_status', sa.String(), nullable=True),
        sa.Column('mapped_customer_id_code', sa.String(), nullable=True),
        sa.Column('invoice_reference_id', sa.String(), nullable=True),
        sa.Column('date_time_of_credit', sa.DateTime(), nullable=True),
        sa.Column('branch_bank_code', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.ForeignKeyConstraint(['import_run_id'], ['import_runs.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_van_transactions_id'), 'van_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_van_transactions_import_run_id'), 'van_transactions', ['import_run_id'], unique=False)
    op.create_index(op.f('ix_van_transactions_virtual_account_number'), 'van_transactions', ['virtual_account_number'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_van_transactions_virtual_account_number'), table_name='van_transactions')
    op.drop_index(op.f('ix_van_transactions_import_run_id'), table_name='van_transactions')
    op.drop_index(op.f('ix_van_transactions_id'), table_name='van_transactions')
    op.drop_table('van_transactions')
    op.drop_index(op.f('ix_raw_statement_lines_statement_file_id'), table_name='raw_statement_lines')
    op.drop_index(op.f('ix_raw_statement_lines_id'), table_name='raw_statement_lines')
    op.drop_table('raw_statement_lines')
    op.drop_index(op.f('ix_transaction_86_segments_statement_transaction_id'), table_name='transaction_86_segments')
    op.drop_index(op.f('ix_transaction_86_segments_id'), table_name='transaction_86_segments')
    op.drop_table('transaction_86_segments')
    op.drop_index(op.f('ix_statement_transactions_statement_file_id'), table_name='statement_transactions')
    op.drop_index(op.f('ix_statement_transactions_id'), table_name='statement_transactions')
    op.drop_table('statement_transactions')
    op.drop_index(op.f('ix_statement_balances_statement_file_id'), table_name='statement_balances')
    op.drop_index(op.f('ix_statement_balances_id'), table_name='statement_balances')
    op.drop_table('statement_balances')
    op.drop_index(op.f('ix_import_errors_import_run_id'), table_name='import_errors')
    op.drop_index(op.f('ix_import_errors_id'), table_name='import_errors')
    op.drop_table('import_errors')
    op.drop_index(op.f('ix_statement_files_import_run_id'), table_name='statement_files')
    op.drop_index(op.f('ix_statement_files_id'), table_name='statement_files')
    op.drop_table('statement_files')
    op.drop_index(op.f('ix_bank_accounts_id'), table_name='bank_accounts')
    op.drop_table('bank_accounts')
    op.drop_index(op.f('ix_import_runs_id'), table_name='import_runs')
    op.drop_table('import_runs')
