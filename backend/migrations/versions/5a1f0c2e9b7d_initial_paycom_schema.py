"""Initial schema: paycom_transactions, paycom_transaction_audit, orders

Revision ID: 5a1f0c2e9b7d
Revises:
Create Date: 2026-10-19 10:12:44.218501

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a1f0c2e9b7d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('orders',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('amount', sa.Integer(), nullable=False),
    sa.Column('state', sa.SmallInteger(), nullable=False),
    sa.Column('description', sa.String(length=255), nullable=True),
    sa.Column('paid_transaction_id', sa.Integer(), nullable=True),
    sa.Column('delivered_at', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    sa.Column('version_id', sa.Integer(), nullable=False),
    sa.CheckConstraint('amount > 0', name='ck_orders_positive_amount'),
    sa.PrimaryKeyConstraint('id'),
    sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_state'), ['state'], unique=False)

    op.create_table('paycom_transactions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('paycom_transaction_id', sa.String(length=25), nullable=False),
    sa.Column('paycom_time', sa.BigInteger(), nullable=False),
    sa.Column('paycom_time_datetime', sa.DateTime(), nullable=False),
    sa.Column('create_time', sa.DateTime(), nullable=False),
    sa.Column('perform_time', sa.DateTime(), nullable=True),
    sa.Column('cancel_time', sa.DateTime(), nullable=True),
    sa.Column('amount', sa.Integer(), nullable=False),
    sa.Column('state', sa.SmallInteger(), nullable=False),
    sa.Column('reason', sa.SmallInteger(), nullable=True),
    sa.Column('receivers', sa.JSON(none_as_null=True), nullable=True),
    sa.Column('order_id', sa.String(length=64), nullable=False),
    sa.CheckConstraint('state IN (1, 2, -1, -2)', name='ck_paycom_transactions_state'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('paycom_transaction_id', name='uq_paycom_transactions_paycom_id'),
    sqlite_autoincrement=True
    )
    with op.batch_alter_table('paycom_transactions', schema=None) as batch_op:
        batch_op.create_index('ix_paycom_transactions_order_state', ['order_id', 'state'], unique=False)
        batch_op.create_index('ix_paycom_transactions_paycom_time', ['paycom_time'], unique=False)

    op.create_table('paycom_transaction_audit',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('transaction_id', sa.Integer(), nullable=False),
    sa.Column('action', sa.String(length=16), nullable=False),
    sa.Column('before_json', sa.JSON(none_as_null=True), nullable=True),
    sa.Column('after_json', sa.JSON(), nullable=False),
    sa.Column('occurred_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['transaction_id'], ['paycom_transactions.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sqlite_autoincrement=True
    )
    with op.batch_alter_table('paycom_transaction_audit', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_paycom_transaction_audit_transaction_id'), ['transaction_id'], unique=False)
        batch_op.create_index('ix_paycom_audit_transaction', ['transaction_id', 'occurred_at'], unique=False)


def downgrade():
    with op.batch_alter_table('paycom_transaction_audit', schema=None) as batch_op:
        batch_op.drop_index('ix_paycom_audit_transaction')
        batch_op.drop_index(batch_op.f('ix_paycom_transaction_audit_transaction_id'))

    op.drop_table('paycom_transaction_audit')

    with op.batch_alter_table('paycom_transactions', schema=None) as batch_op:
        batch_op.drop_index('ix_paycom_transactions_paycom_time')
        batch_op.drop_index('ix_paycom_transactions_order_state')

    op.drop_table('paycom_transactions')

    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_orders_state'))

    op.drop_table('orders')
