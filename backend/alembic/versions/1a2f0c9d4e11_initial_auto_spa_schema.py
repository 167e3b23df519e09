"""Initial auto spa schema

Revision ID: 1a2f0c9d4e11
Revises:
Create Date: 2026-10-19 10:12:31.418204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '1a2f0c9d4e11'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def _dictionary(name: str) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(op.f(f'ix_{name}_id'), name, ['id'], unique=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # Słowniki
    op.create_table(
        'item_type',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_item_type_id'), 'item_type', ['id'], unique=False)
    op.create_table(
        'expense_type',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_expense_type_id'), 'expense_type', ['id'], unique=False)
    for name in ('car_model', 'car_type', 'color', 'service'):
        _dictionary(name)

    op.create_table(
        'customer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_customer_id'), 'customer', ['id'], unique=False)
    op.create_index(op.f('ix_customer_phone'), 'customer', ['phone'], unique=False)

    # Magazyn
    op.create_table(
        'item',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('barcode', sa.String(), nullable=False),
        sa.Column('type_id', sa.Integer(), sa.ForeignKey('item_type.id'), nullable=True),
        sa.Column('item_purchase_price', sa.Float(), nullable=False),
        sa.Column('item_sell_price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('item_less_from', sa.Integer(), nullable=True),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_item_id'), 'item', ['id'], unique=False)
    op.create_index(op.f('ix_item_name'), 'item', ['name'], unique=False)
    op.create_index(op.f('ix_item_barcode'), 'item', ['barcode'], unique=True)

    op.create_table(
        'item_quantity_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('item.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('item_purchase_price', sa.Float(), nullable=False),
        sa.Column('item_sell_price', sa.Float(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_item_quantity_history_id'), 'item_quantity_history', ['id'], unique=False)
    op.create_index(op.f('ix_item_quantity_history_item_id'), 'item_quantity_history', ['item_id'], unique=False)
    op.create_index(op.f('ix_item_quantity_history_created_at'), 'item_quantity_history', ['created_at'], unique=False)

    # Sprzedaż
    op.create_table(
        'sell',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.DateTime(), nullable=True),
        sa.Column('discount', sa.Float(), nullable=False, server_default='0'),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_sell_id'), 'sell', ['id'], unique=False)
    op.create_index(op.f('ix_sell_created_at'), 'sell', ['created_at'], unique=False)

    op.create_table(
        'sell_item',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sell_id', sa.Integer(), sa.ForeignKey('sell.id'), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('item.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('item_purchase_price', sa.Float(), nullable=False),
        sa.Column('item_sell_price', sa.Float(), nullable=False),
        sa.Column('self_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_sell_item_id'), 'sell_item', ['id'], unique=False)
    op.create_index(op.f('ix_sell_item_sell_id'), 'sell_item', ['sell_id'], unique=False)
    op.create_index(op.f('ix_sell_item_item_id'), 'sell_item', ['item_id'], unique=False)
    op.create_index(op.f('ix_sell_item_created_at'), 'sell_item', ['created_at'], unique=False)

    # Wydatki i rezerwacje
    op.create_table(
        'expense',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type_id', sa.Integer(), sa.ForeignKey('expense_type.id'), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=True),
        sa.Column('note', sa.String(), nullable=True),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_expense_id'), 'expense', ['id'], unique=False)
    op.create_index(op.f('ix_expense_created_at'), 'expense', ['created_at'], unique=False)

    op.create_table(
        'reservation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customer.id'), nullable=True),
        sa.Column('car_model_id', sa.Integer(), sa.ForeignKey('car_model.id'), nullable=True),
        sa.Column('car_type_id', sa.Integer(), sa.ForeignKey('car_type.id'), nullable=True),
        sa.Column('color_id', sa.Integer(), sa.ForeignKey('color.id'), nullable=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('service.id'), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('date_time', sa.DateTime(), nullable=False),
        sa.Column('note', sa.String(), nullable=True),
        sa.Column('complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_reservation_id'), 'reservation', ['id'], unique=False)
    op.create_index(op.f('ix_reservation_date_time'), 'reservation', ['date_time'], unique=False)

    # Ustawienia i audyt
    op.create_table(
        'config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('report_print_modal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('item_less_from', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('initial_money', sa.Float(), nullable=False, server_default='0'),
    )
    op.create_index(op.f('ix_config_id'), 'config', ['id'], unique=False)

    op.create_table(
        'printer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(op.f('ix_printer_id'), 'printer', ['id'], unique=False)

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=True),
        sa.Column('resource_id', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
    )
    op.create_index(op.f('ix_logs_id'), 'logs', ['id'], unique=False)
    op.create_index(op.f('ix_logs_ts'), 'logs', ['ts'], unique=False)
    op.create_index(op.f('ix_logs_action'), 'logs', ['action'], unique=False)
    op.create_index(op.f('ix_logs_resource'), 'logs', ['resource'], unique=False)
    op.create_index(op.f('ix_logs_resource_id'), 'logs', ['resource_id'], unique=False)
    op.create_index(op.f('ix_logs_status'), 'logs', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'logs', 'printer', 'config', 'reservation', 'expense', 'sell_item', 'sell',
        'item_quantity_history', 'item', 'customer', 'service', 'color', 'car_type',
        'car_model', 'expense_type', 'item_type', 'users',
    ):
        op.drop_table(table)
