
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='partner'),
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('restaurant_name', sa.String(length=160), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_restaurant_name', 'users', ['restaurant_name'])

    op.create_table(
        'availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('restaurant_id', 'date', name='uq_availability_restaurant_date'),
    )
    op.create_index('ix_availability_restaurant_id', 'availability', ['restaurant_id'])
    op.create_index('ix_availability_date', 'availability', ['date'])

    op.create_table(
        'time_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('availability_id', sa.Integer(), sa.ForeignKey('availability.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('max_capacity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('current_bookings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('description', sa.String(length=255), nullable=False, server_default=''),
        sa.UniqueConstraint('availability_id', 'start_time', 'end_time', name='uq_time_slot_window'),
        sa.CheckConstraint('current_bookings >= 0', name='ck_time_slot_bookings_non_negative'),
    )
    op.create_index('ix_time_slots_availability_id', 'time_slots', ['availability_id'])

    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('contact', sa.String(length=32), nullable=True),
        sa.Column('restaurant_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slot_id', sa.Integer(), sa.ForeignKey('time_slots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('number_of_guests', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('subscribe_to_promotions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_reservations_email', 'reservations', ['email'])
    op.create_index('ix_reservations_restaurant_id', 'reservations', ['restaurant_id'])
    op.create_index('ix_reservations_slot_id', 'reservations', ['slot_id'])
    op.create_index('ix_reservations_date', 'reservations', ['date'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])

def downgrade():
    op.drop_table('reservations')
    op.drop_table('time_slots')
    op.drop_table('availability')
    op.drop_index('ix_users_restaurant_name', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
