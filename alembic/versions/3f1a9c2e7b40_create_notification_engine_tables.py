"""create farm records and notification engine tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_profiles'),
        sa.UniqueConstraint('phone_number', name='uq_profiles_phone_number'),
    )

    op.create_table(
        'farms',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('locale', sa.String(length=8), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['profiles.id'], name='fk_farms_owner_id_profiles'),
        sa.PrimaryKeyConstraint('id', name='pk_farms'),
    )

    op.create_table(
        'farm_members',
        sa.Column('farm_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'], name='fk_farm_members_farm_id_farms', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], name='fk_farm_members_user_id_profiles', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('farm_id', 'user_id', name='pk_farm_members'),
    )

    op.create_table(
        'animals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('farm_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('animal_type', sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'], name='fk_animals_farm_id_farms', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_animals'),
    )
    op.create_index('ix_animals_farm_id', 'animals', ['farm_id'], unique=False)

    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('farm_id', sa.Uuid(), nullable=False),
        sa.Column('animal_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('activity_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'], name='fk_activities_farm_id_farms', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['animal_id'], ['animals.id'], name='fk_activities_animal_id_animals', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_activities'),
    )
    op.create_index('ix_activities_status_date', 'activities', ['status', 'activity_date'], unique=False)

    op.create_table(
        'activity_schedules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('farm_id', sa.Uuid(), nullable=False),
        sa.Column('animal_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('recurrence_rule', sa.String(length=16), nullable=True),
        sa.Column('recurrence_day', sa.SmallInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'], name='fk_activity_schedules_farm_id_farms', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['animal_id'], ['animals.id'], name='fk_activity_schedules_animal_id_animals', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_activity_schedules'),
        sa.CheckConstraint(
            'recurrence_rule IS NULL OR is_recurring', name='ck_activity_schedules_rule_requires_recurring'
        ),
    )
    op.create_index('ix_activity_schedules_status_scheduled', 'activity_schedules', ['status', 'scheduled_at'], unique=False)
    op.create_index('ix_activity_schedules_farm', 'activity_schedules', ['farm_id'], unique=False)

    op.create_table(
        'farm_invitations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('farm_id', sa.Uuid(), nullable=False),
        sa.Column('inviter_id', sa.Uuid(), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['farm_id'], ['farms.id'], name='fk_farm_invitations_farm_id_farms', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inviter_id'], ['profiles.id'], name='fk_farm_invitations_inviter_id_profiles'),
        sa.PrimaryKeyConstraint('id', name='pk_farm_invitations'),
    )
    op.create_index('ix_farm_invitations_status_created', 'farm_invitations', ['status', 'created_at'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('priority', sa.String(length=16), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('farm_id', sa.Uuid(), nullable=True),
        sa.Column('related_entity_type', sa.String(length=16), nullable=True),
        sa.Column('related_entity_id', sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'], unique=False)
    op.create_index('ix_notifications_user_created', 'notifications', ['user_id', 'created_at'], unique=False)
    op.create_index(
        'ix_notifications_type_related',
        'notifications',
        ['type', 'related_entity_type', 'related_entity_id'],
        unique=False,
    )
    op.create_index('ix_notifications_type_farm_user', 'notifications', ['type', 'farm_id', 'user_id'], unique=False)

    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('activity_reminders', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('overdue_alerts', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('farm_invitations', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('member_joined', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('new_activities', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('push_enabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('email_enabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('reminder_lead_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('quiet_start', sa.Time(), nullable=True),
        sa.Column('quiet_end', sa.Time(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_notification_preferences'),
        sa.UniqueConstraint('user_id', name='uq_notification_preferences_user_id'),
        sa.CheckConstraint(
            'reminder_lead_minutes BETWEEN 1 AND 1440', name='ck_notification_preferences_lead_range'
        ),
    )

    op.create_table(
        'device_tokens',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('platform', sa.String(length=20), nullable=False),
        sa.Column('token', sa.String(length=512), nullable=False),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('disabled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], name='fk_device_tokens_user_id_profiles', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_device_tokens'),
    )
    op.create_index('uq_device_tokens_token', 'device_tokens', ['token'], unique=True)
    op.create_index('ix_device_tokens_user_active', 'device_tokens', ['user_id', 'disabled'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_device_tokens_user_active', table_name='device_tokens')
    op.drop_index('uq_device_tokens_token', table_name='device_tokens')
    op.drop_table('device_tokens')
    op.drop_table('notification_preferences')
    op.drop_index('ix_notifications_type_farm_user', table_name='notifications')
    op.drop_index('ix_notifications_type_related', table_name='notifications')
    op.drop_index('ix_notifications_user_created', table_name='notifications')
    op.drop_index('ix_notifications_user_read', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_farm_invitations_status_created', table_name='farm_invitations')
    op.drop_table('farm_invitations')
    op.drop_index('ix_activity_schedules_farm', table_name='activity_schedules')
    op.drop_index('ix_activity_schedules_status_scheduled', table_name='activity_schedules')
    op.drop_table('activity_schedules')
    op.drop_index('ix_activities_status_date', table_name='activities')
    op.drop_table('activities')
    op.drop_index('ix_animals_farm_id', table_name='animals')
    op.drop_table('animals')
    op.drop_table('farm_members')
    op.drop_table('farms')
    op.drop_table('profiles')
