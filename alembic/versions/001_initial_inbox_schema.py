"""initial inbox schema: contacts, conversations, messages, merge logs

Revision ID: 001_initial_inbox_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_inbox_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE = sa.text("status = 'active'")


def upgrade() -> None:
    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('whatsapp_phone_number', sa.String(length=50), nullable=True),
        sa.Column('instagram_id', sa.String(length=255), nullable=True),
        sa.Column('messenger_id', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('crm_partner_id', sa.String(length=100), nullable=True),
        sa.Column('crm_lead_id', sa.String(length=100), nullable=True),
        sa.Column('crm_stage', sa.String(length=100), nullable=True),
        sa.Column('sync_status', sa.String(length=20), nullable=True),
        sa.Column('assigned_staff_id', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
        sa.Column('attributes', sa.JSON(), nullable=True),
        sa.Column('last_interaction_at', sa.DateTime(), nullable=True),
        sa.Column('merged_into_contact_id', sa.Integer(), nullable=True),
        sa.Column('merged_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_contacts_id', 'contacts', ['id'])
    op.create_index('ix_contacts_tenant_id', 'contacts', ['tenant_id'])
    op.create_index('ix_contacts_status', 'contacts', ['status'])
    op.create_index('ix_contacts_merged_into_contact_id', 'contacts', ['merged_into_contact_id'])
    # One active holder per identifier and tenant; merged contacts are inactive
    for name, column in (
        ('uq_contacts_tenant_whatsapp_active', 'whatsapp_phone_number'),
        ('uq_contacts_tenant_instagram_active', 'instagram_id'),
        ('uq_contacts_tenant_messenger_active', 'messenger_id'),
        ('uq_contacts_tenant_crm_partner_active', 'crm_partner_id'),
    ):
        op.create_index(name, 'contacts', ['tenant_id', column], unique=True, postgresql_where=ACTIVE)

    op.create_table(
        'conversations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='direct'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('last_message_id', sa.Integer(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_conversations_id', 'conversations', ['id'])
    op.create_index('ix_conversations_tenant_id', 'conversations', ['tenant_id'])
    op.create_index('ix_conversations_tenant_channel_status', 'conversations', ['tenant_id', 'channel', 'status'])

    op.create_table(
        'conversation_participants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('conversation_id', sa.Integer(), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('conversation_id', 'contact_id', name='uq_conversation_participant'),
    )
    op.create_index('ix_conversation_participants_conversation_id', 'conversation_participants', ['conversation_id'])
    op.create_index('ix_conversation_participants_contact_id', 'conversation_participants', ['contact_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('conversation_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('sender_type', sa.String(length=20), nullable=False, server_default='contact'),
        sa.Column('sender_id', sa.String(length=64), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=20), nullable=False, server_default='text'),
        sa.Column('direction', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('external_id', sa.String(length=255), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_tenant_id', 'messages', ['tenant_id'])
    op.create_index('ix_messages_conversation_timestamp', 'messages', ['conversation_id', 'timestamp'])
    op.create_index('ix_messages_sender', 'messages', ['sender_type', 'sender_id'])
    op.create_index(
        'uq_messages_tenant_external_id', 'messages', ['tenant_id', 'external_id'],
        unique=True, postgresql_where=sa.text('external_id IS NOT NULL'),
    )

    op.create_table(
        'contact_merge_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('primary_contact_id', sa.Integer(), nullable=False),
        sa.Column('secondary_contact_id', sa.Integer(), nullable=False),
        sa.Column('merged_by', sa.String(length=64), nullable=True),
        sa.Column('merged_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('secondary_data_snapshot', sa.JSON(), nullable=True),
        sa.Column('stats', sa.JSON(), nullable=True),
    )
    op.create_index('ix_contact_merge_logs_id', 'contact_merge_logs', ['id'])
    op.create_index('ix_contact_merge_logs_tenant_id', 'contact_merge_logs', ['tenant_id'])
    op.create_index('ix_contact_merge_logs_primary_contact_id', 'contact_merge_logs', ['primary_contact_id'])


def downgrade() -> None:
    op.drop_table('contact_merge_logs')
    op.drop_table('messages')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
    op.drop_table('contacts')
