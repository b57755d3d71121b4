"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-02-02 10:12:44.318027

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _created_at():
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True)


def _updated_at():
    return sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True)


def _fk(name, target, ondelete='CASCADE', nullable=False):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    # Accounts
    op.create_table(
        'profiles',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='user', nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)
    op.create_index('ix_profiles_role_created_at', 'profiles', ['role', 'created_at'], unique=False)

    op.create_table(
        'user_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subscription_plan', sa.String(length=40), server_default='basic', nullable=False),
        sa.Column('subscription_start_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('subscription_end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        _fk('current_therapist_id', 'profiles.id', ondelete='SET NULL', nullable=True),
        sa.Column('allow_therapist_access', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('dodo_customer_id', sa.String(), nullable=True),
        _created_at(),
        _updated_at(),
    )

    # Therapists
    op.create_table(
        'therapist_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('photo_url', sa.String(), nullable=True),
        sa.Column('qualifications', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('verification_status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('license_number', sa.String(), nullable=True),
        sa.Column('government_id_path', sa.String(), nullable=True),
        sa.Column('degree_certificate_path', sa.String(), nullable=True),
        sa.Column('rating', sa.Float(), server_default='0', nullable=False),
        sa.Column('total_patients', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_earnings', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejection_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('can_resubmit', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('resubmission_requested', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name='ck_therapist_profiles_verification_status',
        ),
    )
    op.create_index('ix_therapist_profiles_verification_status', 'therapist_profiles', ['verification_status'], unique=False)

    op.create_table(
        'therapist_services',
        _id(),
        _fk('therapist_id', 'therapist_profiles.id'),
        sa.Column('sessions_per_week', sa.Integer(), server_default='1', nullable=False),
        sa.Column('price_per_session', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'therapist_reviews',
        _id(),
        _fk('therapist_id', 'therapist_profiles.id'),
        _fk('user_id', 'profiles.id'),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('review_text', sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint('therapist_id', 'user_id', name='uq_therapist_reviews_therapist_user'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_therapist_reviews_rating'),
    )

    op.create_table(
        'therapist_patients',
        _id(),
        _fk('therapist_id', 'therapist_profiles.id'),
        _fk('user_id', 'profiles.id'),
        _fk('service_id', 'therapist_services.id', ondelete='SET NULL', nullable=True),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
    )
    op.create_index('ix_therapist_patients_therapist_active', 'therapist_patients', ['therapist_id', 'is_active'], unique=False)
    op.create_index('ix_therapist_patients_user_active', 'therapist_patients', ['user_id', 'is_active'], unique=False)

    # Care
    op.create_table(
        'session_requests',
        _id(),
        _fk('relationship_id', 'therapist_patients.id'),
        _fk('user_id', 'profiles.id'),
        _fk('therapist_id', 'therapist_profiles.id'),
        sa.Column('status', sa.String(length=20), server_default='requested', nullable=False),
        sa.Column('requested_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('scheduled_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('meeting_link', sa.String(), nullable=True),
        sa.Column('user_notes', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint(
            "status IN ('requested', 'scheduled', 'completed', 'cancelled', 'postponed')",
            name='ck_session_requests_status',
        ),
    )
    op.create_index('ix_session_requests_therapist_status', 'session_requests', ['therapist_id', 'status'], unique=False)
    op.create_index('ix_session_requests_user_created_at', 'session_requests', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'session_notes',
        _id(),
        _fk('session_id', 'session_requests.id'),
        _fk('therapist_id', 'therapist_profiles.id'),
        _fk('user_id', 'profiles.id'),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('doctors_notes', sa.Text(), nullable=True),
        sa.Column('prescription', sa.Text(), nullable=True),
        sa.Column('exercises', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'therapist_messages',
        _id(),
        _fk('relationship_id', 'therapist_patients.id'),
        _fk('sender_id', 'profiles.id'),
        _fk('receiver_id', 'profiles.id'),
        sa.Column('content', sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index(
        'ix_therapist_messages_relationship_created_at', 'therapist_messages', ['relationship_id', 'created_at'], unique=False
    )

    op.create_table(
        'prescriptions',
        _id(),
        _fk('therapist_id', 'therapist_profiles.id'),
        _fk('user_id', 'profiles.id'),
        _fk('relationship_id', 'therapist_patients.id'),
        sa.Column('type', sa.String(length=40), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _created_at(),
        sa.CheckConstraint("type IN ('prescription', 'preventive_measure')", name='ck_prescriptions_type'),
    )

    # Journal
    op.create_table(
        'journal_entries',
        _id(),
        _fk('user_id', 'profiles.id'),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('ai_reflection', sa.Text(), nullable=True),
        sa.Column('mood', sa.String(length=40), nullable=True),
        sa.Column('mental_health_score', sa.Integer(), nullable=True),
        sa.Column('happiness_score', sa.Integer(), nullable=True),
        sa.Column('accountability_score', sa.Integer(), nullable=True),
        sa.Column('stress_score', sa.Integer(), nullable=True),
        sa.Column('burnout_risk_score', sa.Integer(), nullable=True),
        sa.Column('visible_to_therapist', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('user_id', 'entry_date', name='uq_journal_entries_user_date'),
    )
    op.create_index('ix_journal_entries_user_entry_date', 'journal_entries', ['user_id', 'entry_date'], unique=False)

    op.create_table(
        'journal_chat_conversations',
        _id(),
        _fk('user_id', 'profiles.id'),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('chat_mode', sa.String(length=20), server_default='quick_reflect', nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index(
        'ix_journal_chat_conversations_user_updated_at', 'journal_chat_conversations', ['user_id', 'updated_at'], unique=False
    )

    op.create_table(
        'journal_chat_messages',
        _id(),
        _fk('conversation_id', 'journal_chat_conversations.id'),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _created_at(),
    )

    # Billing
    op.create_table(
        'subscription_plans',
        _id(),
        sa.Column('plan_name', sa.String(length=40), nullable=False, unique=True),
        sa.Column('display_name', sa.String(length=80), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_monthly', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('price_yearly', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('quick_reflect_limit', sa.Integer(), server_default='0', nullable=False),
        sa.Column('deep_reflect_limit', sa.Integer(), server_default='0', nullable=False),
        sa.Column('therapist_sessions_per_week', sa.Integer(), server_default='0', nullable=False),
        sa.Column('dodo_product_id', sa.String(), nullable=True),
        sa.Column('features', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'user_subscriptions',
        _id(),
        _fk('user_id', 'profiles.id'),
        sa.Column('plan_name', sa.String(length=40), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('dodo_subscription_id', sa.String(), nullable=True),
        sa.Column('dodo_customer_id', sa.String(), nullable=True),
        sa.Column('billing_cycle', sa.String(length=20), server_default='monthly', nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=8), server_default='USD', nullable=False),
        sa.Column('current_period_start', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('current_period_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('cancel_at_period_end', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_user_subscriptions_user_status', 'user_subscriptions', ['user_id', 'status'], unique=False)
    op.create_index('ix_user_subscriptions_dodo_subscription_id', 'user_subscriptions', ['dodo_subscription_id'], unique=False)

    op.create_table(
        'usage_tracking',
        _id(),
        _fk('user_id', 'profiles.id'),
        _fk('subscription_id', 'user_subscriptions.id'),
        sa.Column('period_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('period_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('quick_reflect_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('deep_reflect_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('therapist_sessions_used', sa.Integer(), server_default='0', nullable=False),
        sa.Column('week_start', sa.Date(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint('subscription_id', 'period_start', name='uq_usage_tracking_subscription_period'),
    )

    op.create_table(
        'payment_history',
        _id(),
        _fk('user_id', 'profiles.id', ondelete='SET NULL', nullable=True),
        sa.Column('dodo_payment_id', sa.String(), nullable=False, unique=True),
        sa.Column('dodo_customer_id', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=8), server_default='USD', nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'billing_transactions',
        _id(),
        _fk('user_id', 'profiles.id'),
        sa.Column('amount', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('currency', sa.String(length=8), server_default='USD', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_type', sa.String(length=40), nullable=False),
        sa.Column('payment_provider_id', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        _created_at(),
    )
    op.create_index('ix_billing_transactions_status_created_at', 'billing_transactions', ['status', 'created_at'], unique=False)
    op.create_index('ix_billing_transactions_user_id', 'billing_transactions', ['user_id'], unique=False)

    op.create_table(
        'webhook_events',
        _id(),
        sa.Column('webhook_id', sa.String(), nullable=False, unique=True),
        sa.Column('event_type', sa.String(), nullable=True),
        sa.Column('received_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    # Content and audit
    op.create_table(
        'landing_page_sections',
        _id(),
        sa.Column('section_name', sa.String(length=80), nullable=False, unique=True),
        sa.Column('display_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('content', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        _fk('updated_by', 'profiles.id', ondelete='SET NULL', nullable=True),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'audit_logs',
        _id(),
        _fk('actor_user_id', 'profiles.id', ondelete='SET NULL', nullable=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'], unique=False)
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'audit_logs',
        'landing_page_sections',
        'webhook_events',
        'billing_transactions',
        'payment_history',
        'usage_tracking',
        'user_subscriptions',
        'subscription_plans',
        'journal_chat_messages',
        'journal_chat_conversations',
        'journal_entries',
        'prescriptions',
        'therapist_messages',
        'session_notes',
        'session_requests',
        'therapist_patients',
        'therapist_reviews',
        'therapist_services',
        'therapist_profiles',
        'user_profiles',
        'profiles',
    ):
        op.drop_table(table)
