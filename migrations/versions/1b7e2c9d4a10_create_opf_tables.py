"""create opf tables

Revision ID: 1b7e2c9d4a10
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1b7e2c9d4a10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('opf_drafts',
        sa.Column('draft_id', sa.String(length=36), nullable=False),
        sa.Column('html', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('draft_id')
    )
    with op.batch_alter_table('opf_drafts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_opf_drafts_created_at'), ['created_at'], unique=False)

    op.create_table('opf_sites',
        sa.Column('subdomain', sa.String(length=63), nullable=False),
        sa.Column('draft_id', sa.String(length=36), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('site_name', sa.String(length=255), nullable=False),
        sa.Column('color_theme', sa.String(length=20), nullable=False),
        sa.Column('form_data', sa.JSON(), nullable=False),
        sa.Column('html', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('revision_count', sa.Integer(), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_checkout_session_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('subdomain'),
        sa.UniqueConstraint('draft_id')
    )

    op.create_table('opf_subscriptions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('site_subdomain', sa.String(length=63), nullable=False),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=True),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['site_subdomain'], ['opf_sites.subdomain'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_subscription_id')
    )

    op.create_table('opf_stripe_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('stripe_event_id', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=255), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_event_id')
    )

    op.create_table('opf_ad_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=True),
        sa.Column('site_subdomain', sa.String(length=63), nullable=True),
        sa.Column('page_url', sa.Text(), nullable=True),
        sa.Column('referrer', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('utm_source', sa.String(length=255), nullable=True),
        sa.Column('utm_medium', sa.String(length=255), nullable=True),
        sa.Column('utm_campaign', sa.String(length=255), nullable=True),
        sa.Column('utm_content', sa.String(length=255), nullable=True),
        sa.Column('utm_term', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('opf_ad_events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_opf_ad_events_event_type'), ['event_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_opf_ad_events_session_id'), ['session_id'], unique=False)


def downgrade():
    with op.batch_alter_table('opf_ad_events', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_opf_ad_events_session_id'))
        batch_op.drop_index(batch_op.f('ix_opf_ad_events_event_type'))

    op.drop_table('opf_ad_events')
    op.drop_table('opf_stripe_events')
    op.drop_table('opf_subscriptions')
    op.drop_table('opf_sites')

    with op.batch_alter_table('opf_drafts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_opf_drafts_created_at'))

    op.drop_table('opf_drafts')
