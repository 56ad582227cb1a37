"""Initial schema - journals, issues, publications

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        *_timestamps(),
    )

    # Journals; the current issue FK is added once issues exists
    op.create_table(
        'journals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('path', sa.String(64), unique=True, nullable=False),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('publishing_mode', sa.String(50), nullable=False, default='open'),
        sa.Column('delayed_open_access_duration', sa.Integer(), nullable=False, default=0),
        sa.Column('current_issue_id', sa.Uuid(), nullable=True),
        *_timestamps(),
    )

    # Journal role assignments
    op.create_table(
        'journal_roles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', sa.String(50), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'journal_id', 'role', name='uq_journal_roles_user_journal_role'),
    )

    # Issues
    op.create_table(
        'issues',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('volume', sa.Integer(), nullable=True),
        sa.Column('number', sa.String(40), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('show_volume', sa.Boolean(), nullable=False, default=True),
        sa.Column('show_number', sa.Boolean(), nullable=False, default=True),
        sa.Column('show_year', sa.Boolean(), nullable=False, default=True),
        sa.Column('show_title', sa.Boolean(), nullable=False, default=False),
        sa.Column('published', sa.Boolean(), nullable=False, default=False),
        sa.Column('date_published', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_status', sa.String(50), nullable=False, default='open'),
        sa.Column('open_access_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cover_image', sa.String(255), nullable=True),
        sa.Column('cover_image_alt_text', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_issues_journal_published', 'issues', ['journal_id', 'published', 'date_published'])
    op.create_foreign_key(
        'fk_journals_current_issue_id',
        'journals', 'issues',
        ['current_issue_id'], ['id'],
        ondelete='SET NULL',
    )

    # Submissions and their publications
    op.create_table(
        'submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, default='queued'),
        sa.Column('current_publication_id', sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_submissions_journal_status', 'submissions', ['journal_id', 'status'])

    op.create_table(
        'publications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('submission_id', sa.Uuid(), sa.ForeignKey('submissions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('version', sa.Integer(), nullable=False, default=1),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, default='queued'),
        sa.Column('issue_id', sa.Uuid(), sa.ForeignKey('issues.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('date_published', sa.DateTime(timezone=True), nullable=True),
        sa.Column('seq', sa.Integer(), nullable=False, default=0),
        sa.Column('doi', sa.String(255), nullable=True),
        *_timestamps(),
    )

    # Issue DOIs
    op.create_table(
        'dois',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('issue_id', sa.Uuid(), sa.ForeignKey('issues.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('doi', sa.String(255), unique=True, nullable=False),
        sa.Column('status', sa.String(50), nullable=False, default='unregistered'),
        *_timestamps(),
    )

    # Notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=True),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('assoc_type', sa.String(50), nullable=True),
        sa.Column('assoc_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'read_at'])

    # Event logs table (immutable audit log)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_event_logs_type_time', 'event_logs', ['event_type', 'created_at'])

    # Usage statistics: temporary per-load tables and compiled daily metrics
    for table in ('usage_stats_temporary_item_investigations', 'usage_stats_temporary_item_requests'):
        op.create_table(
            table,
            sa.Column('id', sa.Uuid(), primary_key=True),
            sa.Column('load_id', sa.String(255), nullable=False, index=True),
            sa.Column('date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('journal_id', sa.Uuid(), nullable=False),
            sa.Column('submission_id', sa.Uuid(), nullable=False),
            sa.Column('institution_id', sa.Integer(), nullable=False),
            sa.Column('session_key', sa.String(255), nullable=False),
        )

    op.create_table(
        'metrics_counter_submission_institution_daily',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('load_id', sa.String(255), nullable=False),
        sa.Column('journal_id', sa.Uuid(), sa.ForeignKey('journals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submission_id', sa.Uuid(), nullable=False),
        sa.Column('institution_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('metric_investigations', sa.Integer(), nullable=False, default=0),
        sa.Column('metric_investigations_unique', sa.Integer(), nullable=False, default=0),
        sa.Column('metric_requests', sa.Integer(), nullable=False, default=0),
        sa.Column('metric_requests_unique', sa.Integer(), nullable=False, default=0),
    )
    op.create_index('ix_metrics_csi_daily_load', 'metrics_counter_submission_institution_daily', ['load_id'])
    op.create_index(
        'ix_metrics_csi_daily_lookup',
        'metrics_counter_submission_institution_daily',
        ['submission_id', 'institution_id', 'date'],
    )


def downgrade() -> None:
    op.drop_table('metrics_counter_submission_institution_daily')
    op.drop_table('usage_stats_temporary_item_requests')
    op.drop_table('usage_stats_temporary_item_investigations')
    op.drop_table('event_logs')
    op.drop_table('notifications')
    op.drop_table('dois')
    op.drop_table('publications')
    op.drop_table('submissions')
    op.drop_constraint('fk_journals_current_issue_id', 'journals', type_='foreignkey')
    op.drop_table('issues')
    op.drop_table('journal_roles')
    op.drop_table('journals')
    op.drop_table('users')
