"""create children, parent_preferences and videos tables

Revision ID: 4c1e9a27b8d0
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '4c1e9a27b8d0'
down_revision = None
branch_labels = None
depends_on = None

JSON_LIST = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')

VERDICT_COLUMNS = (
    'ai_decision', 'ai_confidence', 'ai_category', 'educational_value',
    'concerns', 'ai_reasoning', 'analyzed_at', 'analysis_source',
)


def upgrade() -> None:
    op.create_table(
        'children',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('parent_id', sa.String(), nullable=False, comment='Owning parent identity'),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('youtube_channel_id', sa.String(), comment='Bound YouTube channel ID'),
        sa.Column('youtube_access_token', sa.Text()),
        sa.Column('youtube_refresh_token', sa.Text()),
        sa.Column('token_expires_at', sa.TIMESTAMP(timezone=True), comment='Access token expiry (UTC)'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('age BETWEEN 1 AND 18', name='ck_children_age_range'),
    )
    op.create_index('ix_children_parent_id', 'children', ['parent_id'])

    op.create_table(
        'parent_preferences',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('parent_id', sa.String(), nullable=False, unique=True),
        sa.Column('allowed_topics', JSON_LIST, nullable=False,
                  comment='Allowed topics, deduplicated and sorted'),
        sa.Column('blocked_topics', JSON_LIST, nullable=False,
                  comment='Blocked topics, deduplicated and sorted'),
        sa.Column('allow_mild_language', sa.Boolean(), nullable=False),
        sa.Column('educational_priority', sa.String(length=10), nullable=False,
                  comment='high | medium | low'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    all_null = ' AND '.join(f'{c} IS NULL' for c in VERDICT_COLUMNS)
    all_set = ' AND '.join(f'{c} IS NOT NULL' for c in VERDICT_COLUMNS)

    op.create_table(
        'videos',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('child_id', sa.String(length=36),
                  sa.ForeignKey('children.id', ondelete='CASCADE'), nullable=False),
        sa.Column('youtube_video_id', sa.String(), nullable=False, comment='YouTube video ID'),
        sa.Column('title', sa.Text(), comment='Video title'),
        sa.Column('channel_name', sa.Text(), comment='Channel name'),
        sa.Column('channel_id', sa.String(), comment='Channel ID'),
        sa.Column('description', sa.Text(), comment='Video description'),
        sa.Column('thumbnail_url', sa.Text()),
        sa.Column('duration', sa.Integer(), comment='Duration in seconds'),
        sa.Column('watched_at', sa.TIMESTAMP(timezone=True), comment='History timestamp (UTC)'),
        sa.Column('has_transcript', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('transcript_fetch_failed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('transcript_text', sa.Text()),
        sa.Column('ai_decision', sa.String(length=10), comment='ALLOW | REVIEW | BLOCK'),
        sa.Column('ai_confidence', sa.Integer(), comment='0-100'),
        sa.Column('ai_category', sa.Text()),
        sa.Column('educational_value', sa.Integer(), comment='0-10'),
        sa.Column('concerns', JSON_LIST),
        sa.Column('ai_reasoning', sa.Text()),
        sa.Column('analyzed_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('analysis_source', sa.String(length=10), comment='model | fallback | parent'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('child_id', 'youtube_video_id', name='uq_videos_child_youtube_video'),
        sa.CheckConstraint(f'({all_null}) OR ({all_set})', name='ck_videos_verdict_all_or_nothing'),
    )
    op.create_index('idx_videos_child_decision', 'videos', ['child_id', 'ai_decision'])


def downgrade() -> None:
    op.drop_index('idx_videos_child_decision', table_name='videos')
    op.drop_table('videos')
    op.drop_table('parent_preferences')
    op.drop_index('ix_children_parent_id', table_name='children')
    op.drop_table('children')
