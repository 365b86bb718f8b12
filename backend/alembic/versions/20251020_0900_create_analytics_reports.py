"""create analytics_reports table

Revision ID: 20251020_reports
Revises:
Create Date: 2025-10-20 09:00:00

Append-only store of generated analytics reports. Every report run inserts
a row; the table doubles as the report history.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '20251020_reports'
down_revision = None
branch_labels = None
depends_on = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')

REPORT_TYPES = ('subscription_trends', 'plan_performance', 'user_behavior', 'revenue_analytics', 'usage_patterns')
GRANULARITIES = ('daily', 'weekly', 'monthly', 'quarterly', 'yearly')
GENERATED_BY = ('system', 'ai_engine', 'manual')


def upgrade() -> None:
    """Create analytics_reports table."""
    op.create_table(
        'analytics_reports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'report_type',
            sa.Enum(*REPORT_TYPES, name='reporttype'),
            nullable=False,
            comment='Aggregation that produced the report'
        ),
        sa.Column('period_start', sa.DateTime(), nullable=False),
        sa.Column('period_end', sa.DateTime(), nullable=False),
        sa.Column('granularity', sa.Enum(*GRANULARITIES, name='granularity'), nullable=False),
        sa.Column('data', JSON_DOCUMENT, nullable=False, comment='Report payload'),
        sa.Column('insights', JSON_DOCUMENT, nullable=False),
        sa.Column('recommendations', JSON_DOCUMENT, nullable=False),
        sa.Column('generated_by', sa.Enum(*GENERATED_BY, name='generatedby'), nullable=False),
        sa.Column('version', sa.String(length=20), nullable=False),
        sa.Column('data_quality', JSON_DOCUMENT, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Create indexes
    op.create_index('ix_analytics_reports_id', 'analytics_reports', ['id'])
    op.create_index('ix_analytics_reports_created_at', 'analytics_reports', ['created_at'])
    op.create_index('ix_analytics_reports_period_end', 'analytics_reports', ['period_end'])
    op.create_index('ix_analytics_reports_generated_by', 'analytics_reports', ['generated_by'])

    # Latest report of a type for a period
    op.create_index(
        'ix_analytics_reports_type_period_start',
        'analytics_reports',
        [sa.text('report_type'), sa.text('period_start DESC')]
    )


def downgrade() -> None:
    """Drop analytics_reports table."""
    op.drop_index('ix_analytics_reports_type_period_start', table_name='analytics_reports')
    op.drop_index('ix_analytics_reports_generated_by', table_name='analytics_reports')
    op.drop_index('ix_analytics_reports_period_end', table_name='analytics_reports')
    op.drop_index('ix_analytics_reports_created_at', table_name='analytics_reports')
    op.drop_index('ix_analytics_reports_id', table_name='analytics_reports')
    op.drop_table('analytics_reports')

    # PostgreSQL keeps enum types after the table is dropped
    bind = op.get_bind()
    for name in ('reporttype', 'granularity', 'generatedby'):
        sa.Enum(name=name).drop(bind, checkfirst=True)
