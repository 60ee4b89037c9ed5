"""Create ingestion job tables."""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql as pg

# revision identifiers, used by Alembic.
revision = "0001_create_job_tables"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "sources",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("config", sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _ts("created_at"),
    )

    op.create_table(
        "stores",
        sa.Column("name", sa.String(), primary_key=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("config", sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("subscriptions", pg.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        _ts("created_at"),
    )

    op.create_table(
        "feature_sets",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("project", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("spec", sa.Text(), nullable=False),
        _ts("created_at"),
    )
    op.create_index("idx_feature_sets_project_name", "feature_sets", ["project", "name"], unique=True)

    op.create_table(
        "jobs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("ext_id", sa.String(), nullable=False, server_default=sa.text("''")),
        sa.Column("runner", sa.String(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=True),
        sa.Column("store_name", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"], name="fk_jobs_source_id_sources"),
        sa.ForeignKeyConstraint(["store_name"], ["stores.name"], name="fk_jobs_store_name_stores"),
    )
    op.create_index("idx_jobs_status", "jobs", ["status"])
    op.create_index("idx_jobs_store_name", "jobs", ["store_name"])

    op.create_table(
        "jobs_feature_sets",
        sa.Column("job_id", sa.String(), primary_key=True),
        sa.Column("feature_sets_id", sa.String(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE", name="fk_jobs_feature_sets_job_id_jobs"),
        sa.ForeignKeyConstraint(
            ["feature_sets_id"], ["feature_sets.id"], name="fk_jobs_feature_sets_feature_sets_id_feature_sets"
        ),
    )
    op.create_index("idx_jobs_feature_sets_job_id", "jobs_feature_sets", ["job_id"])
    op.create_index("idx_jobs_feature_sets_feature_sets_id", "jobs_feature_sets", ["feature_sets_id"])

    op.create_table(
        "metrics",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("job_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE", name="fk_metrics_job_id_jobs"),
    )
    op.create_index("idx_metrics_job", "metrics", ["job_id"])


def downgrade() -> None:
    op.drop_index("idx_metrics_job", table_name="metrics")
    op.drop_table("metrics")
    op.drop_index("idx_jobs_feature_sets_feature_sets_id", table_name="jobs_feature_sets")
    op.drop_index("idx_jobs_feature_sets_job_id", table_name="jobs_feature_sets")
    op.drop_table("jobs_feature_sets")
    op.drop_index("idx_jobs_store_name", table_name="jobs")
    op.drop_index("idx_jobs_status", table_name="jobs")
    op.drop_table("jobs")
    op.drop_index("idx_feature_sets_project_name", table_name="feature_sets")
    op.drop_table("feature_sets")
    op.drop_table("stores")
    op.drop_table("sources")
