# migrations/versions/20261019_0001_pilotage_schema.py
"""Create the pilotage schema: hierarchy, taxonomy, assignments and ledger.

Revision ID: 20261019_0001_pilotage_schema
Revises:
Create Date: 2026-10-19

This migration:
  * Creates the hierarchy, taxonomy, assignment, target and value ledger tables.
  * Creates the dashboard projection: a materialized view, a live fallback view
    with the same column layout, and the function refreshing the materialization.
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from esg_pilotage.infrastructure.database.models.base import DEFAULT_DB_SCHEMA

# revision identifiers, used by Alembic.
revision: str = "20261019_0001_pilotage_schema"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

SCHEMA = DEFAULT_DB_SCHEMA or "public"


def _q(name: str) -> str:
    return f"{SCHEMA}.{name}"


def _id() -> sa.Column:
    return sa.Column("id", sa.UUID, primary_key=True, nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _org_fk(table: str, *, ondelete: str = "CASCADE") -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["organization_name"],
        [_q("organizations.name")],
        name=f"fk_{table}_organization_name_organizations",
        ondelete=ondelete,
    )


def _month_columns(source: str) -> str:
    return ",\n".join(
        f"        max({source}.month_value) FILTER (WHERE {source}.month = {m}) AS month_{m}"
        for m in range(1, 13)
    )


def _dashboard_select() -> str:
    """Formula-aware yearly projection over validated ledger rows.

    Rows are produced per organization/process/indicator/year, once for the
    whole organization (``site_name`` NULL) and once per site.
    """
    return f"""
WITH monthly AS (
    SELECT
        v.organization_name,
        v.process_code,
        v.indicator_code,
        v.year,
        v.month,
        v.site_name,
        i.formula,
        CASE i.formula
            WHEN 'average' THEN avg(v.value)
            WHEN 'max' THEN max(v.value)
            WHEN 'min' THEN min(v.value)
            WHEN 'last_month'
                THEN (array_agg(v.value ORDER BY v.validated_at DESC NULLS LAST))[1]
            ELSE sum(v.value)
        END AS month_value,
        max(coalesce(v.updated_at, v.validated_at)) AS last_updated
    FROM {_q("indicator_values")} v
    JOIN {_q("indicators")} i ON i.code = v.indicator_code
    WHERE v.status = 'validated' AND v.value IS NOT NULL
    GROUP BY GROUPING SETS (
        (v.organization_name, v.process_code, v.indicator_code, v.year, v.month, i.formula),
        (v.organization_name, v.process_code, v.indicator_code, v.year, v.month, i.formula,
         v.site_name)
    )
    HAVING GROUPING(v.site_name) = 1 OR v.site_name IS NOT NULL
),
yearly AS (
    SELECT
        m.organization_name,
        m.process_code,
        m.indicator_code,
        m.year,
        m.site_name,
{_month_columns("m")},
        CASE m.formula
            WHEN 'average' THEN avg(m.month_value)
            WHEN 'max' THEN max(m.month_value)
            WHEN 'min' THEN min(m.month_value)
            WHEN 'last_month' THEN (array_agg(m.month_value ORDER BY m.month DESC))[1]
            ELSE sum(m.month_value)
        END AS year_value,
        avg(m.month_value) AS average_value,
        max(m.last_updated) AS last_updated
    FROM monthly m
    GROUP BY m.organization_name, m.process_code, m.indicator_code, m.year, m.site_name,
        m.formula
)
SELECT
    y.organization_name,
    y.process_code,
    y.indicator_code,
    y.year,
    y.site_name,
    p.name AS process_name,
    i.name AS indicator_name,
    i.axis,
    array_to_string(oi.issue_codes, ', ') AS issues,
    array_to_string(os.standard_codes, ', ') AS standards,
    array_to_string(oc.criteria_codes, ', ') AS criteria,
    i.unit,
    i.frequency,
    i.indicator_type,
    i.formula,
    {", ".join(f"y.month_{m}" for m in range(1, 13))},
    t.target_value,
    prev.year_value AS previous_year_value,
    CASE
        WHEN prev.year_value IS NULL OR prev.year_value = 0 THEN NULL
        ELSE (y.year_value - prev.year_value) / prev.year_value * 100
    END AS variation,
    CASE
        WHEN t.target_value IS NULL OR t.target_value = 0 THEN NULL
        ELSE y.year_value / t.target_value * 100
    END AS performance,
    y.average_value,
    y.last_updated
FROM yearly y
JOIN {_q("indicators")} i ON i.code = y.indicator_code
LEFT JOIN {_q("processes")} p ON p.code = y.process_code
LEFT JOIN yearly prev
    ON prev.organization_name = y.organization_name
    AND prev.process_code = y.process_code
    AND prev.indicator_code = y.indicator_code
    AND prev.year = y.year - 1
    AND prev.site_name IS NOT DISTINCT FROM y.site_name
LEFT JOIN {_q("indicator_targets")} t
    ON t.organization_name = y.organization_name
    AND t.indicator_code = y.indicator_code
    AND t.year = y.year
LEFT JOIN {_q("organization_issues")} oi ON oi.organization_name = y.organization_name
LEFT JOIN {_q("organization_standards")} os ON os.organization_name = y.organization_name
LEFT JOIN {_q("organization_criteria")} oc ON oc.organization_name = y.organization_name
"""


def upgrade() -> None:
    """Apply the migration."""
    op.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "organization_type",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'simple'"),
        ),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("country", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_organizations_name"),
        schema=SCHEMA,
    )
    op.create_table(
        "business_lines",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_business_lines_name"),
        _org_fk("business_lines"),
        schema=SCHEMA,
    )
    op.create_table(
        "subsidiaries",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        sa.Column("business_line_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_subsidiaries_name"),
        _org_fk("subsidiaries"),
        sa.ForeignKeyConstraint(
            ["business_line_name"],
            [_q("business_lines.name")],
            name="fk_subsidiaries_business_line_name_business_lines",
            ondelete="SET NULL",
        ),
        schema=SCHEMA,
    )
    op.create_table(
        "sites",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        sa.Column("subsidiary_name", sa.String(length=255), nullable=True),
        sa.Column("business_line_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_sites_name"),
        _org_fk("sites"),
        sa.ForeignKeyConstraint(
            ["subsidiary_name"],
            [_q("subsidiaries.name")],
            name="fk_sites_subsidiary_name_subsidiaries",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["business_line_name"],
            [_q("business_lines.name")],
            name="fk_sites_business_line_name_business_lines",
            ondelete="SET NULL",
        ),
        schema=SCHEMA,
    )
    for table in ("business_lines", "subsidiaries", "sites"):
        op.create_index(
            f"ix_{SCHEMA}_{table}_organization_name", table, ["organization_name"], schema=SCHEMA
        )

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------
    op.create_table(
        "sectors",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("name", name="uq_sectors_name"),
        schema=SCHEMA,
    )
    op.create_table(
        "subsectors",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("sector_name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("sector_name", "name", name="uq_subsectors_sector_name"),
        sa.ForeignKeyConstraint(
            ["sector_name"],
            [_q("sectors.name")],
            name="fk_subsectors_sector_name_sectors",
            ondelete="CASCADE",
        ),
        schema=SCHEMA,
    )
    for table in ("standards", "issues", "criteria"):
        op.create_table(
            table,
            _id(),
            sa.Column("code", sa.String(length=128), nullable=False),
            sa.Column("name", sa.String(length=512), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("code", name=f"uq_{table}_code"),
            schema=SCHEMA,
        )
    op.create_table(
        "indicators",
        _id(),
        sa.Column("code", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column(
            "axis", sa.String(length=32), nullable=False, server_default=sa.text("'environment'")
        ),
        sa.Column(
            "formula", sa.String(length=32), nullable=False, server_default=sa.text("'sum'")
        ),
        sa.Column(
            "frequency", sa.String(length=32), nullable=False, server_default=sa.text("'monthly'")
        ),
        sa.Column(
            "indicator_type",
            sa.String(length=32),
            nullable=False,
            server_default=sa.text("'primary'"),
        ),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_indicators_code"),
        schema=SCHEMA,
    )
    op.create_table(
        "processes",
        _id(),
        sa.Column("code", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("organization_name", sa.String(length=255), nullable=True),
        sa.Column(
            "indicator_codes",
            postgresql.ARRAY(sa.String(length=128)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_processes_code"),
        _org_fk("processes", ondelete="SET NULL"),
        schema=SCHEMA,
    )
    op.create_index(
        f"ix_{SCHEMA}_processes_organization_name",
        "processes",
        ["organization_name"],
        schema=SCHEMA,
    )

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------
    op.create_table(
        "organization_sectors",
        _id(),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        sa.Column("sector_name", sa.String(length=255), nullable=False),
        sa.Column("subsector_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("organization_name", name="uq_organization_sectors_organization_name"),
        _org_fk("organization_sectors"),
        sa.ForeignKeyConstraint(
            ["sector_name"],
            [_q("sectors.name")],
            name="fk_organization_sectors_sector_name_sectors",
        ),
        schema=SCHEMA,
    )
    for table, codes_column in (
        ("organization_standards", "standard_codes"),
        ("organization_issues", "issue_codes"),
        ("organization_criteria", "criteria_codes"),
        ("organization_indicators", "indicator_codes"),
    ):
        op.create_table(
            table,
            _id(),
            sa.Column("organization_name", sa.String(length=255), nullable=False),
            sa.Column(
                codes_column,
                postgresql.ARRAY(sa.String(length=128)),
                nullable=False,
                server_default=sa.text("'{}'"),
            ),
            *_timestamps(),
            sa.UniqueConstraint("organization_name", name=f"uq_{table}_organization_name"),
            _org_fk(table),
            schema=SCHEMA,
        )

    # ------------------------------------------------------------------
    # Targets and value ledger
    # ------------------------------------------------------------------
    op.create_table(
        "indicator_targets",
        _id(),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        sa.Column("indicator_code", sa.String(length=128), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("target_value", sa.Numeric(20, 6), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "organization_name",
            "indicator_code",
            "year",
            name="uq_indicator_targets_organization_name",
        ),
        _org_fk("indicator_targets"),
        sa.ForeignKeyConstraint(
            ["indicator_code"],
            [_q("indicators.code")],
            name="fk_indicator_targets_indicator_code_indicators",
            ondelete="CASCADE",
        ),
        schema=SCHEMA,
    )
    op.create_table(
        "indicator_values",
        _id(),
        sa.Column("organization_name", sa.String(length=255), nullable=False),
        sa.Column("business_line_name", sa.String(length=255), nullable=True),
        sa.Column("subsidiary_name", sa.String(length=255), nullable=True),
        sa.Column("site_name", sa.String(length=255), nullable=True),
        sa.Column("process_code", sa.String(length=128), nullable=False),
        sa.Column("indicator_code", sa.String(length=128), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("value", sa.Numeric(20, 6), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default=sa.text("'draft'")
        ),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("submitted_by", sa.String(length=255), nullable=True),
        sa.Column("submitted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(length=255), nullable=True),
        sa.Column("validated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "organization_name",
            "business_line_name",
            "subsidiary_name",
            "site_name",
            "process_code",
            "indicator_code",
            "year",
            "month",
            name="uq_indicator_values_identity",
            postgresql_nulls_not_distinct=True,
        ),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_indicator_values_month_range"),
        _org_fk("indicator_values"),
        schema=SCHEMA,
    )
    for column_name in ("organization_name", "site_name", "indicator_code", "status"):
        op.create_index(
            f"ix_{SCHEMA}_indicator_values_{column_name}",
            "indicator_values",
            [column_name],
            schema=SCHEMA,
        )

    # ------------------------------------------------------------------
    # Dashboard projection
    # ------------------------------------------------------------------
    select_sql = _dashboard_select()
    op.execute(f"CREATE MATERIALIZED VIEW {_q('dashboard_performance_view')} AS {select_sql}")
    op.execute(
        f"CREATE INDEX ix_dashboard_performance_view_org_year "
        f"ON {_q('dashboard_performance_view')} (organization_name, year)"
    )
    op.execute(f"CREATE VIEW {_q('dashboard_performance_view_fallback')} AS {select_sql}")
    op.execute(
        f"""
CREATE OR REPLACE FUNCTION {_q('refresh_dashboard_performance_view')}()
RETURNS void
LANGUAGE plpgsql
AS $$
BEGIN
    REFRESH MATERIALIZED VIEW {_q('dashboard_performance_view')};
END;
$$
"""
    )


def downgrade() -> None:
    """Revert the migration."""
    op.execute(f"DROP FUNCTION IF EXISTS {_q('refresh_dashboard_performance_view')}()")
    op.execute(f"DROP VIEW IF EXISTS {_q('dashboard_performance_view_fallback')}")
    op.execute(f"DROP MATERIALIZED VIEW IF EXISTS {_q('dashboard_performance_view')}")
    for table in (
        "indicator_values",
        "indicator_targets",
        "organization_indicators",
        "organization_criteria",
        "organization_issues",
        "organization_standards",
        "organization_sectors",
        "processes",
        "indicators",
        "criteria",
        "issues",
        "standards",
        "subsectors",
        "sectors",
        "sites",
        "subsidiaries",
        "business_lines",
        "organizations",
    ):
        op.drop_table(table, schema=SCHEMA)
