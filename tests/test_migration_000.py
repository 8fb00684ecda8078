"""
Tests for migration 000_initial_schema.

Verifies that the ORM models produce the expected tables and columns
after create_all, and that the migration script covers them.
"""

import pathlib

import pytest
import pytest_asyncio
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import create_async_engine

from leadbroker.models import Base, LeadStatus

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

EXPECTED_COLUMNS = {
    "agents": [
        "id", "name", "phone", "email", "location", "password_hash", "role",
        "status", "referral_code", "parent_referrer_id", "bank_name",
        "account_number", "created_at", "updated_at", "deleted_at",
    ],
    "leads": [
        "id", "unique_id", "name", "phone", "loan_amount", "estimated_savings",
        "monthly_savings", "yearly_savings", "new_monthly_repayment", "bank_name",
        "status", "source", "assigned_agent_id", "referrer_id", "referrer_code",
        "created_at", "updated_at", "deleted_at",
    ],
    "commissions": [
        "id", "lead_id", "agent_id", "referrer_id", "loan_amount", "max_commission",
        "referrer_commission", "agent_commission", "status", "created_at", "updated_at",
    ],
    "lead_sequences": ["name", "last_value"],
    "audit_logs": [
        "id", "agent_id", "action", "target_type", "target_id",
        "action_metadata", "ip_address", "created_at",
    ],
}


@pytest_asyncio.fixture
async def inspector():
    """Return a dict of {table_name: [column_names]}."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with engine.connect() as conn:
        def _inspect(sync_conn):
            insp = sa_inspect(sync_conn)
            return {
                table: [c["name"] for c in insp.get_columns(table)]
                for table in insp.get_table_names()
            }
        tables = await conn.run_sync(_inspect)

    await engine.dispose()
    return tables


@pytest.fixture
def source():
    fpath = pathlib.Path(__file__).resolve().parent.parent / "alembic" / "versions" / "000_initial_schema.py"
    return fpath.read_text(encoding="utf-8")


# ── ORM schema ────────────────────────────────────────────


@pytest.mark.parametrize("table", sorted(EXPECTED_COLUMNS))
def test_model_columns(inspector, table):
    assert sorted(inspector[table]) == sorted(EXPECTED_COLUMNS[table])


def test_commission_lead_is_unique():
    from leadbroker.models import Commission
    assert Commission.__table__.columns["lead_id"].unique


def test_commission_agent_is_required():
    from leadbroker.models import Commission
    assert not Commission.__table__.columns["agent_id"].nullable


def test_agent_referral_code_is_unique():
    from leadbroker.models import Agent
    assert Agent.__table__.columns["referral_code"].unique


# ── Migration script structural checks ─────────────────────


class TestMigrationScript:
    def test_revision_id(self, source):
        assert 'revision: str = "000_initial_schema"' in source

    def test_has_upgrade_and_downgrade(self, source):
        assert "def upgrade()" in source
        assert "def downgrade()" in source

    def test_upgrade_covers_all_columns(self, source):
        up_start = source.index("def upgrade()")
        down_start = source.index("def downgrade()")
        upgrade_body = source[up_start:down_start]
        for table, columns in EXPECTED_COLUMNS.items():
            assert f'"{table}"' in upgrade_body, f"Table '{table}' not found in upgrade()"
            for col in columns:
                assert f'"{col}"' in upgrade_body, f"Column '{col}' not found in upgrade()"

    def test_downgrade_drops_all_tables(self, source):
        downgrade_body = source[source.index("def downgrade()"):]
        for table in EXPECTED_COLUMNS:
            assert f'op.drop_table("{table}")' in downgrade_body

    def test_commission_agent_not_nullable(self, source):
        start = source.index('"commissions",')
        end = source.index('"referrer_id"', start)
        assert "nullable=False" in source[source.index('"agent_id"', start):end]

    def test_seeds_lead_sequence(self, source):
        assert "bulk_insert" in source
        assert '"lead_unique_id"' in source

    def test_lead_status_labels_match_model(self, source):
        for status in LeadStatus:
            assert f'"{status.value}"' in source
