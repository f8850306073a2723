"""Initial ledger schema — registry, batches, products, provenance, monitoring.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18

Run with:
    alembic upgrade head
    python -m trackchain.cli init-db
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

STAKEHOLDER_ROLES = (
    "MANUFACTURER", "SUPPLIER", "DISTRIBUTOR", "RETAILER",
    "CONSUMER", "VERIFIER", "LOGISTICS",
)
PRODUCT_STATUSES = (
    "CREATED", "IN_PRODUCTION", "QUALITY_CHECK", "PACKAGED", "IN_TRANSIT",
    "AT_WAREHOUSE", "AT_RETAILER", "SOLD", "RECALLED", "EXPIRED",
)
VERIFICATION_TYPES = (
    "QUALITY", "AUTHENTICITY", "TEMPERATURE", "QUANTITY", "CERTIFICATION",
)

stakeholder_role = postgresql.ENUM(*STAKEHOLDER_ROLES, name="stakeholderrole", create_type=False)
product_status = postgresql.ENUM(*PRODUCT_STATUSES, name="productstatus", create_type=False)
verification_type = postgresql.ENUM(*VERIFICATION_TYPES, name="verificationtype", create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in (stakeholder_role, product_status, verification_type):
        enum_type.create(bind, checkfirst=True)

    # ── Registry / counters ──────────────────────────────────

    op.create_table(
        "stakeholders",
        sa.Column("identity", sa.String(128), primary_key=True),
        sa.Column("role", stakeholder_role, nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("contact_info", sa.Text()),
        sa.Column("certifications", sa.JSON()),
        sa.Column("is_verified", sa.Boolean(), server_default="false"),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("verification_count", sa.Integer(), server_default="0"),
        sa.Column("registration_time", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "ledger_counters",
        sa.Column("name", sa.String(50), primary_key=True),
        sa.Column("next_value", sa.Integer(), nullable=False, server_default="1"),
    )

    # ── Batches / products ───────────────────────────────────

    op.create_table(
        "batches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("batch_number", sa.String(100), nullable=False),
        sa.Column("manufacturer", sa.String(128), nullable=False, index=True),
        sa.Column("production_date", sa.BigInteger(), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        sa.Column("quality_grade", sa.String(50)),
        sa.Column("production_location", sa.String(255)),
        sa.Column("raw_materials", sa.JSON()),
        sa.Column("certifications", sa.JSON()),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.CheckConstraint(
            "remaining_quantity >= 0 AND remaining_quantity <= total_quantity",
            name="ck_batches_remaining_within_total",
        ),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100)),
        sa.Column("batch_id", sa.Integer(), sa.ForeignKey("batches.id"), nullable=False, index=True),
        sa.Column("manufacturer", sa.String(128), nullable=False, index=True),
        sa.Column("origin_country", sa.String(100)),
        sa.Column("description", sa.Text()),
        sa.Column("base_price", sa.Float()),
        sa.Column("expiry_date", sa.BigInteger()),
        sa.Column("creation_time", sa.BigInteger(), nullable=False),
        sa.Column("current_status", product_status, nullable=False, index=True),
        sa.Column("current_location", sa.String(255)),
        sa.Column("current_holder", sa.String(128), nullable=False, index=True),
        sa.Column("is_recalled", sa.Boolean(), server_default="false"),
        sa.Column("total_verifications", sa.Integer(), server_default="0"),
    )

    # ── Provenance ───────────────────────────────────────────

    op.create_table(
        "product_history",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("sequence", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("from_holder", sa.String(128), nullable=False),
        sa.Column("to_holder", sa.String(128), nullable=False),
        sa.Column("status", product_status, nullable=False),
        sa.Column("location", sa.String(255)),
        sa.Column("timestamp", sa.BigInteger(), nullable=False, index=True),
        sa.Column("temperature", sa.Float()),
        sa.Column("humidity", sa.Float()),
        sa.Column("notes", sa.Text()),
        sa.Column("transaction_hash", sa.String(128)),
        sa.Column("verification_required", sa.Boolean(), server_default="false"),
        sa.Column("previous_hash", sa.String(64), nullable=False),
        sa.Column("entry_hash", sa.String(64), nullable=False),
    )

    op.create_table(
        "product_sequence_counters",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("next_sequence", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "product_permissions",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("identity", sa.String(128), primary_key=True),
        sa.Column("can_update", sa.Boolean(), server_default="true"),
        sa.Column("granted_by", sa.String(128), nullable=False),
        sa.Column("granted_at", sa.BigInteger(), nullable=False),
    )

    # ── Verification & monitoring ────────────────────────────

    op.create_table(
        "verifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False, index=True),
        sa.Column("verifier", sa.String(128), nullable=False, index=True),
        sa.Column("verification_type", verification_type, nullable=False),
        sa.Column("result", sa.Boolean(), nullable=False),
        sa.Column("data", sa.Text()),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("expiry_time", sa.BigInteger()),
        sa.Column("certificate_hash", sa.String(128)),
        sa.Column("notes", sa.Text()),
    )

    op.create_table(
        "temperature_logs",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("sequence", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("temperature", sa.Float(), nullable=False),
        sa.Column("humidity", sa.Float()),
        sa.Column("location", sa.String(255)),
        sa.Column("min_temp", sa.Float(), nullable=False),
        sa.Column("max_temp", sa.Float(), nullable=False),
        sa.Column("is_within_range", sa.Boolean(), nullable=False),
        sa.Column("recorder", sa.String(128), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "product_alerts",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("alert_type", sa.String(50), nullable=False),
        sa.Column("severity", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("is_resolved", sa.Boolean(), server_default="false"),
        sa.Column("resolver", sa.String(128)),
    )

    # ── Recalls ──────────────────────────────────────────────

    op.create_table(
        "product_recalls",
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), primary_key=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("recall_date", sa.BigInteger(), nullable=False),
        sa.Column("affected_batches", sa.JSON()),
        sa.Column("severity", sa.Integer(), nullable=False),
        sa.Column("initiator", sa.String(128), nullable=False),
        sa.Column("status", sa.String(20), server_default="ACTIVE"),
        sa.Column("consumer_notification", sa.Boolean(), server_default="true"),
    )

    op.bulk_insert(
        sa.table("ledger_counters", sa.column("name", sa.String), sa.column("next_value", sa.Integer)),
        [
            {"name": "product", "next_value": 1},
            {"name": "batch", "next_value": 1},
            {"name": "verification", "next_value": 1},
        ],
    )


def downgrade() -> None:
    for table in (
        "product_recalls", "product_alerts", "temperature_logs", "verifications",
        "product_permissions", "product_sequence_counters", "product_history",
        "products", "batches", "ledger_counters", "stakeholders",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (verification_type, product_status, stakeholder_role):
        enum_type.drop(bind, checkfirst=True)
