"""Initial schema: record tables and synchronisation bookkeeping.

Revision ID: 0001_initial
Revises:
Create Date: 2024-05-02 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, *, nullable: bool) -> sa.Column[object]:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _enum(name: str, *, nullable: bool = False) -> sa.Column[object]:
    return sa.Column(name, sa.String(length=32), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "prescription",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.String(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("medication_id", sa.String(), nullable=False),
        sa.Column("dosage", sa.String(), nullable=False),
        sa.Column("frequency", sa.String(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("instructions", sa.String(), nullable=True),
        _enum("status"),
        _timestamp("start_date", nullable=False),
        _timestamp("end_date", nullable=True),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_prescription"),
    )
    op.create_index("ix_prescription_hospital_id", "prescription", ["hospital_id"])
    op.create_index("ix_prescription_updated_at", "prescription", ["updated_at"])

    op.create_table(
        "medication",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("generic_name", sa.String(), nullable=True),
        sa.Column("brand_name", sa.String(), nullable=True),
        sa.Column("strength", sa.String(), nullable=False),
        _enum("form"),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("requires_prescription", sa.Boolean(), nullable=False),
        sa.Column("controlled_substance", sa.Boolean(), nullable=False),
        sa.Column("dea_schedule", sa.String(length=3), nullable=True),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_medication"),
    )
    op.create_index("ix_medication_hospital_id", "medication", ["hospital_id"])
    op.create_index("ix_medication_updated_at", "medication", ["updated_at"])

    op.create_table(
        "inventory_item",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.Column("medication_id", sa.String(), nullable=False),
        sa.Column("batch_number", sa.String(), nullable=False),
        _timestamp("expiration_date", nullable=False),
        sa.Column("quantity_on_hand", sa.Integer(), nullable=False),
        sa.Column("quantity_reserved", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Float(), nullable=False),
        sa.Column("selling_price", sa.Float(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        _enum("status"),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_inventory_item"),
    )
    op.create_index("ix_inventory_item_hospital_id", "inventory_item", ["hospital_id"])
    op.create_index("ix_inventory_item_updated_at", "inventory_item", ["updated_at"])

    op.create_table(
        "pharmacy_order",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.Column("prescription_id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.String(), nullable=False),
        sa.Column("medication_id", sa.String(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        _enum("status"),
        _timestamp("filled_date", nullable=True),
        sa.Column("filled_by", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        _timestamp("created_at", nullable=True),
        _timestamp("updated_at", nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_pharmacy_order"),
    )
    op.create_index("ix_pharmacy_order_hospital_id", "pharmacy_order", ["hospital_id"])
    op.create_index("ix_pharmacy_order_updated_at", "pharmacy_order", ["updated_at"])

    op.create_table(
        "sync_conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("record_id", sa.String(), nullable=False),
        _enum("record_type"),
        sa.Column("main_snapshot", sa.JSON(), nullable=False),
        sa.Column("microservice_snapshot", sa.JSON(), nullable=False),
        _enum("conflict_type"),
        _enum("resolution_strategy", nullable=True),
        sa.Column("resolved_payload", sa.JSON(), nullable=True),
        _enum("status"),
        _timestamp("created_at", nullable=False),
        _timestamp("resolved_at", nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sync_conflict"),
    )
    op.create_index("ix_sync_conflict_tenant_status", "sync_conflict", ["hospital_id", "status"])
    op.create_index("ix_sync_conflict_record", "sync_conflict", ["record_type", "record_id"])

    op.create_table(
        "quarantined_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        _enum("record_type"),
        sa.Column("record_id", sa.String(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("validation_errors", sa.JSON(), nullable=False),
        _timestamp("quarantined_at", nullable=False),
        _timestamp("reviewed_at", nullable=True),
        sa.Column("reviewed_by", sa.String(), nullable=True),
        _enum("disposition"),
        sa.Column("corrected_payload", sa.JSON(), nullable=True),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_quarantined_record"),
    )
    op.create_index(
        "ix_quarantined_record_tenant_disposition",
        "quarantined_record",
        ["hospital_id", "disposition"],
    )

    op.create_table(
        "sync_audit_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("conflict_id", sa.Uuid(), nullable=False),
        _enum("record_type"),
        sa.Column("record_id", sa.String(), nullable=False),
        _enum("strategy"),
        sa.Column("main_snapshot", sa.JSON(), nullable=False),
        sa.Column("microservice_snapshot", sa.JSON(), nullable=False),
        sa.Column("resolved_payload", sa.JSON(), nullable=False),
        _timestamp("resolved_at", nullable=False),
        sa.Column("resolved_by", sa.String(), nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sync_audit_entry"),
    )
    op.create_index("ix_sync_audit_entry_conflict_id", "sync_audit_entry", ["conflict_id"])

    op.create_table(
        "validation_log_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        _enum("record_type"),
        sa.Column("record_id", sa.String(), nullable=True),
        sa.Column("valid", sa.Boolean(), nullable=False),
        sa.Column("error_count", sa.Integer(), nullable=False),
        sa.Column("warning_count", sa.Integer(), nullable=False),
        _timestamp("validated_at", nullable=False),
        sa.Column("hospital_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_validation_log_entry"),
    )
    op.create_index(
        "ix_validation_log_entry_tenant_time",
        "validation_log_entry",
        ["hospital_id", "validated_at"],
    )

    op.create_table(
        "sync_watermark",
        sa.Column("service", sa.String(), nullable=False),
        _timestamp("last_sync", nullable=False),
        sa.PrimaryKeyConstraint("service", name="pk_sync_watermark"),
    )


def downgrade() -> None:
    for table in (
        "sync_watermark",
        "validation_log_entry",
        "sync_audit_entry",
        "quarantined_record",
        "sync_conflict",
        "pharmacy_order",
        "inventory_item",
        "medication",
        "prescription",
    ):
        op.drop_table(table)
