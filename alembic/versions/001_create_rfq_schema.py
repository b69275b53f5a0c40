"""Create RFQ schema - rfqs, supplier quotes, client quotes, outbox

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# --- Enum types ---
rfq_status_enum = sa.Enum(
    "DRAFT", "SENT", "PARTIALLY_QUOTED", "FULLY_QUOTED", "QUOTE_ACCEPTED",
    "CANCELLED", "EXPIRED",
    name="rfqstatus", create_type=False,
)
rfq_transition_type_enum = sa.Enum(
    "SEND", "MARK_PARTIALLY_QUOTED", "MARK_FULLY_QUOTED", "ACCEPT_QUOTE",
    "REJECT_QUOTE", "CANCEL", "EXPIRE",
    name="rfqtransitiontype", create_type=False,
)
supplier_response_status_enum = sa.Enum(
    "PENDING", "SUBMITTED", "ACCEPTED", "REJECTED", "DECLINED",
    name="supplierresponsestatus", create_type=False,
)
quote_status_enum = sa.Enum(
    "DRAFT", "SUBMITTED", "REVISED", "ACCEPTED", "REJECTED",
    name="quotestatus", create_type=False,
)
client_quote_status_enum = sa.Enum(
    "DRAFT", "SENT_TO_CLIENT", "APPROVED",
    name="clientquotestatus", create_type=False,
)
event_status_enum = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED",
    name="eventstatus", create_type=False,
)

_ENUMS = (
    rfq_status_enum,
    rfq_transition_type_enum,
    supplier_response_status_enum,
    quote_status_enum,
    client_quote_status_enum,
    event_status_enum,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True)


def upgrade() -> None:
    for enum in _ENUMS:
        enum.create(op.get_bind(), checkfirst=True)

    op.execute("CREATE SEQUENCE IF NOT EXISTS rfq_number_seq START 1;")
    op.execute("CREATE SEQUENCE IF NOT EXISTS client_quote_number_seq START 1;")

    # 1. rfqs
    op.create_table(
        "rfqs",
        _id(),
        sa.Column("rfq_number", sa.String(20), unique=True, nullable=False),
        sa.Column("project_id", UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", rfq_status_enum, server_default="DRAFT", nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("response_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("metadata_extra", JSONB, server_default="{}", nullable=False),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("lock_version", sa.Integer, server_default="1", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_rfqs_project_id", "rfqs", ["project_id"])
    op.create_index("ix_rfqs_status", "rfqs", ["status"])
    op.create_index("ix_rfqs_rfq_number", "rfqs", ["rfq_number"])
    op.create_index(
        "ix_rfqs_valid_until", "rfqs", ["valid_until"],
        postgresql_where=sa.text("status NOT IN ('CANCELLED', 'EXPIRED', 'QUOTE_ACCEPTED')"),
    )

    # 2. rfq_line_items
    op.create_table(
        "rfq_line_items",
        _id(),
        sa.Column("rfq_id", UUID(as_uuid=True), sa.ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("specifications", sa.Text, nullable=True),
        sa.Column("order_index", sa.Integer, server_default="0", nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="ck_rfq_line_items_quantity_positive"),
    )
    op.create_index("ix_rfq_line_items_rfq_id", "rfq_line_items", ["rfq_id"])

    # 3. supplier_rfqs
    op.create_table(
        "supplier_rfqs",
        _id(),
        sa.Column("rfq_id", UUID(as_uuid=True), sa.ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplier_id", UUID(as_uuid=True), nullable=True),
        sa.Column("vendor_name", sa.String(255), nullable=True),
        sa.Column("vendor_email", sa.String(255), nullable=True),
        sa.Column("response_status", supplier_response_status_enum, server_default="PENDING", nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decline_reason", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "supplier_id IS NOT NULL OR vendor_email IS NOT NULL",
            name="ck_supplier_rfqs_supplier_or_vendor",
        ),
    )
    op.create_index("ix_supplier_rfqs_rfq_id", "supplier_rfqs", ["rfq_id"])
    op.create_index(
        "uq_supplier_rfqs_rfq_supplier", "supplier_rfqs", ["rfq_id", "supplier_id"],
        unique=True,
        postgresql_where=sa.text("supplier_id IS NOT NULL"),
    )

    # 4. quotes
    op.create_table(
        "quotes",
        _id(),
        sa.Column("supplier_rfq_id", UUID(as_uuid=True), sa.ForeignKey("supplier_rfqs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quote_number", sa.String(50), nullable=False),
        sa.Column("version", sa.Integer, server_default="1", nullable=False),
        sa.Column("status", quote_status_enum, server_default="SUBMITTED", nullable=False),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("shipping_cost", sa.Numeric(15, 2), server_default="0", nullable=False),
        sa.Column("lead_time_days", sa.Integer, nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("supplier_rfq_id", "version", name="uq_quotes_supplier_rfq_version"),
        sa.CheckConstraint("total_amount >= 0", name="ck_quotes_total_amount_non_negative"),
        sa.CheckConstraint("shipping_cost >= 0", name="ck_quotes_shipping_cost_non_negative"),
    )
    op.create_index("ix_quotes_supplier_rfq_id", "quotes", ["supplier_rfq_id"])
    op.create_index("ix_quotes_status", "quotes", ["status"])
    op.create_index(
        "uq_quotes_one_accepted_per_supplier_rfq", "quotes", ["supplier_rfq_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACCEPTED'"),
    )

    # 5. quote_line_items
    op.create_table(
        "quote_line_items",
        _id(),
        sa.Column("quote_id", UUID(as_uuid=True), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rfq_line_item_id", UUID(as_uuid=True), sa.ForeignKey("rfq_line_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 4), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("total_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("lead_time_days", sa.Integer, nullable=True),
        sa.Column("availability", sa.String(100), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("unit_price >= 0", name="ck_quote_line_items_unit_price_non_negative"),
        sa.CheckConstraint("quantity > 0", name="ck_quote_line_items_quantity_positive"),
        sa.CheckConstraint("total_price >= 0", name="ck_quote_line_items_total_price_non_negative"),
    )
    op.create_index("ix_quote_line_items_quote_id", "quote_line_items", ["quote_id"])
    op.create_index("ix_quote_line_items_rfq_line_item_id", "quote_line_items", ["rfq_line_item_id"])

    # 6. rfq_transitions (immutable audit log, no updated_at)
    op.create_table(
        "rfq_transitions",
        _id(),
        sa.Column("rfq_id", UUID(as_uuid=True), sa.ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_status", rfq_status_enum, nullable=False),
        sa.Column("to_status", rfq_status_enum, nullable=False),
        sa.Column("transition_type", rfq_transition_type_enum, nullable=False),
        sa.Column("triggered_by", UUID(as_uuid=True), nullable=True),
        sa.Column("trigger_source", sa.String(20), server_default="USER", nullable=False),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("metadata_extra", JSONB, server_default="{}", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_rfq_transitions_rfq_id", "rfq_transitions", ["rfq_id"])
    op.create_index("ix_rfq_transitions_to_status", "rfq_transitions", ["to_status"])

    # 7. client_quotes
    op.create_table(
        "client_quotes",
        _id(),
        sa.Column("quote_number", sa.String(20), unique=True, nullable=False),
        sa.Column("rfq_id", UUID(as_uuid=True), sa.ForeignKey("rfqs.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("project_id", UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", client_quote_status_enum, server_default="DRAFT", nullable=False),
        sa.Column("supplier_quote_ids", ARRAY(UUID(as_uuid=True)), nullable=False),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False),
        sa.Column("shipping_cost", sa.Numeric(15, 2), server_default="0", nullable=False),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_client_quotes_rfq_id", "client_quotes", ["rfq_id"])
    op.create_index("ix_client_quotes_project_id", "client_quotes", ["project_id"])

    # 8. client_quote_line_items
    op.create_table(
        "client_quote_line_items",
        _id(),
        sa.Column("client_quote_id", UUID(as_uuid=True), sa.ForeignKey("client_quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rfq_line_item_id", UUID(as_uuid=True), sa.ForeignKey("rfq_line_items.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supplier_quote_id", UUID(as_uuid=True), sa.ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supplier_quote_line_item_id", UUID(as_uuid=True), sa.ForeignKey("quote_line_items.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("cost_unit_price", sa.Numeric(15, 4), nullable=False),
        sa.Column("markup_percent", sa.Numeric(7, 2), nullable=False),
        sa.Column("sell_unit_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("order_index", sa.Integer, server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="ck_client_quote_line_items_quantity_positive"),
        sa.CheckConstraint("markup_percent >= 0", name="ck_client_quote_line_items_markup_non_negative"),
    )
    op.create_index("ix_client_quote_line_items_client_quote_id", "client_quote_line_items", ["client_quote_id"])

    # 9. event_outbox
    op.create_table(
        "event_outbox",
        _id(),
        sa.Column("event_type", sa.String(255), nullable=False),
        sa.Column("aggregate_type", sa.String(255), nullable=False),
        sa.Column("aggregate_id", sa.String(255), nullable=False),
        sa.Column("payload", JSONB, server_default="{}", nullable=False),
        sa.Column("status", event_status_enum, server_default="PENDING", nullable=False),
        sa.Column("retry_count", sa.Integer, server_default="0", nullable=False),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("schema_version", sa.Integer, server_default="1", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_event_outbox_status", "event_outbox", ["status"])
    op.create_index("ix_event_outbox_aggregate", "event_outbox", ["aggregate_type", "aggregate_id"])
    op.create_index(
        "ix_event_outbox_pending", "event_outbox", ["created_at"],
        postgresql_where=sa.text("status = 'PENDING'"),
    )


def downgrade() -> None:
    op.drop_table("event_outbox")
    op.drop_table("client_quote_line_items")
    op.drop_table("client_quotes")
    op.drop_table("rfq_transitions")
    op.drop_table("quote_line_items")
    op.drop_table("quotes")
    op.drop_table("supplier_rfqs")
    op.drop_table("rfq_line_items")
    op.drop_table("rfqs")

    op.execute("DROP SEQUENCE IF EXISTS client_quote_number_seq;")
    op.execute("DROP SEQUENCE IF EXISTS rfq_number_seq;")

    for enum in reversed(_ENUMS):
        enum.drop(op.get_bind(), checkfirst=True)
