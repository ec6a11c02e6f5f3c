"""listing_activation_core_schema

Revision ID: 5c1e2a7b9d40
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a7b9d40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ad_packages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("package_type", sa.String(16), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("location", sa.String(16), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("features", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("package_type IN ('basic','featured','premium')", name="ck_ad_packages_type"),
        sa.CheckConstraint("category IN ('property','general')", name="ck_ad_packages_category"),
        sa.CheckConstraint("location IN ('rohtak','all')", name="ck_ad_packages_location"),
        sa.CheckConstraint("price >= 0", name="ck_ad_packages_price_non_negative"),
        sa.CheckConstraint("duration_days > 0", name="ck_ad_packages_duration_positive"),
        sa.UniqueConstraint("code", name="uq_ad_packages_code"),
    )
    op.create_index(
        "idx_ad_packages_active_type_price",
        "ad_packages",
        ["is_active", "package_type", "price"],
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("owner_type", sa.String(16), nullable=False, server_default=sa.text("'seller'")),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("price_type", sa.String(8), nullable=False),
        sa.Column("property_type", sa.String(32), nullable=False),
        sa.Column("sub_category", sa.String(32), nullable=True),
        sa.Column("location", postgresql.JSONB(), nullable=False),
        sa.Column("specifications", postgresql.JSONB(), nullable=False),
        sa.Column("amenities", postgresql.JSONB(), nullable=False),
        sa.Column("contact_info", postgresql.JSONB(), nullable=False),
        sa.Column("state", sa.String(24), nullable=False),
        sa.Column("payment_status", sa.String(8), nullable=False, server_default=sa.text("'unpaid'")),
        sa.Column("package_id", sa.Uuid(), nullable=True),
        sa.Column("package_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("package_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("paid_currency", sa.String(3), nullable=True),
        sa.Column("gateway_order_id", sa.String(64), nullable=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("last_payment_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(64), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(64), nullable=True),
        sa.Column("rejection_reason", sa.String(512), nullable=True),
        sa.Column("admin_comments", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "state IN ('AWAITING_PAYMENT','PENDING_REVIEW','APPROVED','REJECTED')",
            name="ck_listings_state",
        ),
        sa.CheckConstraint("payment_status IN ('unpaid','paid','failed')", name="ck_listings_payment_status"),
        sa.CheckConstraint("price_type IN ('sale','rent')", name="ck_listings_price_type"),
        sa.CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        sa.CheckConstraint(
            "state <> 'APPROVED' OR package_id IS NULL OR payment_status = 'paid'",
            name="ck_listings_paid_package_before_approval",
        ),
    )
    op.create_index("idx_listings_owner_created", "listings", ["owner_id", "created_at"])
    op.create_index("idx_listings_state_created", "listings", ["state", "created_at"])
    op.create_index("idx_listings_gateway_order", "listings", ["gateway_order_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("package_id", sa.Uuid(), nullable=False),
        sa.Column("listing_id", sa.Uuid(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("gateway", sa.String(16), nullable=False, server_default=sa.text("'razorpay'")),
        sa.Column("gateway_order_id", sa.String(64), nullable=False),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("gateway_signature", sa.String(128), nullable=True),
        sa.Column("status", sa.String(8), nullable=False),
        sa.Column("package_name", sa.String(128), nullable=False),
        sa.Column("package_duration_days", sa.Integer(), nullable=False),
        sa.Column("failure_reason", sa.String(256), nullable=True),
        sa.Column("fulfillment_status", sa.String(16), nullable=False),
        sa.Column("fulfillment_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('pending','paid','failed')", name="ck_transactions_status"),
        sa.CheckConstraint(
            "fulfillment_status IN ('NOT_REQUIRED','PENDING','APPLIED','REVIEW')",
            name="ck_transactions_fulfillment_status",
        ),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "status <> 'paid' OR gateway_payment_id IS NOT NULL",
            name="ck_transactions_paid_has_payment_id",
        ),
        sa.ForeignKeyConstraint(["package_id"], ["ad_packages.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.UniqueConstraint("gateway_order_id", name="uq_transactions_gateway_order_id"),
        sa.UniqueConstraint("gateway_payment_id", name="uq_transactions_gateway_payment_id"),
    )
    op.create_index("idx_transactions_user_status", "transactions", ["user_id", "status"])
    op.create_index("idx_transactions_listing", "transactions", ["listing_id"])
    op.create_index(
        "idx_transactions_fulfillment_paid_at",
        "transactions",
        ["fulfillment_status", "paid_at"],
    )

    op.create_table(
        "coupons",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("description", sa.String(256), nullable=False),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("min_purchase_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("max_discount_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("applicable_for", sa.String(24), nullable=False),
        sa.Column("package_ids", postgresql.JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("discount_type IN ('percentage','fixed')", name="ck_coupons_discount_type"),
        sa.CheckConstraint("discount_value > 0", name="ck_coupons_discount_value_positive"),
        sa.CheckConstraint(
            "discount_type <> 'percentage' OR discount_value <= 100",
            name="ck_coupons_percentage_le_100",
        ),
        sa.CheckConstraint(
            "applicable_for IN ('all','specific_packages','first_time_users')",
            name="ck_coupons_applicable_for",
        ),
        sa.CheckConstraint("valid_from < valid_until", name="ck_coupons_validity_window"),
        sa.CheckConstraint("usage_limit IS NULL OR usage_limit > 0", name="ck_coupons_usage_limit_positive"),
        sa.CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
        sa.CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_coupons_used_count_le_limit",
        ),
        sa.UniqueConstraint("code", name="uq_coupons_code"),
    )
    op.create_index("idx_coupons_active_valid_until", "coupons", ["is_active", "valid_until"])

    op.create_table(
        "coupon_usages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("coupon_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("transaction_id", sa.Uuid(), nullable=False),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("discount_amount >= 0", name="ck_coupon_usages_discount_non_negative"),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"]),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"]),
        sa.UniqueConstraint("coupon_id", "user_id", name="uq_coupon_usages_coupon_user"),
    )
    op.create_index("idx_coupon_usages_user", "coupon_usages", ["user_id"])
    op.create_index("idx_coupon_usages_transaction", "coupon_usages", ["transaction_id"])

    op.create_table(
        "listing_moderation_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("listing_id", sa.Uuid(), nullable=False),
        sa.Column("decision", sa.String(8), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("previous_state", sa.String(24), nullable=False),
        sa.Column("next_state", sa.String(24), nullable=False),
        sa.Column("comment", sa.String(1024), nullable=True),
        sa.Column("rejection_reason", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("decision IN ('approve','reject')", name="ck_listing_moderation_events_decision"),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
    )
    op.create_index(
        "idx_listing_moderation_events_listing_created",
        "listing_moderation_events",
        ["listing_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_listing_moderation_events_listing_created", table_name="listing_moderation_events")
    op.drop_table("listing_moderation_events")
    op.drop_index("idx_coupon_usages_transaction", table_name="coupon_usages")
    op.drop_index("idx_coupon_usages_user", table_name="coupon_usages")
    op.drop_table("coupon_usages")
    op.drop_index("idx_coupons_active_valid_until", table_name="coupons")
    op.drop_table("coupons")
    op.drop_index("idx_transactions_fulfillment_paid_at", table_name="transactions")
    op.drop_index("idx_transactions_listing", table_name="transactions")
    op.drop_index("idx_transactions_user_status", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("idx_listings_gateway_order", table_name="listings")
    op.drop_index("idx_listings_state_created", table_name="listings")
    op.drop_index("idx_listings_owner_created", table_name="listings")
    op.drop_table("listings")
    op.drop_index("idx_ad_packages_active_type_price", table_name="ad_packages")
    op.drop_table("ad_packages")
