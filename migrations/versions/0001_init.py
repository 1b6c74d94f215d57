"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "businesses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("sub_category", sa.Text()),
        sa.Column("province", sa.Text(), nullable=False),
        sa.Column("city", sa.Text(), nullable=False),
        sa.Column("area", sa.Text()),
        sa.Column("postal_code", sa.Text()),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("contact_person", sa.Text()),
        sa.Column("whatsapp", sa.Text()),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("website_url", sa.Text()),
        sa.Column("facebook_url", sa.Text()),
        sa.Column("gmb_url", sa.Text()),
        sa.Column("youtube_url", sa.Text()),
        sa.Column("logo_url", sa.Text()),
        sa.Column("logo_public_id", sa.Text()),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("rating_avg", sa.Float()),
        sa.Column("rating_count", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("businesses_category_city_idx", "businesses", ["category", "city"])
    op.create_index("businesses_status_idx", "businesses", ["status"])
    op.create_index("businesses_created_at_idx", "businesses", ["created_at"])
    op.create_index("businesses_slug_uidx", "businesses", ["slug"], unique=True)

    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("icon", sa.Text()),
        sa.Column("description", sa.Text()),
        sa.Column("subcategories", postgresql.JSONB()),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("categories_slug_uidx", "categories", ["slug"], unique=True)
    op.create_index("categories_is_active_idx", "categories", ["is_active"])

    op.create_table(
        "cities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("province", sa.Text()),
        sa.Column("country", sa.Text(), nullable=False, server_default=sa.text("'Pakistan'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("cities_slug_uidx", "cities", ["slug"], unique=True)
    op.create_index("cities_is_active_idx", "cities", ["is_active"])

    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("business_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("reviews_business_created_idx", "reviews", ["business_id", "created_at"])
    op.create_index("reviews_business_rating_idx", "reviews", ["business_id", "rating"])


def downgrade():
    op.drop_table("reviews")
    op.drop_table("cities")
    op.drop_table("categories")
    op.drop_table("businesses")
