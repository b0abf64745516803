"""Initial schema — data_rooms and data_room_documents.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "data_rooms",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("owner_user_id", sa.String(128), nullable=False),
        sa.Column("owner_organization_id", sa.String(128), nullable=True),
        sa.Column("external_asset_id", sa.String(255), nullable=True),
        sa.Column("external_listing_id", sa.String(255), nullable=True),
        sa.Column("tier", sa.String(20), nullable=False, server_default="SIMPLE"),
        sa.Column("access", sa.String(20), nullable=False, server_default="RESTRICTED"),
        sa.Column("status", sa.String(20), nullable=False, server_default="INCOMPLETE"),
        sa.Column("document_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_size_bytes", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("document_count >= 0", name="ck_data_rooms_document_count"),
        sa.CheckConstraint("total_size_bytes >= 0", name="ck_data_rooms_total_size"),
    )
    op.create_index("ix_data_rooms_owner_created", "data_rooms", ["owner_user_id", "created_at"])
    op.create_index("ix_data_rooms_external_listing_id", "data_rooms", ["external_listing_id"])
    op.create_index("ix_data_rooms_external_asset_id", "data_rooms", ["external_asset_id"])

    op.create_table(
        "data_room_documents",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "data_room_id", UUID(as_uuid=True),
            sa.ForeignKey("data_rooms.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "parent_folder_id", UUID(as_uuid=True),
            sa.ForeignKey("data_room_documents.id", ondelete="CASCADE"), nullable=True,
        ),
        sa.Column("display_name", sa.Text, nullable=False),
        sa.Column("original_filename", sa.Text, nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("content_address", sa.String(255), nullable=True),
        sa.Column("content_url", sa.Text, nullable=True),
        sa.Column("temp_storage_path", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("size_bytes >= 0", name="ck_data_room_documents_size"),
    )
    op.create_index("ix_data_room_documents_data_room_id", "data_room_documents", ["data_room_id"])
    op.create_index("ix_data_room_documents_parent_folder_id", "data_room_documents", ["parent_folder_id"])


def downgrade() -> None:
    op.drop_index("ix_data_room_documents_parent_folder_id", table_name="data_room_documents")
    op.drop_index("ix_data_room_documents_data_room_id", table_name="data_room_documents")
    op.drop_table("data_room_documents")
    op.drop_index("ix_data_rooms_external_asset_id", table_name="data_rooms")
    op.drop_index("ix_data_rooms_external_listing_id", table_name="data_rooms")
    op.drop_index("ix_data_rooms_owner_created", table_name="data_rooms")
    op.drop_table("data_rooms")
