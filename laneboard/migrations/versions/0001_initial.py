"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

board_user_role = sa.Enum("OWNER", "MEMBER", name="boarduserrole")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "boards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_boards_id", "boards", ["id"])
    op.create_index("ix_boards_owner_id", "boards", ["owner_id"])

    op.create_table(
        "board_memberships",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("board_id", sa.Integer(), sa.ForeignKey("boards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", board_user_role, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("board_id", "user_id", name="uq_board_memberships_board_user"),
    )
    op.create_index("ix_board_memberships_id", "board_memberships", ["id"])
    op.create_index("ix_board_memberships_board_id", "board_memberships", ["board_id"])
    op.create_index("ix_board_memberships_user_id", "board_memberships", ["user_id"])

    op.create_table(
        "swimlanes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("board_id", sa.Integer(), sa.ForeignKey("boards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_swimlanes_id", "swimlanes", ["id"])
    op.create_index("ix_swimlanes_board_id", "swimlanes", ["board_id"])

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("swimlane_id", sa.Integer(), sa.ForeignKey("swimlanes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_cards_id", "cards", ["id"])
    op.create_index("ix_cards_swimlane_id", "cards", ["swimlane_id"])

    op.create_table(
        "labels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("color", sa.String(length=16), nullable=False, unique=True),
    )
    op.create_index("ix_labels_id", "labels", ["id"])

    op.create_table(
        "card_labels",
        sa.Column("card_id", sa.Integer(), sa.ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("label_id", sa.Integer(), sa.ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True),
    )

    labels = sa.table("labels", sa.column("color", sa.String))
    op.bulk_insert(labels, [{"color": color} for color in ("red", "yellow", "green", "blue", "purple")])


def downgrade() -> None:
    op.drop_table("card_labels")
    op.drop_table("labels")
    op.drop_table("cards")
    op.drop_table("swimlanes")
    op.drop_table("board_memberships")
    op.drop_table("boards")
    op.drop_table("users")
    board_user_role.drop(op.get_bind(), checkfirst=True)
