"""Create initial tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-02-11 10:12:04.518233

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COURT_TYPES = (
    "FUTSAL",
    "FUT7",
    "CAMPO",
    "VOLEI",
    "FUTVOLEI",
    "BEACH_TENNIS",
    "BASQUETE",
    "TENIS",
    "HANDEBOL",
    "SKATE",
    "OUTRO",
)


def upgrade() -> None:
    """Upgrade schema."""
    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column(
            "role",
            sa.Enum("USER", "OWNER", "ARENA_OWNER", "ADMIN", name="userrole"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_name"), "users", ["name"], unique=False)

    # Create arenas table
    op.create_table(
        "arenas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("district", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("open_time", sa.String(), nullable=True),
        sa.Column("close_time", sa.String(), nullable=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_arenas_id"), "arenas", ["id"], unique=False)
    op.create_index(op.f("ix_arenas_slug"), "arenas", ["slug"], unique=True)
    op.create_index(op.f("ix_arenas_owner_id"), "arenas", ["owner_id"], unique=False)

    # Create courts table
    op.create_table(
        "courts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.Enum(*COURT_TYPES, name="courttype"), nullable=False),
        sa.Column("surface", sa.String(), nullable=True),
        sa.Column("covered", sa.Boolean(), nullable=True),
        sa.Column("arena_id", sa.Integer(), nullable=False),
        sa.Column("price_per_hour", sa.Integer(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["arena_id"], ["arenas.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_courts_id"), "courts", ["id"], unique=False)
    op.create_index(op.f("ix_courts_arena_id"), "courts", ["arena_id"], unique=False)

    # Create reservations table
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("court_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("total_price", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "CANCELED", name="reservationstatus"),
            nullable=False,
        ),
        sa.Column(
            "payment_status",
            sa.Enum("UNPAID", "PAID", "REFUNDED", name="paymentstatus"),
            nullable=False,
        ),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("start_at < end_at", name="ck_reservation_window"),
        sa.ForeignKeyConstraint(["court_id"], ["courts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reservations_id"), "reservations", ["id"], unique=False)
    op.create_index(
        op.f("ix_reservations_user_id"), "reservations", ["user_id"], unique=False
    )
    op.create_index(
        "ix_reservations_court_start", "reservations", ["court_id", "start_at"], unique=False
    )

    # Create matches table
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("court_id", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        # courttype ya se creó con la tabla courts
        sa.Column(
            "type",
            postgresql.ENUM(*COURT_TYPES, name="courttype", create_type=False),
            nullable=False,
        ),
        sa.Column("kind", sa.Enum("BOOKING", "PELADA", name="matchkind"), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "SCHEDULED", "LIVE", "FINISHED", "CANCELED", "EXPIRED", name="matchstatus"
            ),
            nullable=False,
        ),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("min_players", sa.Integer(), nullable=False),
        sa.Column("price_per_player", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("canceled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["court_id"], ["courts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["organizer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_matches_id"), "matches", ["id"], unique=False)
    op.create_index(
        op.f("ix_matches_organizer_id"), "matches", ["organizer_id"], unique=False
    )
    op.create_index(op.f("ix_matches_kind"), "matches", ["kind"], unique=False)
    op.create_index("ix_matches_court_date", "matches", ["court_id", "date"], unique=False)

    # Create match_presences table
    op.create_table(
        "match_presences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "user_id", name="uq_match_presence"),
    )
    op.create_index(op.f("ix_match_presences_id"), "match_presences", ["id"], unique=False)
    op.create_index(
        op.f("ix_match_presences_user_id"), "match_presences", ["user_id"], unique=False
    )

    # Create match_player_stats table
    op.create_table(
        "match_player_stats",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("goals_official", sa.Integer(), nullable=False),
        sa.Column("assists_official", sa.Integer(), nullable=False),
        sa.Column("goals_unofficial", sa.Integer(), nullable=False),
        sa.Column("assists_unofficial", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "user_id", name="uq_match_player_stat"),
    )
    op.create_index(
        op.f("ix_match_player_stats_id"), "match_player_stats", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_match_player_stats_user_id"),
        "match_player_stats",
        ["user_id"],
        unique=False,
    )

    # Índices únicos parciales: última barrera contra altas simultáneas.
    # Solo cuentan las reservas no canceladas y los partidos activos.
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_active_reservation_court_start
        ON reservations (court_id, start_at)
        WHERE status != 'CANCELED';
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_active_match_court_date
        ON matches (court_id, date)
        WHERE status IN ('SCHEDULED', 'LIVE');
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS uq_active_match_court_date;")
    op.execute("DROP INDEX IF EXISTS uq_active_reservation_court_start;")
    op.drop_table("match_player_stats")
    op.drop_table("match_presences")
    op.drop_table("matches")
    op.drop_table("reservations")
    op.drop_table("courts")
    op.drop_table("arenas")
    op.drop_table("users")

    for enum_name in (
        "matchstatus",
        "matchkind",
        "paymentstatus",
        "reservationstatus",
        "courttype",
        "userrole",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name};")
