"""add_wallet_normalization

Revision ID: 8b3e5c0d9a41
Revises: 4d1f0a7c2e93
Create Date: 2026-09-14 10:40:03.117902

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b3e5c0d9a41"
down_revision: str | Sequence[str] | None = "4d1f0a7c2e93"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Store wallet addresses lowercase only.

    Existing case-variant duplicates are unlinked (oldest row keeps the
    wallet) before the CHECK constraint is added.
    """
    op.execute("""
        WITH ranked AS (
            SELECT id,
                   ROW_NUMBER() OVER (
                       PARTITION BY LOWER(wallet_address)
                       ORDER BY created_at ASC, id ASC
                   ) AS rn
            FROM profiles
            WHERE wallet_address IS NOT NULL
        )
        UPDATE profiles p
        SET wallet_address = NULL, wallet_linked_at = NULL
        FROM ranked r
        WHERE p.id = r.id AND r.rn > 1;
    """)
    op.execute("""
        UPDATE profiles
        SET wallet_address = LOWER(wallet_address)
        WHERE wallet_address IS NOT NULL AND wallet_address <> LOWER(wallet_address);
    """)

    op.create_check_constraint(
        "profiles_wallet_address_lowercase",
        "profiles",
        "wallet_address IS NULL OR wallet_address = lower(wallet_address)",
    )

    # Empty strings become NULL so they never collide on the unique constraint
    op.execute("""
        CREATE OR REPLACE FUNCTION normalize_wallet_lowercase()
        RETURNS trigger
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        BEGIN
            IF NEW.wallet_address IS NOT NULL THEN
                NEW.wallet_address := LOWER(NEW.wallet_address);
                IF NEW.wallet_address = '' THEN
                    NEW.wallet_address := NULL;
                END IF;
            END IF;
            RETURN NEW;
        END;
        $$;
    """)
    op.execute("""
        CREATE TRIGGER trg_profiles_wallet_normalize
            BEFORE INSERT OR UPDATE OF wallet_address ON profiles
            FOR EACH ROW
            EXECUTE FUNCTION normalize_wallet_lowercase();
    """)


def downgrade() -> None:
    """Remove wallet normalization."""
    op.execute("DROP TRIGGER IF EXISTS trg_profiles_wallet_normalize ON profiles;")
    op.execute("DROP FUNCTION IF EXISTS normalize_wallet_lowercase();")
    op.drop_constraint("profiles_wallet_address_lowercase", "profiles", type_="check")
