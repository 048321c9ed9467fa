"""add_rls_and_replace_favorites

Revision ID: c7a9d2f41e58
Revises: 8b3e5c0d9a41
Create Date: 2026-09-15 08:21:55.630147

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "c7a9d2f41e58"
down_revision: str | Sequence[str] | None = "8b3e5c0d9a41"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

OWNER_CHECK = "(SELECT auth.jwt() ->> 'sub') = user_id"


def upgrade() -> None:
    """Add owner-only Row Level Security and the favorites replace function.

    The API applies the caller's claims to each transaction
    (``request.jwt.claims``) and switches to the ``authenticated`` role, so
    these policies scope every statement to the caller.
    """
    for table in ["profiles", "favorites"]:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")

    # --- Profiles policies ---
    op.execute(f"""
        CREATE POLICY profiles_select_user ON profiles
            FOR SELECT USING ({OWNER_CHECK});
    """)
    op.execute(f"""
        CREATE POLICY profiles_insert_user ON profiles
            FOR INSERT WITH CHECK ({OWNER_CHECK});
    """)
    op.execute(f"""
        CREATE POLICY profiles_update_user ON profiles
            FOR UPDATE USING ({OWNER_CHECK})
            WITH CHECK ({OWNER_CHECK});
    """)

    # --- Favorites policies ---
    op.execute(f"""
        CREATE POLICY favorites_select_user ON favorites
            FOR SELECT USING ({OWNER_CHECK});
    """)
    op.execute(f"""
        CREATE POLICY favorites_insert_user ON favorites
            FOR INSERT WITH CHECK ({OWNER_CHECK});
    """)
    op.execute(f"""
        CREATE POLICY favorites_update_user ON favorites
            FOR UPDATE USING ({OWNER_CHECK})
            WITH CHECK ({OWNER_CHECK});
    """)
    op.execute(f"""
        CREATE POLICY favorites_delete_user ON favorites
            FOR DELETE USING ({OWNER_CHECK});
    """)

    # --- Transactional replace of a user's favorites ---
    # Serialized per user by a transaction-scoped advisory lock.
    op.execute("""
        CREATE OR REPLACE FUNCTION replace_user_favorites(p_user_id TEXT, p_token_ids TEXT[])
        RETURNS VOID
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        BEGIN
            IF (auth.jwt() ->> 'sub') IS DISTINCT FROM p_user_id THEN
                RAISE EXCEPTION 'Forbidden' USING ERRCODE = '42501';
            END IF;

            PERFORM pg_advisory_xact_lock(hashtext(p_user_id));

            IF p_token_ids IS NULL OR COALESCE(array_length(p_token_ids, 1), 0) = 0 THEN
                DELETE FROM favorites WHERE user_id = p_user_id;
                RETURN;
            END IF;

            WITH input_ids AS (
                SELECT DISTINCT LOWER(unnest(p_token_ids)) AS token_id
            ), removed AS (
                DELETE FROM favorites f
                WHERE f.user_id = p_user_id
                  AND NOT EXISTS (SELECT 1 FROM input_ids i WHERE i.token_id = f.token_id)
                RETURNING 1
            )
            INSERT INTO favorites (user_id, token_id)
            SELECT p_user_id, i.token_id FROM input_ids i
            ON CONFLICT (user_id, token_id) DO NOTHING;
        END;
        $$;
    """)
    op.execute("""
        GRANT EXECUTE ON FUNCTION replace_user_favorites(TEXT, TEXT[]) TO authenticated;
    """)


def downgrade() -> None:
    """Remove RLS policies and the replace function."""
    op.execute("DROP FUNCTION IF EXISTS replace_user_favorites(TEXT, TEXT[]);")

    for policy in [
        "favorites_delete_user",
        "favorites_update_user",
        "favorites_insert_user",
        "favorites_select_user",
    ]:
        op.execute(f"DROP POLICY IF EXISTS {policy} ON favorites;")
    for policy in [
        "profiles_update_user",
        "profiles_insert_user",
        "profiles_select_user",
    ]:
        op.execute(f"DROP POLICY IF EXISTS {policy} ON profiles;")

    for table in ["favorites", "profiles"]:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")
