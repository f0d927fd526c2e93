# Supabase table: user_avatars
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_avatars:
- user_id: uuid (primary key, foreign key to auth.users.id)
- avatar_seed: text (not null) - seed for the generated avatar image
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

RLS: a user can read and write only their own row.
"""
