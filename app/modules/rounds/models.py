# Supabase tables: group_rounds, round_submissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

group_rounds:
- id: uuid (primary key) - exposed to clients as session_id
- group_id: uuid (foreign key to groups.id, not null)
- status: text (not null, default: 'open') - values: open, closed
- started_by: uuid (not null)
- created_at: timestamp (default: now())
- published_at: timestamp (nullable)
- closed_at: timestamp (nullable)
- close_reason: text (nullable) - values: published, forced, superseded
- partial unique index on (group_id) where status = 'open'

Lifecycle: a round is inserted already open. Publishing or forcing results
closes it and releases results; starting a new round closes the previous
open one as superseded (results stay hidden).

round_submissions:
- round_id: uuid (foreign key to group_rounds.id, not null)
- user_id: uuid (not null)
- accepted_ids: text[] (not null, default '{}')
- rejected_ids: text[] (not null, default '{}')
- submitted_at: timestamp (default: now())
- unique constraint on (round_id, user_id) - resubmitting replaces the row
"""
