# Supabase tables: groups, group_members, group_messages, group_invites, group_events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- created_by: uuid (foreign key to auth.users.id, not null)
- created_at: timestamp (default: now())

group_members:
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: text (not null, default: 'member') - values: owner, host, admin, member
- joined_at: timestamp (default: now())
- primary key (group_id, user_id)

group_messages (chat only; control payloads live in group_events):
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (not null)
- author_alias: text (nullable, <= 40 chars)
- content: text (not null)
- created_at: timestamp (default: now())

group_invites:
- group_id: uuid (foreign key to groups.id, not null)
- code: text (unique)
- created_at: timestamp (default: now())
- expires_at: timestamp (nullable)
- max_uses: int (nullable)
- uses: int (default: 0)

group_events (typed outbox, clients subscribe through Supabase realtime):
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, not null)
- user_id: uuid (not null)
- event_type: text (not null) - values: round_start, host_prefs, swipe_results,
  publish_results, force_results, player_join
- payload: jsonb (not null, default '{}')
- created_at: timestamp (default: now())

RPCs:
- create_group(p_name text) -> uuid: inserts the group and the caller as 'owner'
- redeem_group_invite(p_code text) -> uuid: validates the code, bumps uses,
  inserts the caller as 'member', returns the group id
"""
