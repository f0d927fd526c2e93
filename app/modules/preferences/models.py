# Supabase table: group_preferences
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

group_preferences:
- group_id: uuid (primary key, foreign key to groups.id)
- max_price: text (nullable) - one of '$', '$$', '$$$', '$$$$'
- max_radius_km: numeric (nullable) - informational, not applied to candidate queries
- blocked_categories: text[] (default: '{}') - top-level cuisine groups, see CUISINE_GROUPS
- require_kid_friendly: boolean (default: false)
- updated_by: uuid (foreign key to auth.users.id)
- updated_at: timestamp (default: now())

Every host update also writes a 'host_prefs' row to group_events.
"""
