# Supabase table: restaurant_geo (schema documented in app/modules/restaurants/models.py)
# Geocodes come from the Google Geocoding API; distances from the Distance Matrix API.
# Actual operations are handled via Supabase SDK in service.py and via httpx in client.py

"""
Upsert row written for every successful geocode (keyed by restaurant_id):

- restaurant_id, lat, lng
- place_id, formatted_address
- accuracy: geometry.location_type of the first result
- provider: 'google'
- updated_at: now (UTC)
- partial_match, query_used: written by the single-restaurant geocode only

Freshness: a row whose updated_at is younger than the window is left alone
unless the caller forces a refresh. A missing row is never an error.
"""
