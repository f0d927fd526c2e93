# Supabase tables: restaurants, restaurant_geo
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py / filters.py

"""
Expected Supabase table structure:

restaurants:
- id: uuid (primary key)
- name: text (not null, unique)
- avg_rating: numeric (nullable, 0..5)
- review_count: int (nullable)
- price_tag: text (nullable) - known values: '$', '$$ - $$$', '$$$$'
- parent_city: text (nullable)
- cuisines: text[] (nullable)
- is_active: boolean (default: true)
- address, phone, website, description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

restaurant_geo:
- restaurant_id: uuid (primary key, foreign key to restaurants.id)
- lat, lng: double precision (not null)
- place_id: text (nullable)
- formatted_address: text (nullable)
- accuracy: text (nullable) - geocoder location_type
- partial_match: boolean (default: false)
- provider: text (default: 'google')
- query_used: text (nullable)
- updated_at: timestamp (not null) - freshness gate for re-geocoding

RPCs:
- list_cuisines() -> setof text
- list_price_tags() -> setof text
- get_random_restaurants(p_limit int) -> setof restaurants
- search_restaurants_by_radius(p_lat, p_lng, p_radius_km, p_min_rating,
  p_max_rating, p_city, p_price_tags, p_active_only, p_random, p_limit,
  p_offset) -> setof restaurants (PostGIS distance filter)
- list_restaurants_needing_geo(p_limit int, p_max_age_days int)
  -> setof (id, name, parent_city)
"""
