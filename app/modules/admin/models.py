# Supabase tables: admins, restaurants, restaurant_geo
# Schemas are documented in app/modules/auth/models.py and app/modules/restaurants/models.py
# Admin routes read the admins table with the caller's client (RLS applies) and
# perform writes with the service-role client.
