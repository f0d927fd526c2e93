# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Password sign-in and session (JWT) issuing
# - Password reset emails

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (full_name stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the current user from a JWT
- auth.admin.sign_out() - Revoke the refresh tokens behind a JWT
- auth.reset_password_for_email() - Send a reset link

The API accepts the access token either as "Authorization: Bearer <jwt>" or
in the httpOnly cookie named by settings.auth_cookie_name, which
POST /auth/sessions sets and DELETE /auth/sessions clears.

admins:
- user_id: uuid (primary key, foreign key to auth.users.id)
  Membership in this table grants access to /admin routes.
"""
