from supabase import create_client, Client
from app.config import settings
from app.core.errors import missing_config


def _require_anon_config() -> None:
    missing = settings.missing("supabase_url", "supabase_key")
    if missing:
        raise missing_config(missing)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        _require_anon_config()
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Admin routes and batch jobs only."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client

    @classmethod
    def get_user_client(cls, access_token: str) -> Client:
        """Fresh anon client whose PostgREST calls carry the user's JWT, so RLS applies."""
        _require_anon_config()
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.postgrest.auth(access_token)
        return client


def get_supabase() -> Client:
    return SupabaseClient.get_client()
