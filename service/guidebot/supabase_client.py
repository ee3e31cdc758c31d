from supabase import create_client, Client
from guidebot.config import Settings


def get_supabase_admin(settings: Settings) -> Client:
    """Service role client — bypasses RLS, for server-side inserts."""
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key
    )
