"""Supabase auth session lookup."""

from dataclasses import dataclass

from supabase import Client

from yoga_of_eating.services.sync import AuthProvider


@dataclass
class SupabaseAuthProvider(AuthProvider):
    """Reads the signed-in user from the Supabase client's auth session."""

    client: Client

    def current_user_id(self) -> str | None:
        """Return the session user's id, or None when signed out."""
        session = self.client.auth.get_session()
        if session is None or session.user is None:
            return None
        return str(session.user.id)
