"""Identity providers."""

from contractseal.infrastructure.auth.provider import IdentityProvider
from contractseal.infrastructure.auth.supabase import SupabaseIdentityProvider

__all__ = [
    "IdentityProvider",
    "SupabaseIdentityProvider",
]
