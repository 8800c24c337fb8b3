"""Supabase client for the record store."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the shared Supabase client, or None when no project is configured.

    Creating the client does not contact the project; the first query does.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("DISPATCH_SUPABASE_URL or DISPATCH_SUPABASE_KEY is not set")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Could not build Supabase client for {settings.supabase_url}: {e}")
        return None


# Expected tables (one per collection, columns named after the wire fields):
#
#   create table "Entregas" (
#     id uuid primary key default gen_random_uuid(),
#     created_at timestamptz default now(),
#     dia int[], nome text, status text, telefone text, cidade text,
#     bairro text, rua text, numero text, coordenadas jsonb, valor text,
#     pagamento text, "statusPagamento" text, entregador text, volume text,
#     observacoes text, horario numeric[], "statusMensagem" text
#   );
#
# "Clientes" and "Usuarios" follow the same pattern.
