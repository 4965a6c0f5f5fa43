"""Supabase client for Python backend."""

import logging

from supabase import AsyncClient, acreate_client

from ..config import settings

_client: AsyncClient | None = None


async def get_supabase_client() -> AsyncClient | None:
    """Get cached async Supabase client instance.

    Returns:
        AsyncClient instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    global _client
    if _client is not None:
        return _client
    if not settings.supabase_url or not settings.supabase_key:
        logging.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        _client = await acreate_client(settings.supabase_url, settings.supabase_key)
        return _client
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


# Example usage patterns:
#
# client = await get_supabase_client()
#
# # Select with filters
# result = await client.table('bookings') \
#     .select('*') \
#     .eq('worker_id', worker_id) \
#     .order('created_at', desc=True) \
#     .execute()
#
# # Update
# result = await client.table('bookings') \
#     .update({'status': 'assigned'}) \
#     .eq('id', booking_id) \
#     .execute()
#
# # Realtime
# channel = client.channel('bookings')
# channel.on_postgres_changes('*', schema='public', table='bookings', callback=handler)
# await channel.subscribe()
