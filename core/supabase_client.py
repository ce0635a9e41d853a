from supabase import create_client
from core.config import settings, logger, ConfigurationError
from typing import Any, Optional
import asyncio
from functools import partial

# Process-wide client, created lazily on first use
_supabase_client: Optional[Any] = None
_init_lock = asyncio.Lock()


class ProviderError(Exception):
    """A Supabase storage or table call failed. str() is the provider's message."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
        self.message = message


def provider_message(exc: Exception) -> str:
    """Extracts the human-readable message from a Supabase client exception."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    # Older storage3 releases raise StorageException(dict)
    if exc.args and isinstance(exc.args[0], dict):
        payload = exc.args[0]
        return str(payload.get("message") or payload.get("error") or payload)
    return str(exc)


async def get_supabase_client():
    """
    Initializes and returns the shared Supabase client (thread-safe).
    The client is constructed once from settings and cached for the process.
    """
    global _supabase_client

    if _supabase_client is None:
        async with _init_lock:
            # Double check after acquiring lock
            if _supabase_client is None:
                url = settings.SUPABASE_URL
                key = settings.SUPABASE_KEY

                if url and key:
                    logger.info("Initializing Supabase client with anon key...")
                    try:
                        # Run create_client in a thread pool since it's synchronous
                        loop = asyncio.get_running_loop()
                        _supabase_client = await loop.run_in_executor(
                            None,
                            partial(create_client, url, key)
                        )
                        logger.info("Supabase client initialized successfully.")
                    except Exception as e:
                        logger.error(f"Failed to initialize Supabase client: {e}", exc_info=True)
                        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
                else:
                    logger.error("Supabase URL or Anon Key not configured. Cannot create client.")
                    raise ConfigurationError("Supabase URL or Anon Key not configured")

    return _supabase_client


def reset_supabase_client() -> None:
    """Drops the cached client; the next get_supabase_client() builds a new one."""
    global _supabase_client
    _supabase_client = None
