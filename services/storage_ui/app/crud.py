# services/storage_ui/app/crud.py
import asyncio
from core.config import settings, logger as core_logger
from core.models import ProfileRecord
from core.supabase_client import get_supabase_client, ProviderError, provider_message
from typing import List
from supabase import PostgrestAPIError

# Use a child logger
logger = core_logger.getChild("StorageUI").getChild("CRUD")


async def list_profiles() -> List[ProfileRecord]:
    """Reads every row of the Profile table, in the order the provider returns them."""
    try:
        supabase = await get_supabase_client()
        logger.debug(f"Selecting all rows from '{settings.PROFILE_TABLE}'.")

        def db_call():
            return supabase.table(settings.PROFILE_TABLE)\
                   .select("*")\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        logger.error(f"Supabase error listing profiles: {e.message} (Code: {e.code}, Details: {e.details})", exc_info=False)
        raise ProviderError("select", provider_message(e)) from e
    except Exception as e:
        logger.error(f"Unexpected error listing profiles: {e}", exc_info=True)
        raise ProviderError("select", provider_message(e)) from e

    profiles = []
    for row in response.data or []:
        try:
            profiles.append(ProfileRecord(**row))
        except Exception as p_err:
            logger.warning(f"Skipping unparseable profile row {row.get('email', 'UNKNOWN')}: {p_err}", exc_info=False)
    logger.info(f"Retrieved {len(profiles)} profile(s).")
    return profiles


async def upsert_profile(record: ProfileRecord) -> ProfileRecord:
    """Inserts or replaces the profile row keyed by email."""
    job_prefix = f"[{record.email}]"
    try:
        supabase = await get_supabase_client()
        row = record.to_row()
        logger.debug(f"{job_prefix} Attempting to upsert profile.")

        def db_call():
            return supabase.table(settings.PROFILE_TABLE)\
                   .upsert(row, on_conflict=settings.PROFILE_CONFLICT_COLUMN)\
                   .execute()

        response = await asyncio.to_thread(db_call)
    except PostgrestAPIError as e:
        logger.error(f"{job_prefix} Supabase error saving profile: {e.message} (Code: {e.code}, Details: {e.details})", exc_info=False)
        raise ProviderError("upsert", provider_message(e)) from e
    except Exception as e:
        logger.error(f"{job_prefix} Unexpected error saving profile: {e}", exc_info=True)
        raise ProviderError("upsert", provider_message(e)) from e

    if response.data:
        logger.info(f"{job_prefix} Successfully upserted profile.")
        return ProfileRecord(**response.data[0])
    logger.warning(f"{job_prefix} Upsert executed but returned no data in response.")
    return record
