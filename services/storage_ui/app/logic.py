# services/storage_ui/app/logic.py
import asyncio
from core.config import settings, logger as core_logger
from core.models import ProfileForm, ProfileRecord, SelectedFile, StoredObject
from core.storage import put_object, list_objects, delete_object
from core.utils import sanitize_filename, join_storage_path
from . import crud
from .processing import compress_image

logger = core_logger.getChild("StorageUI").getChild("Logic")


async def upload_generic_file(selected: SelectedFile) -> StoredObject:
    """Stores a file under cloud/<original filename>; images are compressed first."""
    upload = await asyncio.to_thread(compress_image, selected) if selected.is_image else selected
    path = join_storage_path(settings.GENERIC_UPLOAD_PREFIX, upload.filename)
    logger.info(f"Uploading generic file '{selected.filename}' to '{path}'.")
    return await put_object(path, upload.data, upload.content_type, overwrite=False)


async def upload_profile_photo(selected: SelectedFile) -> StoredObject:
    """
    Compresses the photo and stores it under profile_photos/<sanitized name>.

    A same-named photo is deleted first, because the upload itself never
    overwrites. Each step waits for the previous one; the first failure
    propagates and the remaining steps are skipped.
    """
    compressed = await asyncio.to_thread(compress_image, selected)
    filename = sanitize_filename(compressed.filename)
    prefix = settings.PROFILE_PHOTO_PREFIX
    path = join_storage_path(prefix, filename)

    existing = await list_objects(prefix, filename_filter=filename)
    # The provider's search is a substring match; only an exact name collides
    if any(entry.get("name") == filename for entry in existing):
        logger.info(f"Photo '{path}' already exists; removing it before upload.")
        await delete_object(path)

    return await put_object(path, compressed.data, compressed.content_type, overwrite=False)


async def save_profile(form: ProfileForm, selected: SelectedFile) -> ProfileRecord:
    """Stores the photo, then upserts the profile row pointing at it."""
    stored = await upload_profile_photo(selected)
    # A failed upsert leaves the photo in place
    record = form.to_record(photo_url=stored.path)
    saved = await crud.upsert_profile(record)
    logger.info(f"[{record.email}] Profile saved with photo '{stored.path}'.")
    return saved
