# services/storage_ui/app/views.py
from html import escape
from typing import Any, Dict, List, Optional

from core.config import settings, logger as core_logger
from core.models import ProfileRecord, UploadMode
from core.storage import list_objects, public_url
from core.supabase_client import ProviderError
from core.utils import join_storage_path
from . import crud
from .forms import UploadControl

logger = core_logger.getChild("StorageUI").getChild("Views")

FETCH_ERROR_MESSAGE = "Error fetching users from Supabase."


class StorageView:
    """The fetched profile rows (and generic uploads) shown on the storage page."""

    def __init__(self):
        self.profiles: List[ProfileRecord] = []
        self.files: List[Dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None

    async def refresh(self) -> None:
        """Re-reads every profile row and replaces the current list. Failures are not retried."""
        self.loading = True
        self.error = None
        try:
            self.profiles = await crud.list_profiles()
        except ProviderError as e:
            logger.error(f"Fetching profiles failed: {e.message}")
            self.error = FETCH_ERROR_MESSAGE
            self.loading = False
            return
        try:
            entries = await list_objects(settings.GENERIC_UPLOAD_PREFIX)
            # Folder placeholders have no id
            self.files = [e for e in entries if e.get("name") and e.get("id") is not None]
        except ProviderError as e:
            logger.warning(f"Listing uploaded files failed: {e.message}")
            self.files = []
        finally:
            self.loading = False

    def render(self) -> str:
        parts = ['<div class="storage-view">']
        if self.loading:
            parts.append('<p class="status">Loading users...</p>')
        if self.error:
            parts.append(f'<p class="status error">{escape(self.error)}</p>')
        parts.append('<h2>Users:</h2>')
        parts.append('<div class="user-grid">')
        parts.extend(render_profile_card(p) for p in self.profiles)
        parts.append('</div>')
        if self.files:
            parts.append('<h2>Files:</h2><ul class="file-list">')
            for entry in self.files:
                path = join_storage_path(settings.GENERIC_UPLOAD_PREFIX, entry["name"])
                parts.append(f'<li><a href="{escape(public_url(path))}" target="_blank">{escape(entry["name"])}</a></li>')
            parts.append('</ul>')
        parts.append('</div>')
        return "".join(parts)


def render_profile_card(profile: ProfileRecord) -> str:
    lines = ['<div class="user-card">']
    photo = profile.public_photo_url(settings.public_base_url)
    if photo:
        lines.append(f'<img src="{escape(photo)}" alt="{escape(profile.account_name or "")}" class="user-photo"/>')
    lines.append(f'<h3>{escape(profile.account_name or "")}</h3>')
    lines.append(f'<p><span class="label">Email:</span> {escape(profile.email or "")}</p>')
    lines.append(f'<p><span class="label">Contact:</span> {escape(profile.contact_number or "")}</p>')
    if profile.gender:
        lines.append(f'<p><span class="label">Gender:</span> {escape(profile.gender)}</p>')
    if profile.country:
        lines.append(f'<p><span class="label">Country:</span> {escape(profile.country)}</p>')
    lines.append('</div>')
    return "".join(lines)


class StoragePage:
    """Per-session page state: the list view and its two upload controls."""

    def __init__(self):
        self.view = StorageView()
        self.profile_upload = UploadControl(UploadMode.PROFILE, on_uploaded=self.view.refresh)
        self.file_upload = UploadControl(UploadMode.GENERIC, on_uploaded=self.view.refresh)


def render_landing(storage_path: str = "/storage") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Cloud Storage</title></head>
<body style="font-family: sans-serif; text-align: center; margin-top: 5rem;">
  <p style="font-size: 1.25rem;">Welcome Back!</p>
  <h1>A simple cloud storage web application</h1>
  <a href="{escape(storage_path)}" role="button" style="display: inline-block; background: black; color: white; padding: 1rem 2rem; border-radius: 4px; text-decoration: none;">View Cloud Storage</a>
</body>
</html>"""
