import pytest
from unittest.mock import patch, MagicMock

from core import storage
from core.config import settings, ConfigurationError
from core.supabase_client import (
    ProviderError, get_supabase_client, provider_message, reset_supabase_client,
)
from fakes import FakeStorageError


@pytest.mark.asyncio
async def test_put_object_sends_overwrite_and_cache_hints(fake_supabase):
    stored = await storage.put_object("cloud/a.txt", b"abc", "text/plain")

    assert stored.path == "cloud/a.txt" and stored.size == 3
    options = fake_supabase.objects["cloud/a.txt"]["options"]
    assert options == {"content-type": "text/plain", "cache-control": "3600", "upsert": "false"}

@pytest.mark.asyncio
async def test_put_object_can_overwrite(fake_supabase):
    await storage.put_object("cloud/a.txt", b"one", "text/plain")
    await storage.put_object("cloud/a.txt", b"two", "text/plain", overwrite=True, cache_control_seconds=60)

    assert fake_supabase.objects["cloud/a.txt"]["data"] == b"two"
    assert fake_supabase.objects["cloud/a.txt"]["options"]["cache-control"] == "60"

@pytest.mark.asyncio
async def test_list_objects_passes_search_filter(fake_supabase):
    fake_supabase.objects["profile_photos/jane.jpg"] = {"data": b"", "options": {}}
    fake_supabase.objects["profile_photos/john.jpg"] = {"data": b"", "options": {}}

    entries = await storage.list_objects("profile_photos", filename_filter="jane")

    assert [e["name"] for e in entries] == ["jane.jpg"]
    assert fake_supabase.calls == [("list", "profile_photos", "jane")]

@pytest.mark.asyncio
async def test_delete_object_failure_carries_provider_message(fake_supabase):
    fake_supabase.fail("remove", FakeStorageError("Object not found"))
    with pytest.raises(ProviderError) as exc_info:
        await storage.delete_object("cloud/missing.txt")
    assert exc_info.value.operation == "delete"
    assert exc_info.value.message == "Object not found"

def test_public_url_uses_derived_base():
    assert storage.public_url("profile_photos/jane_doe.jpg") == \
        "https://demo.supabase.co/storage/v1/object/public/storage/profile_photos/jane_doe.jpg"

def test_public_url_honours_explicit_base(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_PUBLIC_BASE_URL", "https://cdn.example.com/files/")
    assert storage.public_url("/cloud/a.txt") == "https://cdn.example.com/files/cloud/a.txt"

def test_provider_message_variants():
    assert provider_message(FakeStorageError("duplicate")) == "duplicate"
    assert provider_message(Exception({"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})) == \
        "The resource already exists"
    assert provider_message(RuntimeError("boom")) == "boom"


# --- Client handle ---

@pytest.mark.asyncio
async def test_client_is_created_once(monkeypatch):
    reset_supabase_client()
    sentinel = MagicMock()
    with patch("core.supabase_client.create_client", return_value=sentinel) as mock_create:
        first = await get_supabase_client()
        second = await get_supabase_client()
    assert first is second is sentinel
    mock_create.assert_called_once_with("https://demo.supabase.co", "anon-key")
    reset_supabase_client()

@pytest.mark.asyncio
async def test_client_requires_configuration(monkeypatch):
    reset_supabase_client()
    monkeypatch.setattr(settings, "SUPABASE_KEY", None)
    with patch("core.supabase_client.create_client") as mock_create:
        with pytest.raises(ConfigurationError):
            await get_supabase_client()
    mock_create.assert_not_called()
