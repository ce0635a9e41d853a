import pytest

from core import supabase_client
from core.config import settings
from core.models import SelectedFile
from fakes import FakeSupabase, make_jpeg


@pytest.fixture(autouse=True)
def supabase_settings(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setattr(settings, "SUPABASE_KEY", "anon-key")
    monkeypatch.setattr(settings, "STORAGE_PUBLIC_BASE_URL", None)
    return settings


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(supabase_client, "_supabase_client", fake)
    return fake


@pytest.fixture
def jpeg_file():
    return SelectedFile(filename="jane doe.jpg", content_type="image/jpeg", data=make_jpeg())


@pytest.fixture
def text_file():
    return SelectedFile(filename="notes.txt", content_type="text/plain", data=b"hello")
