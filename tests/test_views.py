import pytest
from unittest.mock import patch, AsyncMock

from core.models import ProfileRecord, FormState, SelectedFile
from services.storage_ui.app.views import (
    StoragePage, StorageView, FETCH_ERROR_MESSAGE, render_landing, render_profile_card,
)
from fakes import FakeStorageError, postgrest_error

BASE = "https://demo.supabase.co/storage/v1/object/public/storage"


@pytest.mark.asyncio
async def test_refresh_replaces_list_wholesale(fake_supabase):
    view = StorageView()
    view.profiles = [ProfileRecord(email="stale@x.com")]
    fake_supabase.rows = {"jane@x.com": {"account_name": "Jane Doe", "email": "jane@x.com"}}
    fake_supabase.objects["cloud/report.pdf"] = {"data": b"%PDF", "options": {}}

    await view.refresh()

    assert [p.email for p in view.profiles] == ["jane@x.com"]
    assert [f["name"] for f in view.files] == ["report.pdf"]
    assert view.loading is False and view.error is None

def test_render_links_uploaded_files_under_cloud_prefix():
    view = StorageView()
    view.files = [{"name": "report.pdf", "id": "1"}]
    assert f'href="{BASE}/cloud/report.pdf"' in view.render()

@pytest.mark.asyncio
async def test_refresh_failure_sets_terminal_error(fake_supabase):
    fake_supabase.fail("select", postgrest_error("timeout"))
    view = StorageView()

    await view.refresh()

    assert view.error == FETCH_ERROR_MESSAGE
    assert view.loading is False
    assert fake_supabase.operations == ["select"]
    assert FETCH_ERROR_MESSAGE in view.render()

@pytest.mark.asyncio
async def test_file_listing_failure_does_not_hide_profiles(fake_supabase):
    fake_supabase.rows = {"jane@x.com": {"account_name": "Jane", "email": "jane@x.com"}}
    fake_supabase.fail("list", FakeStorageError("bucket not found"))
    view = StorageView()

    await view.refresh()

    assert view.error is None
    assert len(view.profiles) == 1 and view.files == []

def test_render_shows_loading_state():
    view = StorageView()
    view.loading = True
    assert "Loading users..." in view.render()

def test_card_renders_photo_and_optional_fields():
    card = render_profile_card(ProfileRecord(
        account_name="Jane Doe", email="jane@x.com", contact_number="12345",
        gender="Female", country="USA", photo_url="profile_photos/jane_doe.jpg",
    ))
    assert f'src="{BASE}/profile_photos/jane_doe.jpg"' in card
    assert "Jane Doe" in card and "jane@x.com" in card and "12345" in card
    assert "Gender:</span> Female" in card
    assert "Country:</span> USA" in card

def test_card_omits_missing_photo_gender_and_country():
    card = render_profile_card(ProfileRecord(account_name="John", email="john@x.com", contact_number="1"))
    assert "<img" not in card
    assert "Gender:" not in card
    assert "Country:" not in card

def test_card_escapes_user_values():
    card = render_profile_card(ProfileRecord(account_name="<script>alert(1)</script>", email="a@x.com"))
    assert "<script>" not in card
    assert "&lt;script&gt;" in card

def test_landing_links_to_storage():
    html = render_landing("/storage")
    assert 'href="/storage"' in html
    assert "View Cloud Storage" in html
    assert "<button" not in html

@pytest.mark.asyncio
async def test_page_controls_refresh_the_shared_view():
    page = StoragePage()
    page.file_upload.open()
    page.file_upload.select_file(SelectedFile(filename="a.txt", content_type="text/plain", data=b"a"))
    with patch("services.storage_ui.app.forms.upload_generic_file", new_callable=AsyncMock), \
         patch("services.storage_ui.app.views.crud.list_profiles", new_callable=AsyncMock) as mock_list, \
         patch("services.storage_ui.app.views.list_objects", new_callable=AsyncMock) as mock_objects:
        mock_list.return_value = [ProfileRecord(email="new@x.com")]
        mock_objects.return_value = []
        assert await page.file_upload.submit() is True

    assert [p.email for p in page.view.profiles] == ["new@x.com"]
    assert page.file_upload.state is FormState.CLOSED
