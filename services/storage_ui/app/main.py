# services/storage_ui/app/main.py

import gradio as gr
import fastapi
from fastapi.responses import HTMLResponse
import asyncio
from contextlib import asynccontextmanager
from html import escape
from typing import Optional

from core.config import settings, logger as core_logger, check_required_settings
from core.models import COUNTRY_OPTIONS, Gender, SelectedFile
from .forms import UploadControl, PROFILE_FIELDS
from .views import StoragePage, render_landing

# Setup logger
logger = core_logger.getChild("StorageUI")

STORAGE_PATH = "/storage"

MODAL_CSS = """
.upload-modal { position: fixed !important; top: 50%; left: 50%; transform: translate(-50%, -50%);
  z-index: 1000; width: 26rem; max-width: 95vw; background: white; padding: 1.5rem;
  border-radius: 0.5rem; box-shadow: 0 10px 40px rgba(0, 0, 0, 0.35); }
.hidden-control { display: none !important; }
.banner { padding: 0.5rem 0.75rem; border-radius: 0.25rem; margin-bottom: 0.5rem; }
.banner.error { border: 1px solid #ef4444; color: #b91c1c; }
.banner.success { border: 1px solid #22c55e; color: #15803d; }
.user-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(15rem, 1fr)); gap: 1.5rem; }
.user-card { padding: 1rem; border-radius: 0.5rem; box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15); }
.user-photo { width: 100%; aspect-ratio: 1; object-fit: cover; border-radius: 0.75rem; }
"""

# A pointer-down outside an open modal clicks that modal's hidden dismiss control
OUTSIDE_CLICK_JS = """
<script>
document.addEventListener("mousedown", (event) => {
  for (const id of ["profile-modal", "file-modal"]) {
    const modal = document.getElementById(id);
    if (!modal || modal.offsetParent === null || modal.contains(event.target)) continue;
    const dismiss = document.getElementById(id + "-dismiss");
    if (dismiss) dismiss.click();
  }
});
</script>
"""


def _page(page: Optional[StoragePage]) -> StoragePage:
    return page if page is not None else StoragePage()


def render_banner(control: UploadControl) -> str:
    if not control.message:
        return ""
    kind = "error" if control.is_error else "success"
    return f'<div class="banner {kind}">{escape(control.message)}</div>'


def _submit_button(control: UploadControl, label: str):
    return gr.update(interactive=not control.loading, value="Uploading..." if control.loading else label)


async def _read_selection(file_path: Optional[str]) -> Optional[SelectedFile]:
    if not file_path:
        return None
    return await asyncio.to_thread(SelectedFile.from_path, file_path)


# --- Storage View ---

async def load_storage(page: Optional[StoragePage]):
    """Fetches the profile list on page load, showing a loading frame first."""
    page = _page(page)
    page.view.loading = True
    yield page, page.view.render()
    await page.view.refresh()
    yield page, page.view.render()


# --- Profile Upload Control ---

PROFILE_SUBMIT_LABEL = "Upload Photo"

def _profile_outputs(page: StoragePage):
    control = page.profile_upload
    if control.is_visible:
        field_updates = [gr.update() for _ in PROFILE_FIELDS] + [gr.update()]
    else:
        field_updates = [gr.update(value="") for _ in PROFILE_FIELDS[:3]] + [gr.update(value=None)] * 3
    return (page, gr.update(visible=control.is_visible), render_banner(control),
            _submit_button(control, PROFILE_SUBMIT_LABEL), *field_updates)


def open_profile_form(page):
    page = _page(page); page.profile_upload.open()
    return _profile_outputs(page)

def close_profile_form(page):
    page = _page(page); page.profile_upload.close()
    return _profile_outputs(page)

def mark_profile_submitting(page):
    page = _page(page)
    return page, gr.update(interactive=False, value="Uploading...")

async def submit_profile_form(page, account_name, email, contact_number, gender, country, photo_path):
    page = _page(page)
    control = page.profile_upload
    if not control.loading:
        for name, value in zip(PROFILE_FIELDS, (account_name, email, contact_number, gender, country)):
            control.update_field(name, value)
        control.select_file(await _read_selection(photo_path))
        await control.submit()
    return (*_profile_outputs(page), page.view.render())

async def finish_profile_success(page):
    """Leaves the success banner up for a moment, then closes the modal."""
    page = _page(page)
    control = page.profile_upload
    if control.message and not control.is_error and control.is_visible:
        await asyncio.sleep(settings.SUCCESS_CLOSE_DELAY_SECONDS)
        control.finish_success()
    return _profile_outputs(page)


# --- Generic File Upload Control ---

FILE_SUBMIT_LABEL = "Upload File"

def _file_outputs(page: StoragePage):
    control = page.file_upload
    file_update = gr.update() if control.is_visible else gr.update(value=None)
    return (page, gr.update(visible=control.is_visible), render_banner(control),
            _submit_button(control, FILE_SUBMIT_LABEL), file_update)

def open_file_form(page):
    page = _page(page); page.file_upload.open()
    return _file_outputs(page)

def close_file_form(page):
    page = _page(page); page.file_upload.close()
    return _file_outputs(page)

def mark_file_submitting(page):
    page = _page(page)
    return page, gr.update(interactive=False, value="Uploading...")

async def submit_file_form(page, file_path):
    page = _page(page)
    control = page.file_upload
    if not control.loading:
        control.select_file(await _read_selection(file_path))
        if await control.submit():
            gr.Info(control.message)
    return (*_file_outputs(page), page.view.render())


# --- Build Gradio Interface ---
with gr.Blocks(theme=gr.themes.Soft(), title="Cloud Storage", css=MODAL_CSS, head=OUTSIDE_CLICK_JS) as demo:
    page_state = gr.State(None) # StoragePage, created on first event of each session

    with gr.Row():
        gr.Markdown("# Cloud Storage")
        add_profile_button = gr.Button("Add User Information", variant="primary", scale=0)
        add_file_button = gr.Button("Upload File", scale=0)
    users_html = gr.HTML("")

    with gr.Column(visible=False, elem_id="profile-modal", elem_classes=["upload-modal"]) as profile_modal:
        with gr.Row():
            gr.Markdown("### Add User Information")
            profile_close = gr.Button("×", size="sm", scale=0)
        profile_dismiss = gr.Button("dismiss", elem_id="profile-modal-dismiss", elem_classes=["hidden-control"])
        profile_banner = gr.HTML("")
        account_name_input = gr.Textbox(label="Account Name", placeholder="Account Name")
        email_input = gr.Textbox(label="Email", placeholder="Email", type="email")
        contact_input = gr.Textbox(label="Contact Number", placeholder="Contact Number")
        gender_input = gr.Dropdown(label="Gender", choices=[g.value for g in Gender], value=None)
        country_input = gr.Dropdown(label="Country", choices=list(COUNTRY_OPTIONS), value=None)
        photo_input = gr.File(label="Upload Profile Photo", file_types=["image"], type="filepath")
        profile_submit = gr.Button(PROFILE_SUBMIT_LABEL, variant="primary")

    with gr.Column(visible=False, elem_id="file-modal", elem_classes=["upload-modal"]) as file_modal:
        with gr.Row():
            gr.Markdown("### Upload File")
            file_close = gr.Button("×", size="sm", scale=0)
        file_dismiss = gr.Button("dismiss", elem_id="file-modal-dismiss", elem_classes=["hidden-control"])
        file_banner = gr.HTML("")
        file_input = gr.File(label="File", file_types=["image", ".pdf", ".txt", ".docx", ".xlsx"], type="filepath")
        file_submit = gr.Button(FILE_SUBMIT_LABEL, variant="primary")

    # --- Connect UI elements to functions ---
    profile_fields = [account_name_input, email_input, contact_input, gender_input, country_input, photo_input]
    profile_outputs = [page_state, profile_modal, profile_banner, profile_submit, *profile_fields]
    file_outputs = [page_state, file_modal, file_banner, file_submit, file_input]

    demo.load(load_storage, inputs=[page_state], outputs=[page_state, users_html])

    add_profile_button.click(open_profile_form, inputs=[page_state], outputs=profile_outputs)
    profile_close.click(close_profile_form, inputs=[page_state], outputs=profile_outputs)
    profile_dismiss.click(close_profile_form, inputs=[page_state], outputs=profile_outputs)
    profile_submit.click(
        mark_profile_submitting, inputs=[page_state], outputs=[page_state, profile_submit]
    ).then(
        submit_profile_form, inputs=[page_state, *profile_fields], outputs=[*profile_outputs, users_html]
    ).then(
        finish_profile_success, inputs=[page_state], outputs=profile_outputs
    )

    add_file_button.click(open_file_form, inputs=[page_state], outputs=file_outputs)
    file_close.click(close_file_form, inputs=[page_state], outputs=file_outputs)
    file_dismiss.click(close_file_form, inputs=[page_state], outputs=file_outputs)
    file_submit.click(
        mark_file_submitting, inputs=[page_state], outputs=[page_state, file_submit]
    ).then(
        submit_file_form, inputs=[page_state, file_input], outputs=[*file_outputs, users_html]
    )


# --- FastAPI app: landing page, health probe, Gradio mounted at /storage ---
@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    check_required_settings()
    logger.info("Storage UI starting. Supabase configuration present.")
    yield
    logger.info("Storage UI shutting down.")

app = fastapi.FastAPI(title="Cloud Storage UI", lifespan=lifespan)

@app.get("/", response_class=HTMLResponse)
async def landing():
    return render_landing(STORAGE_PATH)

@app.get("/health")
async def health():
    return {"status": "ok"}

app = gr.mount_gradio_app(app, demo, path=STORAGE_PATH)
logger.info(f"Storage UI Ready. Gradio interface available at {STORAGE_PATH}")
