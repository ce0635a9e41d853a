# services/storage_ui/app/forms.py
import re
from typing import Awaitable, Callable, Optional

from core.config import logger as core_logger
from core.models import (
    COUNTRY_OPTIONS, FormState, Gender, ProfileForm, SelectedFile, UploadMode,
)
from core.supabase_client import ProviderError
from .logic import save_profile, upload_generic_file
from .processing import CompressionError

logger = core_logger.getChild("StorageUI").getChild("Forms")

EMAIL_PATTERN = re.compile(r"^[\w.-]+@[\w.-]+\.[a-zA-Z]{2,6}$", re.ASCII)
DIGITS_PATTERN = re.compile(r"[0-9]+")

PROFILE_FIELDS = tuple(ProfileForm.model_fields)

# Banner prefix for each provider step of a submission
ERROR_PREFIXES = {
    "list": "Error checking for existing file: ",
    "delete": "Error removing existing file: ",
    "upload": "Error uploading file: ",
    "upsert": "Error saving profile information: ",
}

MSG_IN_PROGRESS = "An upload is already in progress."
MSG_NO_FILE = "Please select a file to upload!"
MSG_FILE_UPLOADED = "File uploaded successfully!"
MSG_PROFILE_UPLOADED = "Profile Uploaded!"


class FormValidationError(ValueError):
    """Client-side validation failed; the message is shown to the user as-is."""


def validate_profile_form(form: ProfileForm, selected: Optional[SelectedFile]) -> None:
    """Raises FormValidationError for the first failing check. Makes no network calls."""
    values = {name: getattr(form, name).strip() for name in PROFILE_FIELDS}
    if not all(values.values()):
        raise FormValidationError("Please fill in all the fields.")
    if not EMAIL_PATTERN.fullmatch(values["email"]):
        raise FormValidationError("Please enter a valid email address.")
    if not DIGITS_PATTERN.fullmatch(values["contact_number"]):
        raise FormValidationError("Contact number should contain only digits.")
    if values["gender"] not in {g.value for g in Gender}:
        raise FormValidationError("Please select a valid gender.")
    if values["country"] not in COUNTRY_OPTIONS:
        raise FormValidationError("Please select a valid country.")
    if selected is None:
        raise FormValidationError("Please select a profile photo.")
    if not selected.is_image:
        raise FormValidationError("The selected file must be an image.")


class UploadControl:
    """
    Modal upload form, either a plain file upload or a profile with photo.

    States: closed -> open -> submitting -> closed (success) or open (error).
    ``on_uploaded`` is awaited after every successful submission so the owner
    can refresh whatever it displays.
    """

    def __init__(self, mode: UploadMode, on_uploaded: Optional[Callable[[], Awaitable[None]]] = None):
        self.mode = UploadMode(mode)
        self.on_uploaded = on_uploaded
        self.state = FormState.CLOSED
        self.form = ProfileForm()
        self.selected: Optional[SelectedFile] = None
        self.message = ""
        self.is_error = False
        self._close_when_settled = False

    @property
    def loading(self) -> bool:
        return self.state is FormState.SUBMITTING

    @property
    def is_visible(self) -> bool:
        return self.state is not FormState.CLOSED and not self._close_when_settled

    def open(self) -> None:
        if self.state is FormState.CLOSED:
            self.state = FormState.OPEN
            # A closed control may still hold the last success message
            self._show("", is_error=False)

    def close(self) -> None:
        """Hides the modal and discards the form. A running submission is not cancelled."""
        if self.state is FormState.SUBMITTING:
            self._close_when_settled = True
            return
        self.state = FormState.CLOSED
        self._reset()

    def handle_pointer_down(self, inside_modal: bool) -> None:
        if not inside_modal:
            self.close()

    def select_file(self, selected: Optional[SelectedFile]) -> None:
        self.selected = selected

    def update_field(self, name: str, value: str) -> None:
        if name not in PROFILE_FIELDS:
            raise ValueError(f"Unknown profile field '{name}'")
        setattr(self.form, name, value or "")

    def finish_success(self) -> None:
        """Closes a profile form that is showing its success banner."""
        if self.state is FormState.OPEN and self.message and not self.is_error:
            self.close()

    async def submit(self) -> bool:
        if self.loading:
            logger.warning(f"[{self.mode.value}] Submit ignored: {MSG_IN_PROGRESS}")
            return False
        if self.state is FormState.CLOSED:
            logger.warning(f"[{self.mode.value}] Submit ignored: form is closed.")
            return False

        try:
            self._validate()
        except FormValidationError as e:
            logger.info(f"[{self.mode.value}] Validation failed: {e}")
            self._show(str(e), is_error=True)
            return False

        self.state = FormState.SUBMITTING
        self._show("", is_error=False)
        try:
            if self.mode is UploadMode.GENERIC:
                await upload_generic_file(self.selected)
            else:
                await save_profile(self.form, self.selected)
        except ProviderError as e:
            self._settle_failure(ERROR_PREFIXES.get(e.operation, "Error: ") + e.message)
            return False
        except CompressionError as e:
            self._settle_failure(f"Image compression failed: {e}")
            return False
        except Exception as e:
            logger.error(f"[{self.mode.value}] Unexpected error during upload: {e}", exc_info=True)
            self._settle_failure(f"An unexpected error occurred: {e}")
            return False

        if self.on_uploaded is not None:
            await self.on_uploaded()
        self._settle_success()
        return True

    def _validate(self) -> None:
        if self.mode is UploadMode.GENERIC:
            if self.selected is None:
                raise FormValidationError(MSG_NO_FILE)
        else:
            validate_profile_form(self.form, self.selected)

    def _settle_failure(self, message: str) -> None:
        logger.error(f"[{self.mode.value}] Submission failed: {message}")
        self.state = FormState.OPEN
        self._show(message, is_error=True)
        if self._close_when_settled:
            self._close_when_settled = False
            self.close()

    def _settle_success(self) -> None:
        if self.mode is UploadMode.GENERIC or self._close_when_settled:
            self._close_when_settled = False
            self.state = FormState.CLOSED
            self._reset()
            self._show(MSG_FILE_UPLOADED if self.mode is UploadMode.GENERIC else MSG_PROFILE_UPLOADED, is_error=False)
        else:
            self.state = FormState.OPEN
            self._show(MSG_PROFILE_UPLOADED, is_error=False)
        logger.info(f"[{self.mode.value}] Submission succeeded.")

    def _show(self, message: str, is_error: bool) -> None:
        self.message = message
        self.is_error = is_error

    def _reset(self) -> None:
        self.form = ProfileForm()
        self.selected = None
        self._show("", is_error=False)
