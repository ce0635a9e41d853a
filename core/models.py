# core/models.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from enum import Enum
import mimetypes
import os

# --- Option Lists ---

class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"

COUNTRY_OPTIONS = (
    "Philippines",
    "USA",
    "Canada",
    "India",
    "Australia",
    "United Kingdom",
    "Germany",
    "Singapore",
    "Indonesia",
    "Thailand",
)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadMode(str, Enum):
    """Selects what an upload control collects and where it stores the file."""
    GENERIC = "generic"
    PROFILE = "profile"


class FormState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    SUBMITTING = "submitting"


# --- Core Data Models ---

class ProfileRecord(BaseModel):
    """One row of the Profile table. Rows written by this app carry every field."""
    account_name: Optional[str] = None
    email: Optional[str] = Field(None, description="Unique key of the table")
    contact_number: Optional[str] = None
    gender: Optional[str] = None
    country: Optional[str] = None
    photo_url: Optional[str] = Field(None, description="Path of the photo relative to the bucket, not a full URL")

    class Config:
        from_attributes = True
        extra = "ignore" # Provider rows carry id/created_at columns

    def public_photo_url(self, base_url: str) -> Optional[str]:
        if not self.photo_url:
            return None
        return f"{base_url.rstrip('/')}/{self.photo_url.lstrip('/')}"

    def to_row(self) -> Dict[str, Any]:
        """Payload sent to the table upsert."""
        return self.model_dump(exclude_none=True)


class ProfileForm(BaseModel):
    """Raw field values of the profile form, exactly as typed or selected."""
    account_name: str = ""
    email: str = ""
    contact_number: str = ""
    gender: str = ""
    country: str = ""

    def to_record(self, photo_url: str) -> ProfileRecord:
        return ProfileRecord(
            account_name=self.account_name.strip(),
            email=self.email.strip(),
            contact_number=self.contact_number.strip(),
            gender=self.gender,
            country=self.country,
            photo_url=photo_url,
        )


class SelectedFile(BaseModel):
    """A file chosen in the browser, held in memory until it is uploaded."""
    filename: str
    content_type: str = DEFAULT_CONTENT_TYPE
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str, original_name: Optional[str] = None) -> "SelectedFile":
        filename = original_name or os.path.basename(path)
        content_type, _ = mimetypes.guess_type(filename)
        with open(path, "rb") as f:
            data = f.read()
        return cls(filename=filename, content_type=content_type or DEFAULT_CONTENT_TYPE, data=data)


class StoredObject(BaseModel):
    """An object written to the bucket."""
    path: str = Field(..., description="Path inside the bucket, e.g. profile_photos/jane_doe.jpg")
    size: int
    content_type: str
