# core/utils.py
"""
Core Utility Functions.

Small helpers shared by the storage helpers and the web service that are not
tied to any one provider call.
"""
import posixpath
import re

_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(filename: str) -> str:
    """Replaces every run of whitespace with a single underscore."""
    return _WHITESPACE.sub("_", filename)


def join_storage_path(prefix: str, filename: str) -> str:
    """Joins a bucket prefix and a filename into a relative object path."""
    prefix = prefix.strip("/")
    return posixpath.join(prefix, filename) if prefix else filename


def replace_extension(filename: str, extension: str) -> str:
    stem, _ = posixpath.splitext(filename)
    return f"{stem}{extension}"
