from pathlib import PurePath
from typing import Optional, Tuple

TEXT_SUFFIXES = {".txt", ".md"}


def material_from_upload(file_name: Optional[str], content_type: Optional[str], data: bytes) -> Tuple[str, Optional[str]]:
    """Return ``(text, file_name)`` for an uploaded file.

    Plain text is decoded and used as-is. Other documents (PDF, DOCX, PPTX)
    are not parsed: the text stays empty and the file name drives the lesson.
    """
    suffix = PurePath(file_name or "").suffix.lower()
    if (content_type or "").startswith("text/plain") or suffix in TEXT_SUFFIXES:
        return data.decode("utf-8", errors="replace"), file_name
    return "", file_name


def has_material(text: Optional[str], file_name: Optional[str]) -> bool:
    return bool((text or "").strip() or (file_name or "").strip())
