"""
Display formatting shared by the API serializers.

Labels are in Spanish, the language of the user interface.
"""

from datetime import date, datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Optional, Sequence, Union


SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

WORD_MIMES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
EXCEL_MIMES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
POWERPOINT_MIMES = {
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}
ARCHIVE_MIMES = {"application/zip", "application/x-rar-compressed"}
DOCUMENT_MIMES = {"application/pdf", "text/plain"} | WORD_MIMES

MEDIA_COLLECTIONS = ("documents", "images", "videos", "audio", "spreadsheets", "presentations", "compressed")

EXTENSION_TYPE_NAMES = {
    # Images
    "png": "Imagen PNG",
    "jpg": "Imagen JPEG",
    "jpeg": "Imagen JPEG",
    "gif": "Imagen GIF",
    "bmp": "Imagen BMP",
    "svg": "Imagen SVG",
    "webp": "Imagen WEBP",
    "tiff": "Imagen TIFF",
    "tif": "Imagen TIFF",
    "ico": "Icono",
    # Documents
    "pdf": "Documento PDF",
    "doc": "Documento Word",
    "docx": "Documento Word",
    "xls": "Hoja de cálculo Excel",
    "xlsx": "Hoja de cálculo Excel",
    "ppt": "Presentación PowerPoint",
    "pptx": "Presentación PowerPoint",
    "txt": "Archivo de texto",
    "rtf": "Documento RTF",
    "odt": "Documento OpenDocument",
    "ods": "Hoja de cálculo OpenDocument",
    "odp": "Presentación OpenDocument",
    # Audio
    "mp3": "Audio MP3",
    "wav": "Audio WAV",
    "ogg": "Audio OGG",
    "flac": "Audio FLAC",
    "aac": "Audio AAC",
    "m4a": "Audio M4A",
    # Video
    "mp4": "Video MP4",
    "avi": "Video AVI",
    "mov": "Video MOV",
    "wmv": "Video WMV",
    "mkv": "Video MKV",
    "flv": "Video FLV",
    "webm": "Video WEBM",
    # Archives
    "zip": "Archivo ZIP",
    "rar": "Archivo RAR",
    "tar": "Archivo TAR",
    "7z": "Archivo 7Z",
    "gz": "Archivo GZIP",
    # Code and data
    "html": "Documento HTML",
    "htm": "Documento HTML",
    "css": "Hoja de estilos CSS",
    "js": "Script JavaScript",
    "json": "Archivo JSON",
    "xml": "Archivo XML",
    "sql": "Script SQL",
    "csv": "Archivo CSV",
    "md": "Archivo Markdown",
}

MIME_TYPE_NAMES = {
    "text/html": "Documento HTML",
    "application/xhtml+xml": "Documento HTML",
    "text/css": "Hoja de estilos CSS",
    "application/javascript": "Script JavaScript",
    "text/javascript": "Script JavaScript",
    "application/json": "Archivo JSON",
    "application/xml": "Archivo XML",
    "text/xml": "Archivo XML",
    "text/csv": "Archivo CSV",
}


# =============================================================================
# Dates
# =============================================================================

def format_date_safe(value: Union[str, date, None]) -> str:
    """
    Format a ``YYYY-MM-DD`` value as ``DD/MM/YYYY`` without timezone shifts.

    The date part is read straight from the string, so "2024-03-05T23:30:00-04:00"
    stays on the 5th. Empty input gives "", unparseable input is returned as is.
    """
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        value = value.isoformat()

    if "-" in value and len(value) >= 10:
        parts = value[:10].split("-")
        if len(parts) == 3 and all(part.isdigit() for part in parts):
            year, month, day = parts
            return f"{day}/{month}/{year}"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%d/%m/%Y")


def iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# Sizes
# =============================================================================

def human_readable_size(size: int, precision: int = 2) -> str:
    """
    Byte count with Spanish number formatting.

    >>> human_readable_size(1536)
    '1,50 KB'
    """
    size = max(int(size or 0), 0)
    power = 0
    value = float(size)
    while value >= 1024 and power < len(SIZE_UNITS) - 1:
        value /= 1024
        power += 1

    # Decimal comma, dot as thousands separator
    formatted = f"{value:,.{precision}f}".translate(str.maketrans(",.", ".,"))
    return f"{formatted} {SIZE_UNITS[power]}"


# =============================================================================
# MIME types
# =============================================================================

def extension_of(file_name: str) -> str:
    return PurePosixPath(file_name or "").suffix.lstrip(".")


def collection_for_mime(mime_type: Optional[str]) -> str:
    """Storage collection a file of ``mime_type`` belongs to."""
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return "images"
    if mime_type.startswith("video/"):
        return "videos"
    if mime_type.startswith("audio/"):
        return "audio"
    if mime_type in DOCUMENT_MIMES:
        return "documents"
    if mime_type in EXCEL_MIMES:
        return "spreadsheets"
    if mime_type in POWERPOINT_MIMES:
        return "presentations"
    if mime_type in ARCHIVE_MIMES:
        return "compressed"
    return "documents"


def type_name_for_extension(extension: Optional[str]) -> Optional[str]:
    return EXTENSION_TYPE_NAMES.get((extension or "").strip().lower())


def type_name_for_mime(mime_type: Optional[str]) -> str:
    """Descriptive label for a MIME type."""
    if not mime_type or mime_type == "application/octet-stream":
        return "Archivo Binario"

    if "/" in mime_type:
        subtype = mime_type.split("/", 1)[1].split(";", 1)[0]
        by_extension = type_name_for_extension(subtype)
        if by_extension:
            return by_extension

    major, _, subtype = mime_type.partition("/")
    if major == "image":
        return f"Imagen {subtype.upper()}"
    if major == "video":
        return f"Video {subtype.upper()}"
    if major == "audio":
        return f"Audio {subtype.upper()}"
    if mime_type == "application/pdf":
        return "Documento PDF"
    if mime_type in WORD_MIMES:
        return "Documento Word"
    if mime_type in EXCEL_MIMES:
        return "Hoja de cálculo Excel"
    if mime_type in POWERPOINT_MIMES:
        return "Presentación PowerPoint"
    if mime_type in ARCHIVE_MIMES:
        return "Archivo comprimido"
    if mime_type == "text/plain":
        return "Archivo de texto"
    return MIME_TYPE_NAMES.get(mime_type, f"Archivo {mime_type}")


def type_name_for_file(file_name: str, mime_type: Optional[str]) -> str:
    """Prefer the extension label, fall back to the MIME label."""
    return type_name_for_extension(extension_of(file_name)) or type_name_for_mime(mime_type)


def icon_for_mime(mime_type: Optional[str]) -> str:
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("audio/"):
        return "music"
    if mime_type in DOCUMENT_MIMES:
        return "file-text"
    if mime_type in EXCEL_MIMES:
        return "file-spreadsheet"
    if mime_type in POWERPOINT_MIMES:
        return "file-presentation"
    if mime_type in ARCHIVE_MIMES:
        return "file-archive"
    return "file"


# =============================================================================
# Names & placeholders
# =============================================================================

def full_name(individual: Any) -> str:
    """First, middle, last and second last name, skipping blanks."""
    parts = (
        getattr(individual, "first_name", None),
        getattr(individual, "middle_name", None),
        getattr(individual, "last_name", None),
        getattr(individual, "second_last_name", None),
    )
    return " ".join(part for part in parts if part)


def entity_display_name(entity: Any) -> str:
    """``Business (Trade)`` or just the business name."""
    trade_name = getattr(entity, "trade_name", None)
    if trade_name:
        return f"{entity.business_name} ({trade_name})"
    return entity.business_name


def placeholder(rows: Optional[Sequence], text: str = "No hay registros") -> Optional[str]:
    """Text to show in place of an empty list, or None when there are rows."""
    return None if rows else text
