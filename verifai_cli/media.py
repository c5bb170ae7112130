import io
import logging
import mimetypes
import zipfile
from pathlib import Path

import cv2
import docx
import fitz  # PyMuPDF
from docx.opc.exceptions import PackageNotFoundError

from verifai_cli.config import MAX_DOCUMENT_BYTES, MAX_IMAGE_BYTES, MAX_VIDEO_BYTES

log = logging.getLogger(__name__)

IMAGE_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png",
               ".gif": "image/gif", ".webp": "image/webp"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v"}
TEXT_EXTENSIONS = {".txt", ".md", ".rtf"}
DOCUMENT_EXTENSIONS = TEXT_EXTENSIONS | {".pdf", ".docx", ".doc"}

SIZE_LIMITS = {
    "image": MAX_IMAGE_BYTES,
    "video": MAX_VIDEO_BYTES,
    "document": MAX_DOCUMENT_BYTES,
}


def detect_content_type(path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in IMAGE_TYPES:
        return "image"
    if suffix in VIDEO_EXTENSIONS:
        return "video"
    if suffix in DOCUMENT_EXTENSIONS:
        return "document"
    guessed, _ = mimetypes.guess_type(str(path))
    if guessed and guessed.startswith("image/"):
        return "image"
    if guessed and guessed.startswith("video/"):
        return "video"
    return "document"


def check_size(path, content_type: str):
    """Returns an error message when the file is missing or over its size limit."""
    p = Path(path)
    if not p.is_file():
        return f"No se encontró el archivo '{path}'."
    limit = SIZE_LIMITS[content_type]
    if p.stat().st_size > limit:
        return f"El archivo es demasiado grande. Máximo {limit // (1024 * 1024)}MB."
    return None


class ExtractionError(Exception):
    """Raised when no text can be read from a document; the message is user-facing."""


def extract_document_text(path) -> str:
    p = Path(path)
    suffix = p.suffix.lower()

    if suffix in TEXT_EXTENSIONS:
        return p.read_text(encoding="utf-8", errors="replace")

    if suffix == ".pdf":
        try:
            with fitz.open(p) as pdf:
                text = "\n".join(page.get_text() for page in pdf)
        except (RuntimeError, ValueError) as e:
            log.error("PDF extraction failed for %s: %s", p.name, e)
            raise ExtractionError(f"[PDF: {p.name}] - Error al extraer texto del PDF.") from e
        if not text.strip():
            raise ExtractionError(f"[PDF: {p.name}] - No se pudo extraer texto del PDF.")
        return text.strip()

    if suffix == ".docx":
        try:
            document = docx.Document(io.BytesIO(p.read_bytes()))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, OSError) as e:
            log.error("Word extraction failed for %s: %s", p.name, e)
            raise ExtractionError(f"[Word: {p.name}] - Error al extraer texto del documento Word.") from e
        text = "\n".join(para.text for para in document.paragraphs)
        if not text.strip():
            raise ExtractionError(f"[Word: {p.name}] - No se pudo extraer texto del documento Word.")
        return text.strip()

    if suffix == ".doc":
        raise ExtractionError(f"[Word (.doc): {p.name}] - Los archivos .doc no son compatibles. Convierta a .docx.")

    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"[Archivo: {p.name}] - No se pudo extraer el contenido del archivo.") from e


def read_image(path):
    p = Path(path)
    media_type = IMAGE_TYPES.get(p.suffix.lower()) or mimetypes.guess_type(str(p))[0] or "image/jpeg"
    return p.read_bytes(), media_type


def extract_keyframes(video_path, frame_interval: int = 30, max_frames: int = 8) -> list:
    """One JPEG-encoded frame every `frame_interval` frames, at most `max_frames`."""
    capture = cv2.VideoCapture(str(video_path))
    count, frames = 0, []
    try:
        while capture.isOpened() and len(frames) < max_frames:
            success, frame = capture.read()
            if not success:
                break
            if count % frame_interval == 0:
                ok, buffer = cv2.imencode(".jpg", frame)
                if ok:
                    frames.append(buffer.tobytes())
            count += 1
    finally:
        capture.release()
    return frames
