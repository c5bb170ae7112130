import docx
import fitz
import pytest

from verifai_cli import media


@pytest.mark.parametrize("name,content_type", [
    ("photo.JPG", "image"),
    ("diagram.webp", "image"),
    ("clip.mp4", "video"),
    ("movie.MOV", "video"),
    ("paper.pdf", "document"),
    ("essay.docx", "document"),
    ("notes.md", "document"),
    ("scan.tiff", "image"),
    ("unknown.bin", "document"),
])
def test_detect_content_type(name, content_type):
    assert media.detect_content_type(name) == content_type


def test_size_limits(tmp_path, monkeypatch):
    path = tmp_path / "photo.png"
    path.write_bytes(b"x" * 100)
    assert media.check_size(path, "image") is None

    monkeypatch.setitem(media.SIZE_LIMITS, "image", 50)
    assert "demasiado grande" in media.check_size(path, "image")
    assert "No se encontró" in media.check_size(tmp_path / "gone.png", "image")


def test_plain_text_document(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Línea uno.\nLínea dos.", encoding="utf-8")
    assert media.extract_document_text(path) == "Línea uno.\nLínea dos."


def test_pdf_text(tmp_path):
    path = tmp_path / "paper.pdf"
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Hello from a PDF page")
    pdf.save(str(path))
    pdf.close()

    assert "Hello from a PDF page" in media.extract_document_text(path)


def test_broken_pdf_raises_extraction_error(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"%PDF-1.4 garbage")
    with pytest.raises(media.ExtractionError, match=r"^\[PDF: broken\.pdf\]"):
        media.extract_document_text(path)


def test_docx_text(tmp_path):
    path = tmp_path / "essay.docx"
    document = docx.Document()
    document.add_paragraph("First paragraph.")
    document.add_paragraph("Second paragraph.")
    document.save(str(path))

    assert media.extract_document_text(path) == "First paragraph.\nSecond paragraph."


def test_broken_docx_raises_extraction_error(tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"not a zip file")
    with pytest.raises(media.ExtractionError, match=r"^\[Word: broken\.docx\]"):
        media.extract_document_text(path)


def test_empty_docx_raises_extraction_error(tmp_path):
    path = tmp_path / "empty.docx"
    docx.Document().save(str(path))
    with pytest.raises(media.ExtractionError):
        media.extract_document_text(path)


def test_legacy_doc_raises_extraction_error(tmp_path):
    path = tmp_path / "old.doc"
    path.write_bytes(b"\xd0\xcf\x11\xe0")
    with pytest.raises(media.ExtractionError, match=r"\.doc no son compatibles"):
        media.extract_document_text(path)


def test_binary_unknown_file_raises_extraction_error(tmp_path):
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\xff\xfe\xfa\x00\x81")
    with pytest.raises(media.ExtractionError) as excinfo:
        media.extract_document_text(path)
    assert str(excinfo.value) == "[Archivo: blob.bin] - No se pudo extraer el contenido del archivo."


def test_bracketed_text_is_returned_as_content(tmp_path):
    path = tmp_path / "draft.md"
    path.write_text("[Draft] - meeting notes\nSecond line.", encoding="utf-8")
    assert media.extract_document_text(path) == "[Draft] - meeting notes\nSecond line."


def test_read_image(tmp_path):
    path = tmp_path / "photo.jpeg"
    path.write_bytes(b"\xff\xd8\xff")
    assert media.read_image(path) == (b"\xff\xd8\xff", "image/jpeg")


def test_keyframes_of_unreadable_video(tmp_path):
    assert media.extract_keyframes(tmp_path / "missing.mp4") == []
