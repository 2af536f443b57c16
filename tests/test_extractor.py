from pathlib import Path

import pytest

from gatekeeper.services.rag import extractor
from gatekeeper.services.rag.errors import ExtractionError, SourceReadError, UnsupportedFormatError
from gatekeeper.services.rag.extractor import extract, markdown_to_text
from gatekeeper.services.rag.types import RAW_TEXT_SOURCE_ID, FileSource, TextSource


class _FakePage:
    def __init__(self, text: str | None) -> None:
        self._text = text

    def extract_text(self) -> str | None:
        return self._text


class _FakePdfReader:
    def __init__(self, stream: object) -> None:
        self.pages = [_FakePage("page one"), _FakePage(None), _FakePage("page three")]


class _MalformedPdfReader:
    def __init__(self, stream: object) -> None:
        pass

    @property
    def pages(self) -> list[_FakePage]:
        raise KeyError("/Pages")


def test_raw_text_is_returned_unchanged() -> None:
    document = extract(TextSource(data="  keep   me as-is \n"))

    assert document.text == "  keep   me as-is \n"
    assert document.source_id == RAW_TEXT_SOURCE_ID


def test_markdown_blank_lines_are_collapsed(tmp_path: Path) -> None:
    note = tmp_path / "note.md"
    note.write_text("# Title\n\n\n\nBody.", encoding="utf-8")

    document = extract(FileSource(path=str(note)))

    assert document.text == "# Title\n\nBody."
    assert document.source_id == str(note.resolve())


def test_markdown_formatting_is_stripped_but_structure_kept() -> None:
    markdown = (
        "## Notes\n\n"
        "Some **bold** and `code` with [a link](http://example.com).\n\n"
        "- first\n"
        "- second\n\n"
        "1. one\n"
        "2. two\n\n"
        "```python\n"
        "print('hi')\n"
        "```\n"
    )

    assert markdown_to_text(markdown) == (
        "## Notes\n\n"
        "Some bold and code with a link.\n\n"
        "- first\n"
        "- second\n\n"
        "1. one\n"
        "2. two\n\n"
        "print('hi')"
    )


def test_extension_dispatch_is_case_insensitive(tmp_path: Path) -> None:
    note = tmp_path / "NOTE.MD"
    note.write_text("Plain *note*.", encoding="utf-8")

    assert extract(FileSource(path=str(note))).text == "Plain note."


def test_unsupported_extension_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedFormatError, match=".exe"):
        extract(FileSource(path=str(tmp_path / "setup.exe")))


def test_missing_file_raises_read_error(tmp_path: Path) -> None:
    with pytest.raises(SourceReadError) as excinfo:
        extract(FileSource(path=str(tmp_path / "missing.md")))

    assert isinstance(excinfo.value, OSError)


def test_corrupt_pdf_raises_extraction_error(tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"this is not a pdf")

    with pytest.raises(ExtractionError, match="broken.pdf"):
        extract(FileSource(path=str(broken)))


def test_pdf_pages_are_joined(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    pdf = tmp_path / "paper.pdf"
    pdf.write_bytes(b"%PDF-1.4 placeholder")
    monkeypatch.setattr("gatekeeper.services.rag.extractor.PdfReader", _FakePdfReader)

    document = extract(FileSource(path=str(pdf)))

    assert document.text == "page one\n\n\n\npage three"
    assert document.source_id == str(pdf.resolve())


def test_registered_extractor_is_used(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(extractor, "_extractors", dict(extractor._extractors))
    extractor.register_extractor("TXT", lambda path: path.read_text(encoding="utf-8").upper())
    notes = tmp_path / "notes.txt"
    notes.write_text("hello", encoding="utf-8")

    assert ".txt" in extractor.supported_extensions()
    assert extract(FileSource(path=str(notes))).text == "HELLO"


def test_malformed_pdf_structure_raises_extraction_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    pdf = tmp_path / "truncated.pdf"
    pdf.write_bytes(b"%PDF-1.4 placeholder")
    monkeypatch.setattr("gatekeeper.services.rag.extractor.PdfReader", _MalformedPdfReader)

    with pytest.raises(ExtractionError, match="truncated.pdf"):
        extract(FileSource(path=str(pdf)))
