import base64
import os
import pytest
from autoprotect.utils.files import (
    InvalidUpload,
    decode_base64_payload,
    guess_document_type,
    is_pdf,
    sanitize_file_name,
    save_policy_file,
    to_data_url,
)
from autoprotect.utils.html import html_to_text, sanitize_html
from autoprotect.utils.validators import normalize_email, optional_text, split_recipients, split_tags


@pytest.mark.unit
class TestValidators:

    def test_normalize_email(self):
        assert normalize_email("  Jane@Example.COM ") == "jane@example.com"
        assert normalize_email("   ") is None
        assert normalize_email(None) is None
        with pytest.raises(ValueError):
            normalize_email("not-an-email")

    def test_optional_text(self):
        assert optional_text("  hi ") == "hi"
        assert optional_text("   ") is None

    def test_split_recipients(self):
        assert split_recipients("a@example.com, b@example.com,") == ["a@example.com", "b@example.com"]
        with pytest.raises(ValueError):
            split_recipients(" , ")
        with pytest.raises(ValueError):
            split_recipients("a@example.com, nope")

    def test_split_tags(self):
        assert split_tags("vip, hot ,vip,,") == ["vip", "hot"]
        assert split_tags(["a", " b ", "a"]) == ["a", "b"]
        assert split_tags(None) == []


@pytest.mark.unit
class TestFiles:

    def test_sanitize_file_name(self):
        assert sanitize_file_name("../../etc/passwd") == "passwd"
        assert sanitize_file_name("my contract (final).pdf") == "my_contract__final_.pdf"
        assert sanitize_file_name("") == "document"

    def test_decode_data_url(self):
        encoded = base64.b64encode(b"%PDF-1.7").decode()
        content, mime, data = decode_base64_payload(f"data:application/pdf;base64,{encoded}")

        assert content == b"%PDF-1.7"
        assert mime == "application/pdf"
        assert data == encoded
        assert is_pdf(content)

    def test_decode_raw_base64_keeps_declared_type(self):
        content, mime, _ = decode_base64_payload(base64.b64encode(b"abc").decode(), "image/png")
        assert content == b"abc"
        assert mime == "image/png"

    @pytest.mark.parametrize("payload", ["not base64!", ""])
    def test_decode_rejects_bad_payloads(self, payload):
        with pytest.raises(InvalidUpload):
            decode_base64_payload(payload)

    @pytest.mark.parametrize("file_name,mime,expected", [
        ("photo.bin", "image/jpg", "image/jpeg"),
        ("photo.JPEG", None, "image/jpeg"),
        ("scan.pdf", None, "application/pdf"),
        ("invoice.pdf", "application/x-msdownload", None),
        ("IMG_0001.heic", None, "image/heic"),
        ("notes.txt", "text/plain", None),
    ])
    def test_guess_document_type(self, file_name, mime, expected):
        assert guess_document_type(file_name, mime) == expected

    def test_to_data_url(self):
        assert to_data_url(None, "YWJj") == "data:application/octet-stream;base64,YWJj"

    def test_save_policy_file(self):
        stored_name, path = save_policy_file(5, "Proof of insurance.pdf", b"data")

        assert stored_name.endswith("_Proof_of_insurance.pdf")
        assert os.path.basename(os.path.dirname(path)) == "5"
        with open(path, "rb") as f:
            assert f.read() == b"data"


@pytest.mark.unit
class TestHtml:

    def test_sanitize_html(self):
        cleaned = sanitize_html('<div onmouseover="x()"><script>alert(1)</script><a href="JavaScript:x()">go</a></div>')
        assert cleaned == "<div><a>go</a></div>"

    def test_sanitize_embedded_content(self):
        cleaned = sanitize_html(
            '<p>Hi<iframe src="https://evil.example"></iframe><object data="x.swf"></object>'
            '<img src="data:image/svg+xml;base64,PHN2Zz4="><a href=" https://bhautoprotect.com">ok</a><embed src="x.swf"/></p>'
        )
        assert cleaned == '<p>Hi<img/><a href=" https://bhautoprotect.com">ok</a></p>'

    def test_sanitize_none(self):
        assert sanitize_html(None) == ""

    def test_html_to_text(self):
        html = "<h1>Title</h1><p>Line one<br>Line two</p><ul><li>First</li><li>Second</li></ul>"
        assert html_to_text(html) == "Title\nLine one\nLine two\n\n• First\n• Second"
