from __future__ import annotations

from edge_preview.sdk import FormPart, MultipartForm


def test_encode_layout() -> None:
    form = MultipartForm(boundary="XYZ")
    form.add(FormPart.json("metadata", {"body_part": "script"}))
    form.add(FormPart("script", b"code();", "application/javascript", filename="worker.js"))

    assert form.content_type == "multipart/form-data; boundary=XYZ"
    assert form.encode() == (
        b"--XYZ\r\n"
        b'Content-Disposition: form-data; name="metadata"\r\n'
        b"Content-Type: application/json\r\n\r\n"
        b'{"body_part": "script"}\r\n'
        b"--XYZ\r\n"
        b'Content-Disposition: form-data; name="script"; filename="worker.js"\r\n'
        b"Content-Type: application/javascript\r\n\r\n"
        b"code();\r\n"
        b"--XYZ--\r\n"
    )


def test_lookup_and_random_boundary() -> None:
    first, second = MultipartForm(), MultipartForm()
    assert first.boundary != second.boundary
    first.add(FormPart("a", b"1"))
    assert first.names() == ["a"]
    assert first.get("a").content == b"1"
    assert first.get("missing") is None
