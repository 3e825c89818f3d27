"""multipart/form-data encoding for script uploads."""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class FormPart:
    name: str
    content: bytes
    content_type: str = "text/plain"
    filename: str | None = None

    @classmethod
    def json(cls, name: str, payload: Any, *, filename: str | None = None) -> FormPart:
        return cls(
            name=name,
            content=json.dumps(payload).encode("utf-8"),
            content_type="application/json",
            filename=filename,
        )


class MultipartForm:
    """Ordered collection of parts rendered with a random boundary."""

    def __init__(self, boundary: str | None = None) -> None:
        self.boundary = boundary or f"----edge-preview-{secrets.token_hex(12)}"
        self.parts: list[FormPart] = []

    def add(self, part: FormPart) -> MultipartForm:
        self.parts.append(part)
        return self

    def names(self) -> list[str]:
        return [part.name for part in self.parts]

    def get(self, name: str) -> FormPart | None:
        for part in self.parts:
            if part.name == name:
                return part
        return None

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def encode(self) -> bytes:
        chunks: list[bytes] = []
        for part in self.parts:
            disposition = f'form-data; name="{part.name}"'
            if part.filename is not None:
                disposition += f'; filename="{part.filename}"'
            chunks.append(f"--{self.boundary}\r\n".encode())
            chunks.append(f"Content-Disposition: {disposition}\r\n".encode())
            chunks.append(f"Content-Type: {part.content_type}\r\n\r\n".encode())
            chunks.append(part.content)
            chunks.append(b"\r\n")
        chunks.append(f"--{self.boundary}--\r\n".encode())
        return b"".join(chunks)


__all__ = ["FormPart", "MultipartForm"]
