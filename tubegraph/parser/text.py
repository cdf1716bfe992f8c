"""
Formatted text value objects.

Text fields arrive either as ``{"simpleText": "..."}`` or as a list of
runs ``{"runs": [{"text": "..."}, ...]}``. They are values, not nodes:
they carry no discriminator and are never indexed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TextRun:
    """One styled run of a Text."""

    text: str
    bold: bool = False
    italics: bool = False
    endpoint_payload: dict[str, Any] | None = None

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> TextRun:
        endpoint = data.get("navigationEndpoint")
        return cls(
            text=data.get("text", ""),
            bold=bool(data.get("bold", False)),
            italics=bool(data.get("italics", False)),
            endpoint_payload=dict(endpoint) if isinstance(endpoint, dict) else None,
        )


@dataclass(frozen=True, slots=True)
class Text:
    """Rendered text with its runs."""

    text: str | None = None
    runs: tuple[TextRun, ...] = ()

    @classmethod
    def from_raw(cls, data: Any) -> Text:
        """
        Parse any of the accepted text shapes.

        Plain strings and None are accepted as well; None yields an empty Text.
        """
        if data is None:
            return cls()
        if isinstance(data, str):
            return cls(text=data, runs=(TextRun(text=data),))
        if "simpleText" in data:
            return cls(text=data["simpleText"], runs=(TextRun(text=data["simpleText"]),))
        if "runs" in data:
            runs = tuple(TextRun.from_raw(run) for run in data["runs"])
            return cls(text="".join(run.text for run in runs), runs=runs)
        if "content" in data:
            return cls(text=data["content"], runs=(TextRun(text=data["content"]),))
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.text

    def __str__(self) -> str:
        return self.text or ""
