"""Fenced structured-data block extraction for flow documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

__all__ = ["FencedBlock", "extract_blocks", "looks_like_bare_json"]

_FENCE_RE = re.compile(
    r"```(?P<lang>[A-Za-z0-9_+-]*)[ \t]*\r?\n(?P<body>.*?)\r?\n[ \t]*```",
    re.DOTALL,
)


@dataclass(frozen=True)
class FencedBlock:
    body: str
    language: str
    # 1-based line of the first body line inside the document
    line: int


def _is_structured(language: str, body: str) -> bool:
    if language.lower() == "json":
        return True
    return language == "" and body.lstrip().startswith("{")


def extract_blocks(document: str) -> List[FencedBlock]:
    """Return every fenced JSON block in document order."""

    blocks: List[FencedBlock] = []
    for match in _FENCE_RE.finditer(document):
        language = match.group("lang") or ""
        body = match.group("body")
        if not _is_structured(language, body):
            continue
        line = document.count("\n", 0, match.start("body")) + 1
        blocks.append(FencedBlock(body=body, language=language.lower(), line=line))
    return blocks


def looks_like_bare_json(document: str) -> bool:
    return document.lstrip().startswith("{")
