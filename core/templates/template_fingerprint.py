"""Template fingerprint generation that is insensitive to whitespace layout."""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import asdict
from pathlib import Path

from core.render.preview import decode_brace_entities
from core.templates.models import FingerprintPayload
from core.templates.placeholder_parser import parse_template_placeholders

_WHITESPACE_RE = re.compile(r"\s+")


def compute_template_fingerprint(html: str) -> str:
    """Compute a canonical SHA256 fingerprint for template HTML.

    Token spans are taken from the whitespace-normalized text so that reflowed exports of
    the same template produce the same fingerprint.
    """

    normalized = _normalize_whitespace(decode_brace_entities(html))
    parse_result = parse_template_placeholders(normalized, strict=False)

    payload = FingerprintPayload(
        text=normalized,
        occurrences=sorted(
            parse_result.occurrences,
            key=lambda item: (item.start, item.end, item.field_name),
        ),
        unsupported=sorted(
            parse_result.unsupported,
            key=lambda item: (item.start, item.end, item.kind, item.text),
        ),
    )

    serialized = json.dumps(asdict(payload), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def compute_template_fingerprint_from_path(path: Path) -> str:
    """Read an HTML template file and compute its fingerprint."""

    return compute_template_fingerprint(path.read_text(encoding="utf-8"))


def _normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
