"""Parse sectioned advisory completions into recommendation bundles."""

from __future__ import annotations

from typing import Literal

from app.schemas.recommendation import Provenance, RecommendationBundle
from app.services.prompt_templates import BULLET, SECTION_HEADERS

Section = Literal["essentials", "footwear", "accessories", "tip"]


def parse_clothing_response(raw_text: str, *, provenance: Provenance = "advisory") -> RecommendationBundle:
    """Read ESSENTIALS/FOOTWEAR/ACCESSORIES/TIP sections from ``raw_text``.

    Bullets outside a section are dropped. TIP keeps only the last bullet.
    Missing sections come back empty; deciding whether that is acceptable is
    up to the caller.
    """

    sections: dict[str, list[str]] = {"essentials": [], "footwear": [], "accessories": []}
    tip = ""
    current: Section | None = None

    text = (raw_text or "").strip()
    for line in text.splitlines():
        stripped = line.strip()
        header = _match_header(stripped)
        if header is not None:
            current = header
            continue
        if current is None or not stripped.startswith(BULLET):
            continue
        item = stripped[len(BULLET):].strip()
        if current == "tip":
            tip = item
        else:
            sections[current].append(item)

    return RecommendationBundle(
        essentials=sections["essentials"],
        footwear=sections["footwear"],
        accessories=sections["accessories"],
        tip=tip,
        provenance=provenance,
        raw_response=text,
    )


def _match_header(line: str) -> Section | None:
    for header, section in SECTION_HEADERS.items():
        if header in line:
            return section  # type: ignore[return-value]
    return None


__all__ = ["parse_clothing_response"]
