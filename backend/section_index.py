from normalizer import title_key_for
from time_model import blocks_for, coerce_flag, earliest_start


def _seats(section: dict) -> float:
    raw = section.get("seatsAvailable")
    if raw is None or isinstance(raw, bool):
        return -1
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return -1
    return value if value == value else -1  # NaN -> missing


def candidate_rank(section: dict) -> tuple:
    """
    Search order for sections of one title:
      1. open before closed
      2. more seats available first (missing counts as -1)
      3. earliest meeting start first (no meetings sorts last)
    """
    return (
        0 if coerce_flag(section.get("openSection")) else 1,
        -_seats(section),
        earliest_start(blocks_for(section)),
    )


def rank_candidates(sections: list[dict]) -> list[dict]:
    # sorted() is stable, so full ties keep snapshot order.
    return sorted(sections, key=candidate_rank)


def build_title_index(sections: list[dict], include_closed: bool = False) -> dict:
    """
    Group a section snapshot by title key.

    Returns:
      {
        "titles": ["CSC1201 - Programming I", ...],         # sorted
        "candidates": {"CSC1201 - Programming I": [sec, ...]}  # ranked
      }
    Closed sections are left out unless include_closed is set.
    """
    grouped: dict[str, list[dict]] = {}
    for section in sections or []:
        if not include_closed and not coerce_flag(section.get("openSection")):
            continue
        grouped.setdefault(title_key_for(section), []).append(section)

    candidates = {title: rank_candidates(secs) for title, secs in grouped.items()}
    return {
        "titles": sorted(candidates),
        "candidates": candidates,
    }


def title_summaries(title_index: dict, query: str = "") -> list[dict]:
    """Known titles (optionally filtered by substring) with candidate counts."""
    q = (query or "").strip().lower()
    out = []
    for title in title_index["titles"]:
        if q and q not in title.lower():
            continue
        sections = title_index["candidates"].get(title, [])
        out.append({
            "title": title,
            "count": len(sections),
            "any_closed": any(not coerce_flag(s.get("openSection")) for s in sections),
        })
    return out
