import pandas as pd

from normalizer import course_code_for, title_key_for
from time_model import coerce_flag


COURSE_INDEX_COLUMNS = ["course_code", "title", "total", "open"]


def sections_frame(sections: list[dict]) -> pd.DataFrame:
    """Flatten a section snapshot to one row per section."""
    rows = [
        {
            "course_code": course_code_for(s),
            "title": title_key_for(s),
            "crn": s.get("courseReferenceNumber"),
            "open": coerce_flag(s.get("openSection")),
        }
        for s in sections or []
    ]
    if not rows:
        return pd.DataFrame(columns=["course_code", "title", "crn", "open"])
    df = pd.DataFrame(rows)
    return df[df["course_code"].notna()]


def build_course_index(sections: list[dict]) -> dict[str, dict]:
    """
    Map each course code to its catalog title and section counts.

    Returns: {"CSC1201": {"title": "CSC1201 - Programming I", "total": 3, "open": 2}}

    Title is taken from the last section seen for that code.
    """
    df = sections_frame(sections)
    if len(df) == 0:
        return {}
    grouped = df.groupby("course_code", sort=True).agg(
        title=("title", "last"),
        total=("crn", "size"),
        open=("open", "sum"),
    )
    return {
        code: {"title": str(row["title"]), "total": int(row["total"]), "open": int(row["open"])}
        for code, row in grouped.iterrows()
    }


def course_index_frame(course_index: dict[str, dict]) -> pd.DataFrame:
    if not course_index:
        return pd.DataFrame(columns=COURSE_INDEX_COLUMNS)
    return pd.DataFrame(
        [{"course_code": code, **info} for code, info in course_index.items()],
        columns=COURSE_INDEX_COLUMNS,
    )


def is_offered(code: str, course_index: dict[str, dict]) -> bool:
    return code in course_index


def is_selectable(code: str, course_index: dict[str, dict], candidates: dict[str, list]) -> bool:
    """Offered and has at least one candidate under the current open/closed filter."""
    info = course_index.get(code)
    if not info:
        return False
    return len(candidates.get(info["title"], [])) > 0
