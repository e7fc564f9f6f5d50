import json
import os

from normalizer import normalize_code
from time_model import coerce_flag


SECTIONS_FILENAME = "sections.json"
STUDY_PLANS_FILENAME = "study_plans.json"


class DataLoadError(ValueError):
    """Top-level input could not be turned into usable records."""


class MalformedDataError(DataLoadError):
    """Input is not a list of records or a wrapper object holding one."""


class EmptyDataError(DataLoadError):
    """Input has the right shape but contains no usable records."""


def _unwrap(raw, wrapper_key: str, what: str) -> list:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        inner = raw.get(wrapper_key)
        if isinstance(inner, list):
            return inner
        if inner is None:
            return []
    raise MalformedDataError(
        f"Expected a list of {what} or an object with a '{wrapper_key}' list, "
        f"got {type(raw).__name__}."
    )


def _clean_section(rec) -> dict | None:
    if not isinstance(rec, dict):
        return None
    crn = rec.get("courseReferenceNumber")
    if crn is None or not str(crn).strip():
        return None
    section = dict(rec)
    section["courseReferenceNumber"] = str(crn).strip()
    section["openSection"] = coerce_flag(rec.get("openSection"))
    meetings = rec.get("meetingsFaculty")
    section["meetingsFaculty"] = meetings if isinstance(meetings, list) else []
    return section


def ingest_sections(raw) -> list[dict]:
    """
    Accept a bare list of section records or {"data": [...]}.

    Raises MalformedDataError for the wrong shape, EmptyDataError when no
    usable records remain. Individual bad records are dropped.
    """
    records = _unwrap(raw, "data", "sections")
    sections = []
    dropped = 0
    for rec in records:
        cleaned = _clean_section(rec)
        if cleaned is None:
            dropped += 1
            continue
        sections.append(cleaned)

    if dropped:
        print(f"[WARN] Dropped {dropped} section record(s) without a courseReferenceNumber")
    if not sections:
        raise EmptyDataError("Sections parsed, but no records found.")
    print(f"[OK] Loaded {len(sections)} sections")
    return sections


def term_number(raw) -> int:
    """Semester term as an int; None or non-numeric terms become 0."""
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return int(str(raw).strip())
    except ValueError:
        return 0


def _clean_course_entry(entry) -> dict | None:
    if not isinstance(entry, dict):
        return None
    code = normalize_code(entry.get("courseCode"))
    if not code:
        return None
    prereqs = entry.get("prerequisites") or []
    if isinstance(prereqs, str):
        prereqs = [prereqs]
    return {
        "courseCode": str(entry.get("courseCode")).strip(),
        "courseName": str(entry.get("courseName") or "").strip(),
        "prerequisites": [p for p in (normalize_code(p) for p in prereqs) if p],
    }


def _clean_plan(plan) -> dict | None:
    if not isinstance(plan, dict):
        return None
    years = []
    for yr in plan.get("yearlyCourses") or []:
        if not isinstance(yr, dict):
            continue
        semesters = []
        for sem in yr.get("semesters") or []:
            if not isinstance(sem, dict):
                continue
            courses = [c for c in map(_clean_course_entry, sem.get("courses") or []) if c]
            semesters.append({
                "term": term_number(sem.get("term")),
                "desc": str(sem.get("desc") or ""),
                "courses": courses,
            })
        years.append({"year": str(yr.get("year") or ""), "semesters": semesters})
    electives = [c for c in map(_clean_course_entry, plan.get("technicalElectives") or []) if c]
    return {
        "specialization": str(plan.get("specialization") or ""),
        "degree": str(plan.get("degree") or ""),
        "year": plan.get("year"),
        "yearlyCourses": years,
        "technicalElectives": electives,
    }


def ingest_study_plans(raw) -> list[dict]:
    """Accept a bare list of study plans or {"studyPlans": [...]}."""
    records = _unwrap(raw, "studyPlans", "study plans")
    plans = [p for p in map(_clean_plan, records) if p is not None]
    if len(plans) < len(records):
        print(f"[WARN] Dropped {len(records) - len(plans)} malformed study plan record(s)")
    if not plans:
        raise EmptyDataError("Study plan data parsed, but no study plans found.")
    print(f"[OK] Loaded {len(plans)} study plan{'s' if len(plans) > 1 else ''}")
    return plans


def _read_json(path: str):
    with open(path, encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except json.JSONDecodeError as exc:
            raise MalformedDataError(f"Could not parse JSON in {path}: {exc}") from exc


def load_sections(path: str) -> list[dict]:
    """Load a section snapshot from a JSON file. Raises on file/schema errors."""
    return ingest_sections(_read_json(path))


def load_study_plans(path: str) -> list[dict]:
    return ingest_study_plans(_read_json(path))


def load_data(data_path: str) -> dict:
    """
    Load both inputs from a data directory.

    sections.json is required. study_plans.json is optional; a missing file
    yields an empty plan list.
    """
    sections = load_sections(os.path.join(data_path, SECTIONS_FILENAME))
    plans_path = os.path.join(data_path, STUDY_PLANS_FILENAME)
    if os.path.exists(plans_path):
        study_plans = load_study_plans(plans_path)
    else:
        print(f"[INFO] No {STUDY_PLANS_FILENAME} in {data_path}; prerequisite views disabled")
        study_plans = []
    return {"sections": sections, "study_plans": study_plans}
