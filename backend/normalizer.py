import re

WHITESPACE = re.compile(r'\s+')

# Curriculum placeholders such as "NCSxxxx Technical Elective I"
PLACEHOLDER = re.compile(r'x{4}', re.IGNORECASE)


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course code to its compact lookup key.
    Handles: 'ncs 3301', 'NCS3301', ' NCS  3301 '  ->  'NCS3301'
    Returns None for empty or missing input.
    """
    if raw is None:
        return None
    code = WHITESPACE.sub("", str(raw)).upper()
    return code or None


def course_code_for(record: dict) -> str | None:
    """Course code of a section record: subject + courseNumber, normalized."""
    subject = str(record.get("subject") or "")
    number = str(record.get("courseNumber") or "")
    return normalize_code(f"{subject}{number}")


def title_key_for(record: dict) -> str:
    """
    Title key grouping every section of one course offering.
    'CSC' + '1201' + 'Programming I'  ->  'CSC1201 - Programming I'
    """
    subject = str(record.get("subject") or "")
    number = str(record.get("courseNumber") or "")
    title = str(record.get("courseTitle") or "")
    return f"{subject}{number} - {title}".strip()


def is_placeholder_code(code: str) -> bool:
    return bool(code) and PLACEHOLDER.search(code) is not None


def normalize_input(raw_str: str, catalog_codes) -> dict:
    """
    Splits comma/newline/semicolon-separated input and normalizes each code.

    Returns:
      {
        "valid":          ["CSC1201", "MAT1101"],   # normalized + offered
        "not_in_catalog": ["CSC9999"]               # normalized but not offered
      }
    """
    if not raw_str or not str(raw_str).strip():
        return {"valid": [], "not_in_catalog": []}

    tokens = re.split(r'[,\n;]+', str(raw_str))
    valid = []
    not_in_catalog = []
    seen: set[str] = set()

    for token in tokens:
        normalized = normalize_code(token)
        if normalized is None or normalized in seen:
            continue
        seen.add(normalized)
        if normalized in catalog_codes:
            valid.append(normalized)
        else:
            not_in_catalog.append(normalized)

    return {"valid": valid, "not_in_catalog": not_in_catalog}
