import os
import sys
import time
import threading

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv

from data_loader import SECTIONS_FILENAME, STUDY_PLANS_FILENAME, load_data
from normalizer import normalize_input
from session import ScheduleSession, plan_label
from time_model import WEEKDAYS, block_to_dict, coerce_flag, format_time

load_dotenv()

app = Flask(__name__)

API_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)


def _data_file_mtime(path: str):
    try:
        mtimes = [
            os.path.getmtime(os.path.join(path, f))
            for f in (SECTIONS_FILENAME, STUDY_PLANS_FILENAME)
            if os.path.exists(os.path.join(path, f))
        ]
        return max(mtimes) if mtimes else None
    except OSError:
        return None


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['sections'])} sections from {DATA_PATH}")
except FileNotFoundError:
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data directory ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['sections'])} sections from {DATA_PATH}")
    else:
        print(f"[FATAL] Data file not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the section snapshot and study plans when DATA_PATH changes
    on disk. A new snapshot fully replaces the old one.

    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded {len(new_data['sections'])} sections from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


def _new_session(include_closed=False) -> ScheduleSession:
    """Fresh per-request session over the shared read-only snapshot."""
    return ScheduleSession(
        sections=_data["sections"],
        study_plans=_data["study_plans"],
        include_closed=coerce_flag(include_closed),
    )


def _error(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


# ── Serialization ─────────────────────────────────────────────────────────────
def _section_summary(section: dict) -> dict:
    meetings = []
    for m in section.get("meetingsFaculty") or []:
        mt = m.get("meetingTime") if isinstance(m, dict) else None
        if not mt:
            continue
        meetings.append({
            "days": [d.label for d in WEEKDAYS if coerce_flag(mt.get(d.value))],
            "begin": format_time(mt.get("beginTime")),
            "end": format_time(mt.get("endTime")),
            "room": mt.get("room"),
            "building": mt.get("buildingDescription"),
            "type": mt.get("meetingScheduleType"),
        })
    return {
        "crn": section.get("courseReferenceNumber"),
        "subject": section.get("subject"),
        "course_number": section.get("courseNumber"),
        "title": section.get("courseTitle"),
        "open": coerce_flag(section.get("openSection")),
        "seats_available": section.get("seatsAvailable"),
        "maximum_enrollment": section.get("maximumEnrollment"),
        "enrollment": section.get("enrollment"),
        "instructors": [
            f.get("displayName") for f in section.get("faculty") or []
            if isinstance(f, dict) and f.get("displayName")
        ],
        "meetings": meetings,
    }


def _schedule_payload(session: ScheduleSession, mode: str) -> dict:
    return {
        "mode": mode,
        "status": session.status,
        "assignment": {
            title: _section_summary(sec) for title, sec in (session.solution or {}).items()
        },
        "conflicts": sorted(session.conflicts),
        "week": {
            day.value: [block_to_dict(b) for b in blocks]
            for day, blocks in session.week_grid().items()
        },
    }


def _relations_payload(relations: dict) -> dict:
    return {key: sorted(codes) for key, codes in relations.items()}


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    return _error("SERVER_ERROR", "An unexpected server error occurred.", 500)


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/api/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": API_VERSION,
        "sections": len(_data["sections"]),
        "study_plans": len(_data["study_plans"]),
    })


@app.route("/api/titles", methods=["GET"])
def get_titles():
    _refresh_data_if_needed()
    session = _new_session(request.args.get("include_closed", "0"))
    titles = session.titles(request.args.get("q", ""))
    return jsonify({"titles": titles, "count": len(titles)})


@app.route("/api/sections", methods=["GET"])
def get_sections():
    """Ranked candidate list for one title key."""
    _refresh_data_if_needed()
    title = str(request.args.get("title") or "").strip()
    if not title:
        return _error("INVALID_INPUT", "title is required.", 400)
    session = _new_session(request.args.get("include_closed", "0"))
    candidates = session.candidates.get(title, [])
    return jsonify({
        "title": title,
        "sections": [_section_summary(s) for s in candidates],
    })


@app.route("/api/schedule", methods=["POST"])
def schedule_endpoint():
    _refresh_data_if_needed()
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)

    titles = body.get("titles") or []
    if not isinstance(titles, list) or not all(isinstance(t, str) for t in titles):
        return _error("INVALID_INPUT", "titles must be a list of strings.", 400)

    raw_codes = body.get("codes") or ""
    if not isinstance(raw_codes, str):
        return _error("INVALID_INPUT", "codes must be a comma-separated string.", 400)

    session = _new_session(body.get("include_closed", False))
    for title in titles:
        if title not in session.selected_titles:
            session.toggle_title(title)

    codes = normalize_input(raw_codes, session.course_index)
    for code in codes["valid"]:
        if not session.is_selected_by_code(code):
            session.toggle_select_by_code(code)

    result = session.generate_schedule()
    payload = _schedule_payload(session, result["mode"])
    payload["not_offered"] = codes["not_in_catalog"]
    return jsonify(payload)


@app.route("/api/override", methods=["POST"])
def override_endpoint():
    _refresh_data_if_needed()
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error("INVALID_INPUT", "Request body must be valid JSON.", 400)

    current = body.get("assignment")
    if not isinstance(current, dict) or not current:
        return _error("INVALID_INPUT", "assignment must be a non-empty {title: crn} object.", 400)
    title = str(body.get("title") or "")
    crn = str(body.get("crn") or "")
    if not title or not crn:
        return _error("INVALID_INPUT", "title and crn are required.", 400)

    session = _new_session(body.get("include_closed", False))
    solution = {}
    for t, c in current.items():
        match = next(
            (s for s in session.candidates.get(t, []) if s["courseReferenceNumber"] == str(c)),
            None,
        )
        if match is None:
            return _error("INVALID_INPUT", f"Section {c} is not an option for '{t}'.", 400)
        solution[t] = match
        session.selected_titles.append(t)

    session.solution = solution
    applied = session.override_section(title, crn)
    if not applied:
        session.status = "Override ignored: section is not an option for this course."
    return jsonify({**_schedule_payload(session, "schedule"), "applied": applied})


@app.route("/api/plans", methods=["GET"])
def get_plans():
    _refresh_data_if_needed()
    return jsonify({
        "plans": [
            {"index": i, "label": plan_label(p)} for i, p in enumerate(_data["study_plans"])
        ],
    })


def _session_for_plan(index: int):
    session = _new_session(request.args.get("include_closed", "0"))
    try:
        session.select_plan(index)
    except IndexError:
        return None
    return session


@app.route("/api/plans/<int:index>", methods=["GET"])
def get_plan(index: int):
    _refresh_data_if_needed()
    session = _session_for_plan(index)
    if session is None:
        return _error("UNKNOWN_PLAN", f"No study plan at index {index}.", 404)
    return jsonify(session.plan_view())


@app.route("/api/plans/<int:index>/relations", methods=["GET"])
def get_plan_relations(index: int):
    _refresh_data_if_needed()
    session = _session_for_plan(index)
    if session is None:
        return _error("UNKNOWN_PLAN", f"No study plan at index {index}.", 404)
    code = request.args.get("code", "")
    return jsonify({
        "code": code,
        **_relations_payload(session.relations(code)),
    })


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
