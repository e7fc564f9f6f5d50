"""
Build a conflict-free weekly schedule from a sections JSON file.

Designed to be importable for tests and runnable as a standalone CLI.

Usage:
    python scripts/build_schedule.py --sections data/sections.json --codes "CSC1201, MAT1101"
    python scripts/build_schedule.py --sections data/sections.json --title "CSC1201 - Programming I"
    python scripts/build_schedule.py --sections data/sections.json --list
    python scripts/build_schedule.py --plans data/study_plans.json --related CSC2201
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

try:
    import pandas as pd
except ImportError as e:
    sys.exit(f"Missing dependency: {e}. Run: pip install pandas")

from course_index import course_index_frame
from data_loader import DataLoadError, load_sections, load_study_plans
from normalizer import normalize_input
from session import ScheduleSession, plan_label


def render_week(session: ScheduleSession) -> str:
    lines = []
    for day, blocks in session.week_grid().items():
        lines.append(f"{day.label}:")
        if not blocks:
            lines.append("  -")
        for b in blocks:
            flag = "  [CONFLICT]" if b.crn in session.conflicts else ""
            where = " ".join(x for x in (b.building, b.room) if x)
            lines.append(
                f"  {b.start // 60:02d}:{b.start % 60:02d}-{b.end // 60:02d}:{b.end % 60:02d}  "
                f"{b.crn}  {b.title}  {where}{flag}".rstrip()
            )
    return "\n".join(lines)


def render_relations(session: ScheduleSession, code: str) -> str:
    rel = session.relations(code)
    return "\n".join(
        f"{key:20s} {', '.join(sorted(codes)) or '-'}" for key, codes in rel.items()
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Build a conflict-free weekly class schedule.")
    parser.add_argument("--sections", help="Path to sections JSON ({'data': [...]} or a list)")
    parser.add_argument("--plans", help="Path to study plans JSON")
    parser.add_argument("--plan-index", type=int, default=0, help="Which study plan to use")
    parser.add_argument("--title", action="append", default=[], help="Title key to schedule (repeatable)")
    parser.add_argument("--codes", default="", help="Comma-separated course codes to schedule")
    parser.add_argument("--include-closed", action="store_true", help="Consider closed sections")
    parser.add_argument("--list", action="store_true", help="List offered courses and exit")
    parser.add_argument("--related", help="Show prerequisite relations for a course code")
    args = parser.parse_args(argv)

    session = ScheduleSession(include_closed=args.include_closed)
    try:
        if args.sections:
            session = ScheduleSession(load_sections(args.sections), include_closed=args.include_closed)
        if args.plans:
            session.study_plans = load_study_plans(args.plans)
            session.select_plan(args.plan_index)
    except (OSError, DataLoadError, IndexError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    if args.related:
        if not session.study_plans:
            print("[ERROR] --related needs --plans", file=sys.stderr)
            return 1
        print(f"Plan {plan_label(session.active_plan)}")
        print(render_relations(session, args.related))
        return 0

    if args.list:
        df = course_index_frame(session.course_index)
        with pd.option_context("display.max_rows", None, "display.width", 120):
            print(df.to_string(index=False) if len(df) else "No courses offered.")
        return 0

    for title in args.title:
        if title not in session.selected_titles:
            session.toggle_title(title)
    codes = normalize_input(args.codes, session.course_index)
    for code in codes["not_in_catalog"]:
        print(f"[WARN] {code} is not offered in this snapshot")
    for code in codes["valid"]:
        if not session.is_selected_by_code(code):
            session.toggle_select_by_code(code)

    result = session.generate_schedule()
    print(result["status"])
    if result["mode"] != "schedule":
        return 2
    for title, section in session.solution.items():
        print(f"  {title}: {section['courseReferenceNumber']}")
    print(render_week(session))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
