"""
Per-user scheduling session.

Holds everything one student is working with: the section snapshot, the
open/closed filter, selected titles, the current solution and its conflict
set, and the active study plan. Derived structures (title index, course
index, prerequisite graph) are rebuilt whenever their inputs change and are
never shared between sessions.
"""

from conflicts import assignment_blocks, find_conflicts, override_section
from course_index import build_course_index, is_offered, is_selectable
from data_loader import DataLoadError, ingest_sections, ingest_study_plans, term_number
from normalizer import is_placeholder_code, normalize_code
from prereq_graph import PrereqGraph
from section_index import build_title_index, title_summaries
from solver import find_assignment
from time_model import group_blocks_by_day, sort_blocks


STATUS_EMPTY_SELECTION = "Select at least one course."
STATUS_GENERATED = "Schedule generated."
STATUS_INFEASIBLE = "No conflict-free combination found."
STATUS_OVERRIDE = "Manual override applied."
STATUS_OVERRIDE_CONFLICTS = "Manual override applied (conflicts highlighted)."
STATUS_CLEARED = "Cleared selected courses."


def plan_label(plan: dict) -> str:
    return f"{plan.get('degree', '')}-{plan.get('specialization', '')}-{plan.get('year', '')}"


class ScheduleSession:
    def __init__(self, sections: list[dict] | None = None, study_plans: list[dict] | None = None,
                 include_closed: bool = False):
        self.sections: list[dict] = list(sections or [])
        self.study_plans: list[dict] = list(study_plans or [])
        self.include_closed = bool(include_closed)
        self.active_plan_index = 0
        self.selected_titles: list[str] = []
        self.solution: dict[str, dict] | None = None
        self.conflicts: set[str] = set()
        self.status = ""
        self._rebuild_sections()
        self._rebuild_graph()

    # ── Derived structures ──────────────────────────────────────────────────
    def _rebuild_sections(self) -> None:
        self.title_index = build_title_index(self.sections, self.include_closed)
        self.course_index = build_course_index(self.sections)

    def _rebuild_graph(self) -> None:
        self.graph = PrereqGraph.from_plan(self.active_plan)

    def _reset_solution(self) -> None:
        self.solution = None
        self.conflicts = set()

    @property
    def candidates(self) -> dict[str, list[dict]]:
        return self.title_index["candidates"]

    @property
    def active_plan(self) -> dict | None:
        if 0 <= self.active_plan_index < len(self.study_plans):
            return self.study_plans[self.active_plan_index]
        return None

    # ── Inputs ──────────────────────────────────────────────────────────────
    def load_sections(self, raw) -> bool:
        """Replace the section snapshot. Prior state is kept on failure."""
        try:
            sections = ingest_sections(raw)
        except DataLoadError as exc:
            self.status = str(exc)
            return False
        self.sections = sections
        self._rebuild_sections()
        self._reset_solution()
        self.status = f"Loaded {len(sections)} sections"
        return True

    def load_study_plans(self, raw) -> bool:
        try:
            plans = ingest_study_plans(raw)
        except DataLoadError as exc:
            self.status = str(exc)
            return False
        self.study_plans = plans
        self.active_plan_index = 0
        self._rebuild_graph()
        self.status = f"Loaded {len(plans)} study plan{'s' if len(plans) > 1 else ''}."
        return True

    def set_include_closed(self, include_closed: bool) -> None:
        include_closed = bool(include_closed)
        if include_closed == self.include_closed:
            return
        self.include_closed = include_closed
        self.title_index = build_title_index(self.sections, include_closed)

    def select_plan(self, index: int) -> None:
        if not 0 <= index < len(self.study_plans):
            raise IndexError(f"Study plan index {index} out of range")
        self.active_plan_index = index
        self._rebuild_graph()

    # ── Selection ───────────────────────────────────────────────────────────
    def titles(self, query: str = "") -> list[dict]:
        return title_summaries(self.title_index, query)

    def toggle_title(self, title: str) -> None:
        if title in self.selected_titles:
            self.selected_titles.remove(title)
        else:
            self.selected_titles.append(title)
        self._reset_solution()

    def remove_title(self, title: str) -> None:
        self.selected_titles = [t for t in self.selected_titles if t != title]
        self._reset_solution()

    def clear_selections(self) -> None:
        self.selected_titles = []
        self._reset_solution()
        self.status = STATUS_CLEARED

    def toggle_select_by_code(self, code: str) -> bool:
        """Toggle a curriculum course. No-op unless offered and selectable."""
        key = normalize_code(code)
        if not key or not is_selectable(key, self.course_index, self.candidates):
            return False
        self.toggle_title(self.course_index[key]["title"])
        return True

    def is_selected_by_code(self, code: str) -> bool:
        info = self.course_index.get(normalize_code(code))
        return bool(info) and info["title"] in self.selected_titles

    # ── Solving ─────────────────────────────────────────────────────────────
    def generate_schedule(self) -> dict:
        targets = [t for t in self.selected_titles if self.candidates.get(t)]
        if not targets:
            self._reset_solution()
            self.status = STATUS_EMPTY_SELECTION
            return self.result("empty")

        assignment = find_assignment(targets, self.candidates)
        if assignment is None:
            self._reset_solution()
            self.status = STATUS_INFEASIBLE
            return self.result("infeasible")

        self.solution = assignment
        self.conflicts = find_conflicts(assignment)
        self.status = STATUS_GENERATED
        return self.result("schedule")

    def override_section(self, title: str, crn: str) -> bool:
        """Manually swap one title's section; conflicts are surfaced, not rejected."""
        if self.solution is None:
            return False
        applied = override_section(self.solution, title, crn, self.candidates.get(title, []))
        if applied is None:
            return False
        self.solution, self.conflicts = applied
        self.status = STATUS_OVERRIDE_CONFLICTS if self.conflicts else STATUS_OVERRIDE
        return True

    def solution_blocks(self) -> list:
        if not self.solution:
            return []
        return sort_blocks(assignment_blocks(self.solution))

    def week_grid(self) -> dict:
        return group_blocks_by_day(self.solution_blocks())

    def result(self, mode: str) -> dict:
        return {
            "mode": mode,
            "status": self.status,
            "assignment": dict(self.solution) if self.solution else None,
            "conflicts": sorted(self.conflicts),
        }

    # ── Study plan views ────────────────────────────────────────────────────
    def relations(self, code: str | None) -> dict[str, set[str]]:
        return self.graph.relations(code)

    def _course_view(self, entry: dict) -> dict:
        code = normalize_code(entry.get("courseCode")) or ""
        offered = is_offered(code, self.course_index)
        return {
            "code": code,
            "display_code": str(entry.get("courseCode") or "").upper(),
            "name": entry.get("courseName", ""),
            "offered": offered,
            "selectable": offered and is_selectable(code, self.course_index, self.candidates),
            "selected": offered and self.is_selected_by_code(code),
            "placeholder": is_placeholder_code(code),
        }

    def plan_view(self) -> dict | None:
        plan = self.active_plan
        if plan is None:
            return None
        years = []
        for yr in plan.get("yearlyCourses") or []:
            semesters = sorted(yr.get("semesters") or [], key=lambda s: term_number(s.get("term")))
            years.append({
                "year": yr.get("year", ""),
                "semesters": [
                    {
                        "term": term_number(sem.get("term")),
                        "desc": sem.get("desc", ""),
                        "courses": [self._course_view(c) for c in sem.get("courses") or []],
                    }
                    for sem in semesters
                ],
            })
        electives = sorted(plan.get("technicalElectives") or [], key=lambda e: str(e.get("courseCode", "")))
        return {
            "label": plan_label(plan),
            "years": years,
            "electives": [self._course_view(e) for e in electives],
        }
