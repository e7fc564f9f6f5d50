from normalizer import normalize_code


def iter_plan_courses(plan: dict):
    """Every course entry of a study plan: yearly semesters, then electives."""
    if not plan:
        return
    for yr in plan.get("yearlyCourses") or []:
        for sem in yr.get("semesters") or []:
            yield from sem.get("courses") or []
    yield from plan.get("technicalElectives") or []


def build_prereq_map(plan: dict) -> dict[str, set[str]]:
    """
    Builds the requires map for one study plan: for each course, the set of
    courses it directly lists as prerequisites.

    Returns: {"CSC2201": {"CSC1201"}, "CSC1201": set(), ...}

    Every listed course gets an entry, even with no prerequisites. Codes are
    normalized on both sides.
    """
    prereq_map: dict[str, set[str]] = {}
    for entry in iter_plan_courses(plan):
        code = normalize_code(entry.get("courseCode"))
        if not code:
            continue
        reqs = prereq_map.setdefault(code, set())
        for raw in entry.get("prerequisites") or []:
            req = normalize_code(raw)
            if req:
                reqs.add(req)
    return prereq_map


def build_reverse_prereq_map(prereq_map: dict[str, set[str]]) -> dict[str, set[str]]:
    """
    Builds the dependents map: for each course, which courses directly list
    it as a prerequisite. Transpose of the requires map.

    Returns: {"CSC1201": {"CSC2201", "CSC2301"}, ...}
    """
    reverse: dict[str, set[str]] = {}
    for course, reqs in prereq_map.items():
        for req in reqs:
            reverse.setdefault(req, set()).add(course)
    return reverse


def _reachable(start: str, adjacency: dict[str, set[str]]) -> set[str]:
    """
    Everything reachable from `start` by one or more edges.

    Iterative with a visited set, so cyclic input terminates. `start` itself
    is only included if a cycle leads back to it.
    """
    out: set[str] = set()
    stack = sorted(adjacency.get(start, ()))
    while stack:
        cur = stack.pop()
        if cur in out:
            continue
        out.add(cur)
        stack.extend(n for n in adjacency.get(cur, ()) if n not in out)
    return out


class PrereqGraph:
    """Requires-graph for one active study plan. Read-only once built."""

    def __init__(self, prereq_map: dict[str, set[str]]):
        self.prereq_map = prereq_map
        self.dependents_map = build_reverse_prereq_map(prereq_map)

    @classmethod
    def from_plan(cls, plan: dict) -> "PrereqGraph":
        return cls(build_prereq_map(plan))

    def direct_prereqs(self, code: str) -> set[str]:
        return set(self.prereq_map.get(normalize_code(code), ()))

    def all_prereqs(self, code: str) -> set[str]:
        return _reachable(normalize_code(code), self.prereq_map)

    def indirect_prereqs(self, code: str) -> set[str]:
        return self.all_prereqs(code) - self.direct_prereqs(code)

    def direct_dependents(self, code: str) -> set[str]:
        return set(self.dependents_map.get(normalize_code(code), ()))

    def all_dependents(self, code: str) -> set[str]:
        return _reachable(normalize_code(code), self.dependents_map)

    def indirect_dependents(self, code: str) -> set[str]:
        return self.all_dependents(code) - self.direct_dependents(code)

    def relations(self, code: str) -> dict[str, set[str]]:
        """The four relation sets around `code`; all empty for a blank code."""
        key = normalize_code(code)
        if not key:
            return {
                "direct_prereqs": set(),
                "indirect_prereqs": set(),
                "direct_dependents": set(),
                "indirect_dependents": set(),
            }
        direct_prereqs = self.direct_prereqs(key)
        direct_dependents = self.direct_dependents(key)
        return {
            "direct_prereqs": direct_prereqs,
            "indirect_prereqs": self.all_prereqs(key) - direct_prereqs,
            "direct_dependents": direct_dependents,
            "indirect_dependents": self.all_dependents(key) - direct_dependents,
        }
