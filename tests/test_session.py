import os

import pytest
from data_loader import load_data
from session import (
    STATUS_EMPTY_SELECTION,
    STATUS_GENERATED,
    STATUS_INFEASIBLE,
    STATUS_OVERRIDE,
    STATUS_OVERRIDE_CONFLICTS,
    ScheduleSession,
    plan_label,
)
from time_model import Day

REPO_DATA = os.path.join(os.path.dirname(__file__), "..", "data")

CSC1201 = "CSC1201 - Programming I"
CSC2201 = "CSC2201 - Data Structures"
MAT1101 = "MAT1101 - Calculus I"
PHY1001 = "PHY1001 - Physics I"
ENG1001 = "ENG1001 - Academic Writing"
HIS1001 = "HIS1001 - World History"


@pytest.fixture(scope="module")
def data():
    return load_data(REPO_DATA)


@pytest.fixture
def session(data):
    return ScheduleSession(data["sections"], data["study_plans"])


def _crns(session):
    return {t: s["courseReferenceNumber"] for t, s in session.solution.items()}


class TestTitles:
    def test_closed_only_title_hidden(self, session):
        titles = [t["title"] for t in session.titles()]
        assert HIS1001 not in titles
        assert titles == sorted(titles)

    def test_include_closed(self, session):
        session.set_include_closed(True)
        summary = {t["title"]: t for t in session.titles()}
        assert HIS1001 in summary
        assert summary[CSC1201]["count"] == 3
        assert summary[CSC1201]["any_closed"] is True

    def test_query(self, session):
        assert [t["title"] for t in session.titles("physics")] == [PHY1001]


class TestGenerateSchedule:
    def test_nothing_selected(self, session):
        result = session.generate_schedule()
        assert result["mode"] == "empty"
        assert session.status == STATUS_EMPTY_SELECTION
        assert session.solution is None

    def test_only_unavailable_titles_is_empty(self, session):
        session.toggle_title(HIS1001)
        assert session.generate_schedule()["mode"] == "empty"

    def test_backtracks_past_best_ranked_section(self, session):
        # 10002 has the most seats but shares TR 10:00 with the only CSC2201 section.
        session.toggle_title(CSC1201)
        session.toggle_title(CSC2201)
        result = session.generate_schedule()
        assert result["mode"] == "schedule"
        assert session.status == STATUS_GENERATED
        assert _crns(session) == {CSC1201: "10001", CSC2201: "30001"}
        assert session.conflicts == set()

    def test_infeasible_without_closed_sections(self, session):
        for title in (CSC1201, CSC2201, PHY1001):
            session.toggle_title(title)
        result = session.generate_schedule()
        assert result["mode"] == "infeasible"
        assert result["assignment"] is None
        assert session.status == STATUS_INFEASIBLE

    def test_closed_section_makes_it_feasible(self, session):
        session.set_include_closed(True)
        for title in (CSC1201, CSC2201, PHY1001):
            session.toggle_title(title)
        session.generate_schedule()
        assert _crns(session)[CSC1201] == "10003"

    def test_online_section_assigned(self, session):
        session.toggle_title(ENG1001)
        session.toggle_title(MAT1101)
        session.generate_schedule()
        assert _crns(session)[ENG1001] == "50001"

    def test_selection_change_clears_solution(self, session):
        session.toggle_title(CSC1201)
        session.generate_schedule()
        session.toggle_title(MAT1101)
        assert session.solution is None
        assert session.conflicts == set()

    def test_remove_and_clear(self, session):
        session.toggle_title(CSC1201)
        session.toggle_title(MAT1101)
        session.remove_title(CSC1201)
        assert session.selected_titles == [MAT1101]
        session.clear_selections()
        assert session.selected_titles == []


class TestOverride:
    @pytest.fixture
    def solved(self, session):
        session.toggle_title(CSC1201)
        session.toggle_title(MAT1101)
        session.generate_schedule()
        return session

    def test_override_without_solution_is_noop(self, session):
        assert session.override_section(CSC1201, "10002") is False

    def test_override_surfaces_conflict(self, solved):
        # 10002 (TR 10:00-11:15) vs 20002 (TR 10:30-11:45)
        assert _crns(solved) == {CSC1201: "10002", MAT1101: "20001"}
        assert solved.override_section(MAT1101, "20002") is True
        assert solved.conflicts == {"10002", "20002"}
        assert solved.status == STATUS_OVERRIDE_CONFLICTS

    def test_override_without_conflict(self, solved):
        assert solved.override_section(CSC1201, "10001") is True
        assert solved.conflicts == set()
        assert solved.status == STATUS_OVERRIDE

    def test_unknown_crn_leaves_state(self, solved):
        before = dict(solved.solution)
        solved.status = "unchanged"
        assert solved.override_section(CSC1201, "99999") is False
        assert solved.solution == before
        assert solved.status == "unchanged"

    def test_same_section_override_keeps_conflicts(self, solved):
        solved.override_section(MAT1101, "20002")
        before = set(solved.conflicts)
        solved.override_section(MAT1101, "20002")
        assert solved.conflicts == before


class TestWeekGrid:
    def test_grid(self, session):
        session.toggle_title(CSC1201)
        session.toggle_title(PHY1001)
        session.generate_schedule()
        grid = session.week_grid()
        assert [b.crn for b in grid[Day.MONDAY]] == ["40001"]
        assert [b.crn for b in grid[Day.TUESDAY]] == ["10002"]
        assert grid[Day.FRIDAY] == []

    def test_blocks_sorted(self, session):
        session.toggle_title(CSC1201)
        session.toggle_title(MAT1101)
        session.generate_schedule()
        blocks = session.solution_blocks()
        days = [list(Day).index(b.day) for b in blocks]
        assert days == sorted(days)

    def test_empty_without_solution(self, session):
        assert session.solution_blocks() == []
        assert all(v == [] for v in session.week_grid().values())


class TestLoading:
    def test_load_empty_keeps_previous(self, session):
        before = session.sections
        assert session.load_sections([]) is False
        assert session.sections is before
        assert session.status == "Sections parsed, but no records found."

    def test_load_malformed_keeps_previous(self, session):
        assert session.load_sections("garbage") is False
        assert len(session.sections) == 9

    def test_new_snapshot_invalidates_solution(self, session, data):
        session.toggle_title(CSC1201)
        session.generate_schedule()
        assert session.load_sections(data["sections"][:2]) is True
        assert session.solution is None
        assert session.status == "Loaded 2 sections"
        assert [t["title"] for t in session.titles()] == [CSC1201]

    def test_empty_session(self):
        session = ScheduleSession()
        assert session.titles() == []
        assert session.generate_schedule()["mode"] == "empty"
        assert session.plan_view() is None

    def test_load_study_plans_resets_active_plan(self, session, data):
        session.select_plan(1)
        assert session.load_study_plans({"studyPlans": data["study_plans"]}) is True
        assert session.active_plan_index == 0
        assert session.status == "Loaded 2 study plans."


class TestStudyPlan:
    def test_plan_label(self, data):
        assert plan_label(data["study_plans"][0]) == "AB-NCS-2020"

    def test_select_plan_out_of_range(self, session):
        with pytest.raises(IndexError):
            session.select_plan(5)

    def test_relations(self, session):
        rel = session.relations("CSC 3301")
        assert rel["direct_prereqs"] == {"CSC2201", "MAT1101"}
        assert rel["indirect_prereqs"] == {"CSC1201"}
        assert rel["direct_dependents"] == {"NCS4401"}

    def test_relations_follow_active_plan(self, session):
        session.select_plan(1)
        assert session.relations("CSC1201")["direct_dependents"] == {"SSD1101"}

    def test_plan_view_annotations(self, session):
        view = session.plan_view()
        assert view["label"] == "AB-NCS-2020"
        first_year = view["years"][0]
        assert [s["term"] for s in first_year["semesters"]] == [1, 2]
        courses = {c["code"]: c for s in first_year["semesters"] for c in s["courses"]}
        assert courses["CSC1201"]["offered"] and courses["CSC1201"]["selectable"]
        assert courses["HIS1001"]["offered"] and not courses["HIS1001"]["selectable"]
        placeholder = view["years"][1]["semesters"][0]["courses"][1]
        assert placeholder["placeholder"] is True
        assert placeholder["offered"] is False
        assert [e["code"] for e in view["electives"]] == ["ENG1001", "NCS4401"]

    def test_plan_view_with_missing_and_mixed_terms(self):
        plan = {"specialization": "X", "degree": "AB", "year": 2021, "yearlyCourses": [
            {"year": "First Year", "semesters": [
                {"term": 2, "desc": "Second"},
                {"term": None, "desc": "Summer"},
                {"term": "1", "desc": "First"},
            ]},
        ]}
        view = ScheduleSession(study_plans=[plan]).plan_view()
        semesters = view["years"][0]["semesters"]
        assert [s["desc"] for s in semesters] == ["Summer", "First", "Second"]
        assert [s["term"] for s in semesters] == [0, 1, 2]

    def test_unparseable_meeting_time_does_not_crash(self):
        section = {
            "courseReferenceNumber": "1",
            "subject": "ABC",
            "courseNumber": "1000",
            "courseTitle": "Intro",
            "openSection": True,
            "meetingsFaculty": [{"meetingTime": {"monday": True, "beginTime": "09²30", "endTime": "1050"}}],
        }
        session = ScheduleSession(sections=[section])
        session.toggle_title("ABC1000 - Intro")
        assert session.generate_schedule()["mode"] == "schedule"
        assert session.solution_blocks() == []

    def test_toggle_by_code(self, session):
        assert session.toggle_select_by_code("csc 1201") is True
        assert session.selected_titles == [CSC1201]
        assert session.is_selected_by_code("CSC1201")
        assert session.toggle_select_by_code("CSC1201") is True
        assert session.selected_titles == []

    def test_toggle_by_code_not_selectable(self, session):
        assert session.toggle_select_by_code("HIS1001") is False
        assert session.toggle_select_by_code("CSC3301") is False
        assert session.selected_titles == []

    def test_selected_shows_in_view(self, session):
        session.toggle_select_by_code("MAT1101")
        view = session.plan_view()
        courses = {c["code"]: c for s in view["years"][0]["semesters"] for c in s["courses"]}
        assert courses["MAT1101"]["selected"] is True
        assert courses["CSC1201"]["selected"] is False
