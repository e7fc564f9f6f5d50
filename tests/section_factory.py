"""Synthetic section records for solver/indexer tests."""

_DAY_FLAGS = {
    "M": "monday",
    "T": "tuesday",
    "W": "wednesday",
    "R": "thursday",
    "F": "friday",
    "S": "saturday",
    "U": "sunday",
}


def meeting(days: str, begin, end, room=None, building=None, kind="LEC") -> dict:
    """meeting("MW", "0900", "0950") -> a meetingsFaculty entry."""
    mt = {flag: False for flag in _DAY_FLAGS.values()}
    for letter in days:
        mt[_DAY_FLAGS[letter]] = True
    mt.update({
        "beginTime": begin,
        "endTime": end,
        "room": room,
        "buildingDescription": building,
        "meetingScheduleType": kind,
    })
    return {"meetingTime": mt}


def make_section(
    crn,
    subject="CSC",
    number="1201",
    title="Programming I",
    open_=True,
    seats=None,
    meetings=None,
) -> dict:
    rec = {
        "courseReferenceNumber": str(crn),
        "subject": subject,
        "courseNumber": number,
        "courseTitle": title,
        "openSection": open_,
        "meetingsFaculty": list(meetings or []),
    }
    if seats is not None:
        rec["seatsAvailable"] = seats
    return rec


def title_of(section: dict) -> str:
    return f"{section['subject']}{section['courseNumber']} - {section['courseTitle']}"
