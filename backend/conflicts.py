from time_model import blocks_for, overlap


def assignment_blocks(assignment: dict[str, dict]) -> list:
    blocks = []
    for section in assignment.values():
        blocks.extend(blocks_for(section))
    return blocks


def find_conflicts(assignment: dict[str, dict]) -> set[str]:
    """
    CRNs involved in at least one pairwise time overlap.

    Always recomputed from the full assignment; O(n^2) over its blocks.
    """
    blocks = assignment_blocks(assignment or {})
    conflict_set: set[str] = set()
    for i in range(len(blocks)):
        for j in range(i + 1, len(blocks)):
            if overlap(blocks[i], blocks[j]):
                conflict_set.add(blocks[i].crn)
                conflict_set.add(blocks[j].crn)
    return conflict_set


def override_section(
    assignment: dict[str, dict],
    title: str,
    crn: str,
    options: list[dict],
) -> tuple[dict[str, dict], set[str]] | None:
    """
    Swap the section assigned to `title` for the option with this CRN.

    Returns (new_assignment, conflicts), or None when the CRN is not among
    the title's options. The input assignment is never mutated.
    """
    crn = str(crn)
    pick = next((s for s in options or [] if str(s.get("courseReferenceNumber")) == crn), None)
    if pick is None:
        return None
    updated = {**assignment, title: pick}
    return updated, find_conflicts(updated)
