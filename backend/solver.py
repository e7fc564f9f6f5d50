"""
Section-assignment solver.

Depth-first backtracking over the requested titles in the order given. Each
title's candidates are tried in ranked order and the first complete,
conflict-free assignment wins. The search keeps an explicit stack of
candidate positions instead of recursing, so deep requests cannot exhaust
the interpreter's call stack.
"""

from time_model import blocks_for, is_compatible


def find_assignment(
    requested_titles: list[str],
    candidates: dict[str, list[dict]],
) -> dict[str, dict] | None:
    """
    Pick one section per requested title with no overlapping blocks.

    Titles without candidates are skipped (no constraint, no entry).
    Returns {title: section} on success, or None when every combination
    conflicts. Never returns a partial mapping.
    """
    titles = []
    for title in requested_titles:
        if candidates.get(title) and title not in titles:
            titles.append(title)

    options = [
        [(sec, blocks_for(sec)) for sec in candidates[title]]
        for title in titles
    ]

    chosen_blocks: list = []
    placed: list[int] = []  # block count pushed per placed title
    cursor: list[int] = [0]  # next candidate to try at each depth

    while cursor:
        depth = len(cursor) - 1
        if depth == len(titles):
            return {
                title: options[i][cursor[i] - 1][0]
                for i, title in enumerate(titles)
            }

        idx = cursor[depth]
        level = options[depth]
        while idx < len(level) and not is_compatible(chosen_blocks, level[idx][1]):
            idx += 1

        if idx < len(level):
            blocks = level[idx][1]
            chosen_blocks.extend(blocks)
            placed.append(len(blocks))
            cursor[depth] = idx + 1
            cursor.append(0)
            continue

        # Exhausted this title; undo the previous placement and move on.
        cursor.pop()
        if placed:
            n = placed.pop()
            if n:
                del chosen_blocks[-n:]

    return None
