from typing import List, Sequence, Tuple


def normalize(code: str) -> str:
    """
    Codes are shown in upper case, users type them however
    """
    return code.strip().replace('-', '').replace(' ', '').upper()


def consume(codes: Sequence[str], submitted: str) -> Tuple[List[str], bool]:
    """
    Returns the remaining pool and whether the submitted code was in it.
    A miss returns the pool unchanged.
    """
    candidate = normalize(submitted)
    remaining = list(codes)
    if not candidate:
        return remaining, False

    for index, code in enumerate(remaining):
        if code == candidate:
            del remaining[index]
            return remaining, True

    return remaining, False


def remaining(codes: Sequence[str] | None) -> int:
    return len(codes or [])
