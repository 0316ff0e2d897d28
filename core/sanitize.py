import re

_FENCE_OPEN = re.compile(r"^\s*```\s*[\w.+#-]*\s*$")
_FENCE_CLOSE = re.compile(r"^\s*```\s*$")


def _strip_once(text: str) -> str:
    lines = text.splitlines()
    start, end = 0, len(lines)

    while start < end and not lines[start].strip():
        start += 1
    opened = start < end and bool(_FENCE_OPEN.match(lines[start]))
    if opened:
        start += 1

    last = end
    while last > start and not lines[last - 1].strip():
        last -= 1
    closed = last > start and bool(_FENCE_CLOSE.match(lines[last - 1]))
    if closed:
        end = last - 1

    if not (opened or closed):
        return text

    body = "\n".join(lines[start:end]).rstrip()
    return body + "\n" if body else ""


def strip_code_fence(text: str) -> str:
    """Remove markdown fence openers and closers around a script.

    Fences are peeled until none is left, so a body wrapped twice comes out
    clean and applying this again is a no-op. Text without fence lines comes
    back untouched. When a fence is removed the body is returned with exactly
    one trailing newline.
    """
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            return text
        text = stripped
