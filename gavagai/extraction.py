import re

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json(raw: str) -> str:
    """Best-effort recovery of a JSON object from a model reply.

    Tries, in order: the interior of the first fenced code block, the span
    from the first ``{`` to the last ``}``, then the stripped text itself.
    The result is not guaranteed to parse.
    """
    block = _FENCED_BLOCK_RE.search(raw)
    if block and block.group(1).strip():
        return block.group(1).strip()

    start = raw.find("{")
    end = raw.rfind("}")
    if start != -1 and end > start:
        return raw[start : end + 1]

    return raw.strip()
