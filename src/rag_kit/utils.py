import hashlib


def sha256_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def truncate_text(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` characters, ending in "..." when cut."""
    if len(text) <= max_chars:
        return text
    if max_chars < 3:
        return text[:max_chars]
    return text[: max_chars - 3] + "..."
