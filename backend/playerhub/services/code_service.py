import secrets
from typing import Callable

SHORT_CODE_CHARS = "2346789ABCDEFGHJKLMNPQRTUVWXYZ"

CodeGenerator = Callable[[int], str]


def generate_short_code(length: int) -> str:
    if length < 1:
        raise ValueError("code length must be positive")
    return "".join(secrets.choice(SHORT_CODE_CHARS) for _ in range(length))
