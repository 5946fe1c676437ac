"""Application reference numbers.

Format: APP-{epoch millis}-{9 random base-36 characters, upper case}
e.g. APP-1718030400123-K3ZQ81VXA
"""

import secrets
import string
import time

REFERENCE_PREFIX = "APP"
_ALPHABET = string.digits + string.ascii_uppercase


def generate_application_reference(now_ms: int | None = None) -> str:
    millis = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{REFERENCE_PREFIX}-{millis}-{suffix}"
