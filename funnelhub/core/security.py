import secrets
from typing import Optional


def verify_cron_token(token: Optional[str], secret: str) -> bool:
    """
    Check a cron bearer token against the configured shared secret.

    An empty secret never matches, so an unconfigured deployment cannot be
    triggered with an empty token. Comparison is constant time.
    """
    if not secret or not token:
        return False
    return secrets.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))
