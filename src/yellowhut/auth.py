from __future__ import annotations

import hmac

from .config import AuthConfig


def check_credentials(cfg: AuthConfig, username: str, password: str) -> bool:
    if not cfg.enabled:
        return True
    user_ok = hmac.compare_digest(username.encode("utf-8"), cfg.username.encode("utf-8"))
    pass_ok = hmac.compare_digest(password.encode("utf-8"), cfg.password.encode("utf-8"))
    return user_ok and pass_ok
