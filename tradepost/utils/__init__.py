__all__ = [
    "get_current_user",
    "get_active_user",
    "require_reviewer",
    "is_reviewer",
    "is_currently_suspended",
    "oauth2_scheme",
    "is_email_enabled",
    "send_email",
]


def __getattr__(name):
    if name in {
        "get_current_user",
        "get_active_user",
        "require_reviewer",
        "is_reviewer",
        "is_currently_suspended",
        "oauth2_scheme",
    }:
        from . import security as _security
        return getattr(_security, name)
    if name in {"is_email_enabled", "send_email"}:
        from . import email as _email
        return getattr(_email, name)
    raise AttributeError(f"module 'tradepost.utils' has no attribute '{name}'")
