from typing import Any, Optional


def enum_value(v: Any) -> Optional[str]:
    """Bare string value of a str-enum or plain str; None stays None."""
    if v is None:
        return None
    return v.value if hasattr(v, "value") else str(v)
