from typing import Optional


def safe_next_path(next_path: Optional[str], default: str = "/") -> str:
    """Only allow same-site absolute paths as redirect targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return default
    return next_path
