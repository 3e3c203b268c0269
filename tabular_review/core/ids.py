from __future__ import annotations

import secrets


def new_project_id(now_ms: int) -> str:
    # Timestamp keeps ids roughly sortable; 48 random bits keep them unique.
    return f"project_{now_ms}_{secrets.token_hex(6)}"
