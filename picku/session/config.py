from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class SessionConfig:
    secret_key: str = os.getenv("SESSION_SECRET", "picku-secret-change-in-production")
    cookie_name: str = "picku_session"
    state_key: str = "search_state"
    search_limit: int = 3
    copy_ack_seconds: float = 2.0
    max_selected: int = 27
    limit_message: str = "検索回数の上限に達しました。同じセッションでは3回まで検索できます。"
    fallback_error: str = "お店の検索に失敗しました。"


DEFAULT_SESSION_CONFIG = SessionConfig()
