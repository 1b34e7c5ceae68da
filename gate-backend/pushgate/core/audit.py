# pushgate/core/audit.py
from __future__ import annotations

import json
from typing import Any, List, Optional

from redis import Redis

from pushgate.actions.action import Action
from pushgate.core.config import get_settings


class AuditLog:
    """
    Append-only log of push dispositions stored in Redis List.
    Key: push-audit:{repo_name}
    Each item: JSON string of Action.to_dict().
    """

    def __init__(self, r: Optional[Any] = None, keep_last: Optional[int] = None) -> None:
        settings = get_settings()
        if r is None:
            # decode_responses=True -> returns str, and accepts str
            r = Redis.from_url(settings.redis_url, decode_responses=True)
        self.r = r
        self.keep_last = keep_last or settings.audit_keep_last

    def _key(self, repo_name: str) -> str:
        return f"push-audit:{repo_name}"

    def append(self, action: Action) -> None:
        key = self._key(action.repo_name)
        self.r.rpush(key, json.dumps(action.to_dict(), ensure_ascii=False))
        # keep last N
        self.r.ltrim(key, -self.keep_last, -1)

    def tail(self, repo_name: str, n: int = 50) -> List[dict]:
        key = self._key(repo_name)
        items = self.r.lrange(key, -max(1, n), -1)
        out: List[dict] = []
        for s in items:
            try:
                out.append(json.loads(s))
            except (TypeError, ValueError):
                out.append({"raw": s})
        return out
