# pushgate/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

DEFAULT_HOOK_PATH = "./hooks/pre-receive.sh"


def _timeout_from_env() -> Optional[float]:
    raw = (os.getenv("PRE_RECEIVE_HOOK_TIMEOUT_SECONDS") or "60").strip()
    try:
        v = float(raw)
    except ValueError:
        print(f"[config] bad PRE_RECEIVE_HOOK_TIMEOUT_SECONDS={raw!r}, using 60", flush=True)
        v = 60.0
    # <= 0 disables the timeout
    return v if v > 0 else None


@dataclass(frozen=True)
class Settings:
    pre_receive_hook_path: str = DEFAULT_HOOK_PATH
    proxy_git_path: str = "./.remote"
    hook_timeout_seconds: Optional[float] = 60.0
    # relative hook paths resolve here; fixed at construction, never the live cwd
    base_dir: str = field(default_factory=os.getcwd)
    redis_url: str = "redis://redis:6379/0"
    audit_keep_last: int = 2000

    def __post_init__(self):
        if not os.path.isabs(self.base_dir):
            raise ValueError(f"base_dir must be an absolute path, got {self.base_dir!r}")

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            keep_last = int(os.getenv("PUSH_AUDIT_KEEP_LAST", "2000"))
        except ValueError:
            keep_last = 2000
        return cls(
            pre_receive_hook_path=os.getenv("PRE_RECEIVE_HOOK_PATH", DEFAULT_HOOK_PATH),
            proxy_git_path=os.getenv("PROXY_GIT_PATH", "./.remote"),
            hook_timeout_seconds=_timeout_from_env(),
            base_dir=os.path.abspath(os.getenv("PUSHGATE_BASE_DIR") or os.getcwd()),
            redis_url=os.getenv("REDIS_URL", "redis://redis:6379/0"),
            audit_keep_last=max(1, keep_last),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
