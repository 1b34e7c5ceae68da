from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from pushgate.actions.action import Action
from pushgate.actions.pipeline import run_chain
from pushgate.actions.registry import build_chain, init_processors
from pushgate.core.audit import AuditLog
from pushgate.core.config import Settings, get_settings

router = APIRouter(prefix="/push", tags=["push"])


@lru_cache(maxsize=1)
def get_audit_log() -> AuditLog:
    return AuditLog()


def _required(name: str, value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise HTTPException(status_code=422, detail={"code": "MISSING_FIELD", "field": name})
    return value


def _repo_name(value: str) -> str:
    value = _required("repo_name", value)
    if "/" in value or "\\" in value or value in (".", ".."):
        raise HTTPException(status_code=422, detail={"code": "BAD_REPO_NAME", "repo_name": value})
    return value


@router.post("/evaluate")
async def evaluate_push(
    repo_name: str = Body(..., embed=True),
    branch: str = Body(..., embed=True),
    commit_from: str = Body(..., embed=True),
    commit_to: str = Body(..., embed=True),
    settings: Settings = Depends(get_settings),
    audit: AuditLog = Depends(get_audit_log),
) -> Dict[str, Any]:
    """
    Run the push chain for one push attempt and record its disposition.
    Hook failures come back inside the action's steps, not as HTTP errors.
    """
    action = Action(
        repo_name=_repo_name(repo_name),
        proxy_git_path=settings.proxy_git_path,
        branch=_required("branch", branch),
        commit_from=_required("commit_from", commit_from),
        commit_to=_required("commit_to", commit_to),
    )
    init_processors()
    request = {"repo_name": action.repo_name, "branch": action.branch}
    action = await run_chain(build_chain(settings), request, action)
    try:
        audit.append(action)
    except Exception as e:
        print(f"[push/evaluate] audit append failed: {e}", flush=True)
    return action.to_dict()


@router.get("/audit/{repo_name}")
async def list_push_audit(
    repo_name: str,
    limit: int = Query(50, ge=1, le=200),
    audit: AuditLog = Depends(get_audit_log),
) -> List[Dict[str, Any]]:
    try:
        return audit.tail(repo_name, int(limit))
    except Exception as e:
        print(f"[push/audit] query failed: {e}", flush=True)
        raise HTTPException(status_code=503, detail={"code": "AUDIT_UNAVAILABLE", "message": str(e)})
