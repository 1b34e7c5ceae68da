"""
One-shot pre-receive check from the command line:

    python -m pushgate.workers.pre_receive_check <repo_name> <commit_from> <commit_to> <branch>

Prints the evaluated action as JSON. Exit code: 0 approved, 1 rejected,
2 pending manual review, 3 hook/step error.
"""
import json
import sys
from typing import List, Optional

from pushgate.actions.action import Action, ApprovalState
from pushgate.core.config import get_settings
from pushgate.processors.pre_receive import evaluate

EXIT_CODES = {
    ApprovalState.AUTO_APPROVED: 0,
    ApprovalState.AUTO_REJECTED: 1,
    ApprovalState.PENDING_MANUAL_REVIEW: 2,
    ApprovalState.UNDETERMINED: 2,
    ApprovalState.ERRORED: 3,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 4:
        print(__doc__.strip(), file=sys.stderr)
        return 64
    repo_name, commit_from, commit_to, branch = args
    settings = get_settings()
    action = Action(
        repo_name=repo_name,
        proxy_git_path=settings.proxy_git_path,
        branch=branch,
        commit_from=commit_from,
        commit_to=commit_to,
    )
    action = evaluate({"source": "cli"}, action, settings=settings)
    if not action.error and action.approval_state == ApprovalState.UNDETERMINED:
        action.set_pending_review()
    print(json.dumps(action.to_dict(), ensure_ascii=False, indent=2))
    if action.error:
        return 3
    return EXIT_CODES[action.approval_state]


if __name__ == "__main__":
    sys.exit(main())
