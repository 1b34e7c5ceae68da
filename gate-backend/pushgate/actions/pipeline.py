"""
Push chain: run processors in order against one Action (pre-receive hook, ...).
Stops after the first error step or terminal rejection. Exceptions become an error Step.
When every processor passed without a verdict, the push waits for manual review.
"""
from typing import Any, List, Protocol

from pushgate.actions.action import Action, ApprovalState, Step


class Processor(Protocol):
    """Processor protocol: name, async exec(request, action) -> Action. Appends one Step."""

    name: str

    async def exec(self, request: Any, action: Action) -> Action:
        ...


def _should_stop(action: Action) -> bool:
    last = action.last_step
    if last is not None and last.error:
        return True
    return action.approval_state in (ApprovalState.AUTO_REJECTED, ApprovalState.ERRORED)


async def run_chain(
    processors: List[Processor],
    request: Any,
    action: Action,
) -> Action:
    for processor in processors:
        try:
            action = await processor.exec(request, action)
        except Exception as e:
            step = Step(getattr(processor, "name", "?"))
            step.log(f"Processor raised {type(e).__name__}.")
            step.set_error(str(e) or type(e).__name__)
            action.add_step(step)
            print(f"[chain] processor {step.name} failed: {e!r}", flush=True)
            return action
        if _should_stop(action):
            return action
    if not action.error and action.approval_state == ApprovalState.UNDETERMINED:
        action.set_pending_review()
    return action
