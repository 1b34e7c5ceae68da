"""
executeExternalPreReceiveHook: run the external policy hook and turn its exit status into a verdict.

  exit 0            -> AUTO_APPROVED
  exit 1            -> AUTO_REJECTED
  exit 2            -> unchanged (manual review downstream)
  anything else     -> ERRORED, step error with hook stdout (or a generic message)
  hook missing      -> unchanged, clean "skipping" step
  launch / I-O fault-> unchanged, step error with hook stderr (or the fault message)

evaluate() / evaluate_async() never raise; every call appends exactly one Step.
"""
import asyncio
from typing import Any, Optional

from pushgate.actions.action import Action, Step
from pushgate.core.config import Settings
from pushgate.hooks.errors import HookExecutionError
from pushgate.hooks.invoker import (
    HookConfig,
    HookMissing,
    HookOutcome,
    LaunchFault,
    find_missing_hook,
    run_hook,
    run_hook_async,
)
from pushgate.hooks.sanitize import sanitize_input

STEP_NAME = "executeExternalPreReceiveHook"
UNKNOWN_HOOK_ERROR = "Unknown pre-receive hook error."


def interpret(outcome: HookOutcome, action: Action, step: Step) -> Action:
    """Apply one hook outcome to the action and attach the step."""
    if isinstance(outcome, HookMissing):
        step.log("Pre-receive hook not found, skipping execution.")
    elif isinstance(outcome, LaunchFault):
        step.log("Push failed, pre-receive hook returned an error.")
        step.set_error(outcome.stderr.strip() or str(outcome.error) or UNKNOWN_HOOK_ERROR)
    elif outcome.timed_out:
        step.log("Unexpected hook status: timed out")
        step.set_error(outcome.stdout.strip() or "Pre-receive hook timed out.")
        action.set_errored()
    else:
        step.log(f"Hook exited with status {outcome.describe_status()}")
        if outcome.status == 0:
            step.log("Push automatically approved by pre-receive hook.")
            action.set_auto_approval()
        elif outcome.status == 1:
            step.log("Push automatically rejected by pre-receive hook.")
            action.set_auto_rejection()
        elif outcome.status == 2:
            step.log("Push requires manual approval.")
        else:
            step.log(f"Unexpected hook status: {outcome.describe_status()}")
            step.set_error(outcome.stdout.strip() or UNKNOWN_HOOK_ERROR)
            action.set_errored()
    action.add_step(step)
    return action


def _already_decided(action: Action, step: Step) -> bool:
    if not action.approval_state.is_terminal:
        return False
    step.log(f"Approval already decided ({action.approval_state.value}), skipping pre-receive hook.")
    action.add_step(step)
    return True


def _prepare(action: Action, step: Step, hook_path: Optional[str], settings: Optional[Settings]):
    """Returns (config, stdin, outcome). outcome is set when the hook must not run."""
    config = HookConfig.for_action(action, hook_path, settings)
    missing = find_missing_hook(config)
    if missing is not None:
        return config, None, missing
    try:
        stdin = sanitize_input(action)
    except HookExecutionError as e:
        return config, None, LaunchFault(e)
    step.log(f"Executing pre-receive hook from: {config.hook_path}")
    return config, stdin, None


def evaluate(
    request: Any,
    action: Action,
    hook_path: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Action:
    """Blocking rendition: the calling stage waits for the hook to exit."""
    step = Step(STEP_NAME)
    if _already_decided(action, step):
        return action
    try:
        config, stdin, outcome = _prepare(action, step, hook_path, settings)
        if outcome is None:
            outcome = run_hook(config, stdin)
    except Exception as e:
        print(f"[pre_receive] unexpected failure for {action.repo_name}: {e!r}", flush=True)
        outcome = LaunchFault(HookExecutionError(str(e)))
    return interpret(outcome, action, step)


async def evaluate_async(
    request: Any,
    action: Action,
    hook_path: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Action:
    """Same contract as evaluate(); cancellation kills the hook, records an error step, and propagates."""
    step = Step(STEP_NAME)
    if _already_decided(action, step):
        return action
    try:
        config, stdin, outcome = _prepare(action, step, hook_path, settings)
        if outcome is None:
            outcome = await run_hook_async(config, stdin)
    except asyncio.CancelledError:
        step.log("Pre-receive hook execution cancelled.")
        step.set_error("Pre-receive hook execution cancelled.")
        action.add_step(step)
        raise
    except Exception as e:
        print(f"[pre_receive] unexpected failure for {action.repo_name}: {e!r}", flush=True)
        outcome = LaunchFault(HookExecutionError(str(e)))
    return interpret(outcome, action, step)


class PreReceiveProcessor:
    """Chain adapter for run_chain()."""

    name = STEP_NAME

    def __init__(self, hook_path: Optional[str] = None, settings: Optional[Settings] = None):
        self._hook_path = hook_path
        self._settings = settings

    async def exec(self, request: Any, action: Action) -> Action:
        return await evaluate_async(request, action, self._hook_path, self._settings)
