"""
Run the external pre-receive hook: one child process, no arguments, cwd = repository path,
sanitized line on stdin. Returns a discriminated outcome instead of raising:
  HookMissing    -> hook dir or file absent, nothing executed
  ProcessResult  -> process ran to an exit status (or was killed on timeout)
  LaunchFault    -> process could not be launched / its pipes failed
"""
import asyncio
import os
import signal as _signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from pushgate.core.config import Settings, get_settings
from pushgate.hooks.errors import HookExecutionError

# How long to wait for pipe EOF after the process group was killed.
READER_GRACE_SECONDS = 2.0


@dataclass(frozen=True)
class HookConfig:
    hook_path: Path
    cwd: Path
    timeout: Optional[float] = None

    @classmethod
    def for_action(
        cls,
        action: Any,
        hook_path: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> "HookConfig":
        """Resolve hook_path against settings.base_dir (an absolute directory, never the process cwd)."""
        settings = settings or get_settings()
        path = Path(hook_path or settings.pre_receive_hook_path)
        if not path.is_absolute():
            path = Path(settings.base_dir) / path
        return cls(
            hook_path=Path(os.path.normpath(path.absolute())),
            cwd=Path(action.repo_path),
            timeout=settings.hook_timeout_seconds,
        )


@dataclass(frozen=True)
class HookMissing:
    path: str


@dataclass(frozen=True)
class ProcessResult:
    status: Optional[int]  # negative: killed by signal; None: killed on timeout
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def signal(self) -> Optional[int]:
        if self.status is not None and self.status < 0:
            return -self.status
        return None

    def describe_status(self) -> str:
        if self.timed_out:
            return "timed out"
        sig = self.signal
        if sig is not None:
            try:
                return f"killed by signal {_signal.Signals(sig).name}"
            except ValueError:
                return f"killed by signal {sig}"
        return str(self.status)


@dataclass(frozen=True)
class LaunchFault:
    error: HookExecutionError
    stderr: str = ""


HookOutcome = Union[HookMissing, ProcessResult, LaunchFault]


def _text(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def find_missing_hook(config: HookConfig) -> Optional[HookMissing]:
    if not config.hook_path.parent.exists() or not config.hook_path.exists():
        return HookMissing(str(config.hook_path))
    return None


def _kill_group(pid: int) -> None:
    """SIGKILL the hook's whole process group (it leads its own session)."""
    try:
        os.killpg(pid, _signal.SIGKILL)
    except ProcessLookupError:
        pass


def run_hook(config: HookConfig, stdin: str) -> HookOutcome:
    """Blocking run. Interrupts kill the hook's process group and propagate."""
    missing = find_missing_hook(config)
    if missing is not None:
        return missing
    try:
        proc = subprocess.Popen(
            [str(config.hook_path)],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=str(config.cwd),
            start_new_session=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        return LaunchFault(HookExecutionError(str(e)))

    with proc:
        try:
            out, err = proc.communicate(stdin, timeout=config.timeout)
        except subprocess.TimeoutExpired:
            _kill_group(proc.pid)
            out, err = proc.communicate()
            return ProcessResult(status=None, stdout=_text(out), stderr=_text(err), timed_out=True)
        except OSError as e:
            # pipe failure after launch; nothing trustworthy was collected
            _kill_group(proc.pid)
            proc.wait()
            return LaunchFault(HookExecutionError(str(e)))
        except BaseException:
            _kill_group(proc.pid)
            proc.wait()
            raise
    return ProcessResult(status=proc.returncode, stdout=out or "", stderr=err or "")


async def _feed(proc: "asyncio.subprocess.Process", data: bytes) -> None:
    try:
        proc.stdin.write(data)
        await proc.stdin.drain()
        proc.stdin.close()
    except (BrokenPipeError, ConnectionResetError):
        # hook exited without reading its stdin
        pass


async def _kill(proc: "asyncio.subprocess.Process") -> None:
    _kill_group(proc.pid)
    await proc.wait()


async def _drain(readers: List["asyncio.Future"]) -> Tuple[str, str]:
    """Collect whatever the readers got before the pipes closed."""
    _, pending = await asyncio.wait(readers, timeout=READER_GRACE_SECONDS)
    for task in pending:
        task.cancel()
    out = [_text(t.result()) if t.done() and not t.cancelled() and t.exception() is None else "" for t in readers]
    return out[0], out[1]


async def run_hook_async(config: HookConfig, stdin: str) -> HookOutcome:
    """
    Event-loop friendly run. stdout/stderr are read by their own tasks so a
    timeout still reports what the hook printed before it was killed.
    Timeout kills and reaps the hook's process group.
    Cancellation kills and reaps the process group, then re-raises CancelledError.
    """
    missing = find_missing_hook(config)
    if missing is not None:
        return missing
    try:
        proc = await asyncio.create_subprocess_exec(
            str(config.hook_path),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(config.cwd),
            start_new_session=True,
        )
    except OSError as e:
        return LaunchFault(HookExecutionError(str(e)))

    feeder = asyncio.ensure_future(_feed(proc, stdin.encode("utf-8")))
    readers = [asyncio.ensure_future(proc.stdout.read()), asyncio.ensure_future(proc.stderr.read())]
    waiter = asyncio.ensure_future(proc.wait())
    try:
        _, pending = await asyncio.wait([feeder, waiter, *readers], timeout=config.timeout)
    except asyncio.CancelledError:
        await _kill(proc)
        for task in (feeder, waiter, *readers):
            task.cancel()
        raise

    if pending:
        feeder.cancel()
        await _kill(proc)
        out, err = await _drain(readers)
        return ProcessResult(status=None, stdout=out, stderr=err, timed_out=True)

    out, err = await _drain(readers)
    fault = feeder.exception()
    if fault is not None:
        if not isinstance(fault, OSError):
            raise fault
        return LaunchFault(HookExecutionError(str(fault)), stderr=err)
    return ProcessResult(status=proc.returncode, stdout=out, stderr=err)
