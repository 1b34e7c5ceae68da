"""
Hook failure taxonomy.
A missing hook is not an error (HookMissing outcome); a timeout is a malfunction
(ProcessResult.timed_out). Only launch / I-O faults and rejected input raise.
"""


class HookExecutionError(Exception):
    """The hook process could not be launched or communicated with."""


class InvalidHookInput(HookExecutionError, ValueError):
    """A push field cannot be written to the hook's stdin line safely."""

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"invalid {field} {value!r}: {reason}")
