"""
Registry of push processors. build_chain() instantiates them in registration order.
init_processors() is idempotent: repeated calls do not duplicate entries.
"""
from typing import Callable, Dict, List, Optional

from pushgate.actions.pipeline import Processor
from pushgate.core.config import Settings, get_settings
from pushgate.processors.pre_receive import STEP_NAME, PreReceiveProcessor

ProcessorFactory = Callable[[Settings], Processor]

PROCESSORS: Dict[str, ProcessorFactory] = {}
_INIT_DONE = False


def register(name: str, factory: ProcessorFactory) -> None:
    if name:
        PROCESSORS[name] = factory


def build_chain(settings: Optional[Settings] = None) -> List[Processor]:
    settings = settings or get_settings()
    return [factory(settings) for factory in PROCESSORS.values()]


def init_processors() -> None:
    """Register the pre-receive hook processor. Idempotent: safe to call multiple times."""
    global _INIT_DONE
    if _INIT_DONE:
        return
    register(STEP_NAME, lambda settings: PreReceiveProcessor(settings=settings))
    _INIT_DONE = True
