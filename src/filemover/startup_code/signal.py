import signal
import logging
from functools import partial

from filemover.startup_code.context import AppContext

logger = logging.getLogger(__name__)


def handle_signal(context: AppContext, signum: int, _frame) -> None:
    """Signal handler: set shutdown_event once, cancelling in-flight copies."""
    try:
        name = signal.Signals(signum).name
    except ValueError:
        name = f"SIGNAL {signum}"

    if not context.shutdown_event.is_set():
        logger.warning("Got %s (%d); cancelling pending and in-flight moves", name, signum)
        context.shutdown_event.set()
    else:
        logger.debug("Got %s (%d) again; shutdown already in progress", name, signum)


def install_signal_handlers(context: AppContext) -> None:
    """Attach SIGINT and SIGTERM to handle_signal via functools.partial."""
    handler = partial(handle_signal, context)
    for sig in (signal.SIGINT, signal.SIGTERM):
        old_handler = signal.signal(sig, handler)
        logger.debug(
            "Installed shutdown handler for %s: replaced %s",
            signal.Signals(sig).name,
            old_handler,
        )
