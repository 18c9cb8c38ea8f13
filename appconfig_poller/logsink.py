"""
Forwarding of absorbed failures to a caller-supplied logging sink.
"""
import logging
from typing import Callable, Optional

LogSink = Callable[..., None]


def emit(
    sink: Optional[LogSink],
    fallback: logging.Logger,
    message: str,
    error: Optional[BaseException] = None,
) -> None:
    """
    Send a message to the sink, or to the fallback logger when there is none.

    The sink is called as sink(message) or sink(message, error). Without a
    sink, messages carrying an error are logged at WARNING, others at INFO.
    """
    if sink is None:
        if error is not None:
            fallback.warning(f"{message}: {error}")
        else:
            fallback.info(message)
        return
    if error is not None:
        sink(message, error)
    else:
        sink(message)
