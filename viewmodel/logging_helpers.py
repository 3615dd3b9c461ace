"""Utility helpers for routing log messages and exceptions through a ViewModel.

These helpers centralize how log output reaches the GUI. They emit messages
via a viewmodel's ``log_message`` signal when available and always record
them on the ``logging`` module as well, so nothing is lost when no view is
connected.
"""
from __future__ import annotations

import logging
import sys
import traceback
from typing import Optional

logger = logging.getLogger("viewmodel")


def log_message(message: str, vm: Optional[object] = None, level: int = logging.INFO) -> None:
    """Emit *message* through ``vm.log_message`` when possible and log it."""
    text = str(message)
    logger.log(level, text)
    signal = getattr(vm, "log_message", None) if vm is not None else None
    if signal is not None and hasattr(signal, "emit"):
        signal.emit(text)


def log_exception(context: str, exc: Optional[BaseException] = None, vm: Optional[object] = None) -> None:
    """Format *exc* with traceback and delegate to :func:`log_message`."""
    if exc is None:
        exc = sys.exc_info()[1]
    if exc is None:
        payload = f"{context}: (no exception details available)"
    else:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        payload = f"{context}: {exc}\n{tb}"
    log_message(payload, vm=vm, level=logging.ERROR)


def safe_emit(signal, *args, vm: Optional[object] = None, signal_name: str = "signal"):
    """Emit a Qt signal; a failing slot is logged and re-raised.

    Args:
        signal: Qt signal to emit
        *args: Arguments to pass to signal.emit()
        vm: ViewModel instance for logging
        signal_name: Name of signal for error messages
    """
    try:
        signal.emit(*args)
    except Exception as e:
        log_exception(f"Failed to emit {signal_name}", e, vm=vm)
        raise
