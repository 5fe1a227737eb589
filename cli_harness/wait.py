from __future__ import annotations

import time
from typing import Callable, TypeVar, Union


T = TypeVar("T")

DEFAULT_TIMEOUT_SEC = 4.5
DEFAULT_INTERVAL_SEC = 0.05
DEFAULT_LABEL = "Condition not met"

Label = Union[str, Callable[[], str], None]


class ConditionNotMet(AssertionError):
    """A polled condition never became true within its budget."""


class _NotReady(ConditionNotMet):
    pass


def wait_until(
    fn: Callable[[], T],
    *,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    interval_sec: float = DEFAULT_INTERVAL_SEC,
    retry_on: type[Exception] | tuple[type[Exception], ...] = ConditionNotMet,
) -> T:
    """
    Call `fn` until it returns without raising `retry_on`.

    Any other exception aborts the wait immediately. When the budget runs out
    the last retryable exception is re-raised unchanged, so its message is
    whatever the check chose to report.
    """
    deadline = time.monotonic() + timeout_sec
    while True:
        try:
            return fn()
        except retry_on:
            if time.monotonic() >= deadline:
                raise
        time.sleep(interval_sec)


def _resolve_label(label: Label) -> str:
    if callable(label):
        return label()
    return label or DEFAULT_LABEL


def wait_for_condition(
    predicate: Callable[[], object],
    label: Label = None,
    *,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    interval_sec: float = DEFAULT_INTERVAL_SEC,
) -> None:
    """
    Block until `predicate()` is truthy, failing with `label` on timeout.

    `label` may be a callable so expensive diagnostics (captured output, for
    instance) are only built once the wait has actually failed.
    """

    def _check() -> None:
        if not predicate():
            raise _NotReady()

    try:
        wait_until(_check, timeout_sec=timeout_sec, interval_sec=interval_sec, retry_on=_NotReady)
    except _NotReady:
        raise ConditionNotMet(_resolve_label(label)) from None
