import io
import sys
import threading
import warnings
from contextlib import contextmanager
from functools import wraps
from typing import Iterator, List, Optional, Union

import click
import pandas as pd

from regparallel.internal.errors import ConfigurationError

# Warnings and stdout from worker threads go to the list and buffer registered for that thread
_captured = threading.local()


def print_wrap(func):
    @wraps(func)
    def wrapped(*args, **kwargs):
        click.echo("=" * 80)
        click.echo(f"Running {func.__name__}")
        click.echo("-" * 80)
        result = func(*args, **kwargs)
        click.echo("=" * 80)
        return result

    return wrapped


@contextmanager
def route_warnings() -> Iterator[None]:
    """
    Send every warning to the capture list of the thread that raised it (see `collect_warnings`).
    Warnings raised on a thread without a capture list are shown normally.
    This must be entered by the coordinating thread before any worker starts.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("always")
        show_original = warnings.showwarning

        def _show(message, category, filename, lineno, file=None, line=None):
            records = getattr(_captured, "records", None)
            if records is None:
                show_original(message, category, filename, lineno, file, line)
            else:
                records.append(f"{category.__name__}: {message}")

        warnings.showwarning = _show
        yield


class _ThreadRoutedStream:
    """Writes to the capture buffer of the current thread if it has one, otherwise to the wrapped stream"""

    def __init__(self, stream):
        self._stream = stream

    def write(self, text):
        buffer = getattr(_captured, "output", None)
        if buffer is None:
            return self._stream.write(text)
        return buffer.write(text)

    def flush(self):
        if getattr(_captured, "output", None) is None:
            self._stream.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)


@contextmanager
def route_output() -> Iterator[None]:
    """
    Send anything printed to stdout to the capture buffer of the thread that printed it (see `collect_output`).
    Like `route_warnings`, this replaces process-wide state and must be entered by the coordinating thread.
    """
    original = sys.stdout
    sys.stdout = _ThreadRoutedStream(original)
    try:
        yield
    finally:
        sys.stdout = original


@contextmanager
def collect_output() -> Iterator[io.StringIO]:
    """Collect stdout written by the current thread while inside the block"""
    previous = getattr(_captured, "output", None)
    buffer = io.StringIO()
    _captured.output = buffer
    try:
        yield buffer
    finally:
        _captured.output = previous


@contextmanager
def collect_warnings() -> Iterator[List[str]]:
    """Collect warnings raised on the current thread while inside the block"""
    previous = getattr(_captured, "records", None)
    records = []
    _captured.records = records
    try:
        yield records
    finally:
        _captured.records = previous


def _validate_variables(
    data: pd.DataFrame, variables: Optional[Union[str, List[str]]]
) -> List[str]:
    """Validate the list of variables to be regressed, returning it as a list"""
    if isinstance(variables, str):
        variables = [variables]
    variables = list(variables)

    if len(variables) == 0:
        raise ConfigurationError("No variables are available to run regression on")

    duplicated = pd.Index(variables)
    duplicated = list(duplicated[duplicated.duplicated()].unique())
    if len(duplicated) > 0:
        raise ConfigurationError(
            f"Variables must be unique, found duplicates: {', '.join(map(str, duplicated))}"
        )

    if isinstance(data, pd.DataFrame):
        missing = [v for v in variables if v not in data.columns]
        if len(missing) > 0:
            raise ConfigurationError(
                f"One or more variables were not found in the data: {', '.join(map(str, missing))}"
            )

    return variables
