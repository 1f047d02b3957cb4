"""
Interaction Gate: the confirm/prompt checkpoint in front of destructive and
money-affecting operations.

The gate holds at most one pending request. A request carries the
continuation that performs the operation; nothing is mutated until the
operator confirms, so cancelling needs no rollback.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Union

from ..validation import PreconditionError


@dataclass(frozen=True)
class NoRequest:
    def to_dict(self) -> dict:
        return {"type": None}


@dataclass(frozen=True)
class ConfirmRequest:
    title: str
    message: str
    danger: bool
    on_confirm: Callable[[], Any]

    def to_dict(self) -> dict:
        return {"type": "confirm", "title": self.title, "message": self.message, "danger": self.danger}


@dataclass(frozen=True)
class PromptRequest:
    title: str
    message: str
    initial: str
    on_confirm: Callable[[str], Any]

    def to_dict(self) -> dict:
        return {"type": "prompt", "title": self.title, "message": self.message, "initial": self.initial}


GateRequest = Union[NoRequest, ConfirmRequest, PromptRequest]
NO_REQUEST = NoRequest()


class InteractionGate:
    def __init__(self, lock=None):
        self._pending: GateRequest = NO_REQUEST
        # AppState passes state.lock so continuations and plain mutations serialize
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def pending(self) -> GateRequest:
        return self._pending

    @property
    def is_open(self) -> bool:
        return not isinstance(self._pending, NoRequest)

    def ask_confirm(
        self,
        title: str,
        message: str,
        on_confirm: Callable[[], Any],
        danger: bool = False,
    ) -> ConfirmRequest:
        request = ConfirmRequest(title=title, message=message, danger=danger, on_confirm=on_confirm)
        # Replaces whatever was pending; requests never queue
        with self._lock:
            self._pending = request
        return request

    def ask_prompt(
        self,
        title: str,
        message: str,
        initial: str,
        on_confirm: Callable[[str], Any],
    ) -> PromptRequest:
        request = PromptRequest(title=title, message=message, initial=initial or "", on_confirm=on_confirm)
        with self._lock:
            self._pending = request
        return request

    def confirm(self, value: str | None = None) -> Any:
        """
        Run the pending continuation and close the gate.

        For prompts, value defaults to the initial text; a blank value closes
        the gate without running the continuation. The gate is closed before
        the continuation runs, so an exception inside it still leaves the gate
        empty.
        """
        with self._lock:
            request = self._pending
            if isinstance(request, NoRequest):
                raise PreconditionError("Nothing to confirm")
            self._pending = NO_REQUEST

            if isinstance(request, ConfirmRequest):
                return request.on_confirm()

            text = request.initial if value is None else value
            text = (text or "").strip()
            if not text:
                return None
            return request.on_confirm(text)

    def cancel(self) -> bool:
        with self._lock:
            was_open = self.is_open
            self._pending = NO_REQUEST
        return was_open
