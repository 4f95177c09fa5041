"""Yes/no/cancel prompts used to ask before taking over a foreign RTT config."""
from __future__ import annotations

import enum
from typing import Optional, Protocol


class ConsentAnswer(enum.Enum):
    YES = "yes"
    NO = "no"
    CANCEL = "cancel"


class ConsentPrompter(Protocol):
    def __call__(self, title: str, message: str) -> ConsentAnswer: ...


def answer_from_tk(result: Optional[bool]) -> ConsentAnswer:
    if result is None:
        return ConsentAnswer.CANCEL
    return ConsentAnswer.YES if result else ConsentAnswer.NO


def tk_consent_prompter(title: str, message: str) -> ConsentAnswer:  # pragma: no cover - needs a display
    from tkinter import messagebox

    return answer_from_tk(messagebox.askyesnocancel(title, message, icon=messagebox.WARNING))
