"""Evaluation results of bindings."""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Ready:
    """The binding resolved to ``value``."""

    value: Any


@dataclass(frozen=True, slots=True)
class Loading:
    """A value the binding reads is not available yet."""


@dataclass(frozen=True, slots=True)
class Failed:
    """The binding raised ``error``."""

    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def stack(self) -> str:
        return "".join(traceback.format_exception(self.error))

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "type": type(self.error).__name__}


type LiveBinding = Ready | Loading | Failed
