# riordino/domain/errors.py
"""
Error taxonomy of the reorder system.

Errors carry a message, an optional short code and optional details so
that the CLI can print a structured message instead of a traceback.
Data quality problems found while importing are not exceptions: they are
collected as ``DataQualityWarning`` values and attached to the data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class RiordinoError(Exception):
    """Base exception for the reorder system."""

    default_message = "Errore del sistema di riordino"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.code:
            out["code"] = self.code
        if self.details:
            out["details"] = self.details
        return out


class NotFound(RiordinoError):
    """A referenced policy, item or draft line does not exist."""

    default_message = "Elemento non trovato"


class ConfigurationFault(NotFound):
    """No active policy: every calculation needs one, there is no fallback."""

    default_message = "Nessun set di parametri attivo"


class InvalidState(RiordinoError):
    """The operation is not allowed in the current state (e.g. approving an empty draft)."""

    default_message = "Operazione non consentita nello stato attuale"


class ImportValidationError(RiordinoError):
    """Blocking problems in an import file; ``details`` holds the messages."""

    default_message = "Il file contiene errori bloccanti"


@dataclass(frozen=True)
class DataQualityWarning:
    """Non-fatal anomaly found in one imported row."""
    code: str
    message: str
    row: Optional[int] = None

    def __str__(self) -> str:
        if self.row is not None:
            return f"Riga {self.row} (Codice: {self.code}): {self.message}"
        return self.message
