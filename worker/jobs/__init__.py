"""Sweep passes run by the reminder dispatch scheduler."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class PassResult:
    """Counts for one pass of a sweep.

    error is set only when the pass as a whole could not run; per-item
    failures are counted in failed and do not make the pass fail.
    """

    name: str
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "error": self.error,
        }


__all__ = ["PassResult"]
