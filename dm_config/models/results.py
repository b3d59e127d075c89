from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from dm_config.models.sections import FieldMap, SectionId, section_label


@dataclass
class SectionState:
    current: FieldMap = field(default_factory=dict)
    baseline: Optional[FieldMap] = None  # None => never loaded this session


class SaveState(str, Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    SAVING = "saving"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SaveState.SUCCEEDED, SaveState.PARTIALLY_FAILED, SaveState.FAILED)


class RebootOutcome(str, Enum):
    NOT_REQUIRED = "not_required"
    DEVICE_INITIATED = "device_initiated"
    REQUESTED = "requested"
    FAILED = "failed"


class GatewayResponse(BaseModel):
    """Body of every backend write: {success, message?, error?}."""
    model_config = ConfigDict(extra='ignore')
    success: bool = False
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def text(self) -> str:
        return self.message or self.error or ""


@dataclass(frozen=True)
class SaveGate:
    allowed: bool
    dirty_sections: List[SectionId] = field(default_factory=list)
    invalid_sections: List[SectionId] = field(default_factory=list)
    reason: str = ""


@dataclass(frozen=True)
class SectionLoadError:
    section: SectionId
    message: str


@dataclass(frozen=True)
class SaveResult:
    section: SectionId
    success: bool
    error_message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None  # snapshot that was sent


@dataclass(frozen=True)
class RebootResult:
    outcome: RebootOutcome
    message: str = ""


@dataclass
class SaveReport:
    state: SaveState
    results: List[SaveResult] = field(default_factory=list)
    reboot: RebootResult = field(default_factory=lambda: RebootResult(RebootOutcome.NOT_REQUIRED))

    @property
    def succeeded(self) -> List[SectionId]:
        return [r.section for r in self.results if r.success]

    @property
    def failed(self) -> List[SectionId]:
        return [r.section for r in self.results if not r.success]

    def summary(self) -> str:
        """Operator-facing text: outcome, failed sections with their messages, reboot status."""
        lines: List[str] = []
        if self.state == SaveState.SUCCEEDED:
            names = ", ".join(section_label(s) for s in self.succeeded)
            lines.append(f"Saved: {names}")
        elif self.state == SaveState.PARTIALLY_FAILED:
            lines.append("Saved: " + ", ".join(section_label(s) for s in self.succeeded))
            lines.append("Not saved: " + ", ".join(section_label(s) for s in self.failed))
        else:
            lines.append("Save failed for: " + ", ".join(section_label(s) for s in self.failed))

        for r in self.results:
            if not r.success:
                lines.append(f"  {section_label(r.section)}: {r.error_message or 'unknown error'}")

        if self.reboot.outcome == RebootOutcome.DEVICE_INITIATED:
            lines.append("Network settings saved; the device is rebooting.")
        elif self.reboot.outcome == RebootOutcome.REQUESTED:
            lines.append(self.reboot.message or "Reboot initiated.")
        elif self.reboot.outcome == RebootOutcome.FAILED:
            lines.append(
                "Configuration was saved but the reboot request failed: "
                f"{self.reboot.message or 'unknown error'}"
            )
        return "\n".join(lines)
