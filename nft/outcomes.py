"""
batchmint - Mint Outcomes and Reports

Every catalog entry yields exactly one outcome. The report is the JSON array
of all outcomes for a run, each tagged with a `status` discriminator.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Union


logger = logging.getLogger(__name__)


class MintStatus(str, Enum):
    """Outcome status of a single mint attempt."""
    SIMULATED = "simulated"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class SimulatedOutcome:
    """Mint pipeline ran without touching the network."""

    name: str
    asset_address: str
    status: ClassVar[MintStatus] = MintStatus.SIMULATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "name": self.name,
            "assetAddress": self.asset_address
        }


@dataclass(frozen=True)
class SuccessOutcome:
    """Asset created on-chain."""

    name: str
    asset_address: str
    metadata_uri: str
    signature: Optional[str] = None
    status: ClassVar[MintStatus] = MintStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status.value,
            "name": self.name,
            "assetAddress": self.asset_address,
            "metadataUri": self.metadata_uri
        }
        if self.signature:
            result["signature"] = self.signature
        return result


@dataclass(frozen=True)
class FailedOutcome:
    """Mint attempt failed; other items are unaffected."""

    source_file: str
    error_message: str
    error_type: Optional[str] = None
    status: ClassVar[MintStatus] = MintStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status.value,
            "sourceFile": self.source_file,
            "errorMessage": self.error_message
        }
        if self.error_type:
            result["errorType"] = self.error_type
        return result

    @classmethod
    def from_exception(cls, source_file: str, error: BaseException) -> 'FailedOutcome':
        message = str(error) or type(error).__name__
        return cls(source_file=source_file, error_message=message, error_type=type(error).__name__)


MintOutcome = Union[SimulatedOutcome, SuccessOutcome, FailedOutcome]


def summarize(outcomes: Iterable[MintOutcome]) -> Dict[str, int]:
    """Count outcomes by status."""
    counts = {"total": 0}
    counts.update({status.value: 0 for status in MintStatus})

    for outcome in outcomes:
        counts["total"] += 1
        counts[outcome.status.value] += 1

    return counts


def write_report(outcomes: List[MintOutcome], report_path: Union[str, Path]) -> Path:
    """
    Write the run report.

    Args:
        outcomes: Outcomes in catalog order
        report_path: Destination JSON file

    Returns:
        Path that was written
    """
    path = Path(report_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump([outcome.to_dict() for outcome in outcomes], f, indent=2, ensure_ascii=False)
        f.write("\n")

    logger.info(f"Wrote {len(outcomes)} outcomes to {path}")
    return path


def load_report(report_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read a report back as a list of dictionaries."""
    with open(Path(report_path).expanduser(), 'r', encoding='utf-8') as f:
        return json.load(f)
