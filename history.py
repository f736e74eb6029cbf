"""
Render history: a JSON-lines log of rendered packed states.

Each render is keyed by its SVG digest; a digest already in the log is not
appended again.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field, asdict
from pathlib import Path

from config import settings

logger = logging.getLogger(__name__)


@dataclass
class RenderRecord:
    """A single rendered sculpture."""
    packed: str
    digest: str
    scene_index: int = 0
    timestamp: float = field(default_factory=time.time)


@dataclass
class RenderLog:
    """Append-only render log, deduplicated by digest."""
    log_id: str
    records: list[RenderRecord] = field(default_factory=list)

    @property
    def log_path(self) -> Path:
        return settings.HISTORY_DIR / f"{self.log_id}.jsonl"

    def __contains__(self, digest: str) -> bool:
        return any(r.digest == digest for r in self.records)

    def record(self, packed: str, digest: str, scene_index: int = 0) -> bool:
        """Append a render unless its digest is already logged. Returns True if appended."""
        if digest in self:
            return False
        entry = RenderRecord(packed=packed, digest=digest, scene_index=scene_index)
        self.records.append(entry)
        self._append_to_log(entry)
        return True

    def _append_to_log(self, entry: RenderRecord) -> None:
        settings.HISTORY_DIR.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry)) + "\n")
        logger.info("Logged render %s to %s", entry.digest[:12], self.log_path)

    def digests(self) -> list[str]:
        return [r.digest for r in self.records]

    @classmethod
    def load(cls, log_id: str) -> RenderLog:
        """Load a log from its JSONL file; duplicate lines are skipped."""
        log = cls(log_id=log_id)
        if log.log_path.exists():
            with open(log.log_path, "r", encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    entry = RenderRecord(**json.loads(line))
                    if entry.digest not in log:
                        log.records.append(entry)
        return log
