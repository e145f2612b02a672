"""Audit logging for triage sessions.

Records what an operator did during a session: which dataset was loaded,
which rules were added, edited or removed, and what was exported. Entries
are written as JSON lines and as human-readable text through rotating
file handlers.
"""

import json
import logging
import logging.handlers
import os
import platform
import socket
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class AuditLevel(str, Enum):
    """Audit event severity levels."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AuditLogger:
    """Session audit logger backed by rotating JSONL and text files."""

    def __init__(
        self,
        log_dir: Path,
        log_name: str = "surface_triage_audit",
        max_bytes: int = 5 * 1024 * 1024,  # 5MB
        backup_count: int = 5,
    ):
        """Initialize audit logger with rotating file handlers."""
        self.log_dir = Path(log_dir)
        self.log_name = log_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._lock = threading.Lock()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.json_logger = self._setup_logger("json", f"{self.log_name}.jsonl")
        self.text_logger = self._setup_logger("text", f"{self.log_name}.log")

    @property
    def json_path(self) -> Path:
        return self.log_dir / f"{self.log_name}.jsonl"

    def _setup_logger(self, suffix: str, filename: str) -> logging.Logger:
        """Setup a logger with its own rotating file handler."""
        logger = logging.getLogger(f"{self.log_name}_{suffix}")
        logger.setLevel(logging.INFO)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(logging.INFO)
        logger.addHandler(handler)
        logger.propagate = False

        return logger

    def _get_system_info(self) -> dict:
        """Get current system information for audit entry."""
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = "unknown"

        return {
            "workstation": hostname,
            "user": os.environ.get("USERNAME") or os.environ.get("USER", "unknown"),
            "pid": os.getpid(),
            "platform": platform.system(),
        }

    def _format_text_entry(self, entry: dict) -> str:
        """Format audit entry as human-readable text."""
        status = "[OK]" if entry.get("success", True) else "[FAIL]"

        parts = [
            entry["timestamp"],
            entry["level"],
            status,
            f"User: {entry['system_info']['user']}",
            f"Action: {entry['action']}",
        ]
        if entry.get("category"):
            parts.append(f"Category: {entry['category']}")

        return " | ".join(parts)

    def log(
        self,
        level: AuditLevel,
        action: str,
        details: dict = None,
        category: str = None,
        success: bool = True,
    ) -> None:
        """Log an audit event."""
        with self._lock:
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level.value,
                "action": action,
                "success": success,
                "system_info": self._get_system_info(),
            }
            if details:
                entry["details"] = details
            if category:
                entry["category"] = category

            self.json_logger.info(json.dumps(entry, ensure_ascii=False, default=str))
            self.text_logger.info(self._format_text_entry(entry))

    def log_dataset_load(self, source: str, entry_count: int) -> None:
        """Log a successful dataset load or reload."""
        self.log(
            level=AuditLevel.INFO,
            action="DATASET_LOAD",
            details={"source": source, "entry_count": entry_count},
        )

    def log_rule_change(self, category: str, action: str, rule: Optional[dict] = None) -> None:
        """Log a rule-set mutation (add, edit, remove, logic toggle, clear)."""
        details = {"rule": rule} if rule else None
        self.log(
            level=AuditLevel.INFO,
            action=f"RULE_{action.upper()}",
            details=details,
            category=category,
        )

    def log_export(self, category: str, export_path: str, entry_count: int) -> None:
        """Log export of a filtered view."""
        self.log(
            level=AuditLevel.INFO,
            action="DATA_EXPORT",
            details={"export_path": str(export_path), "entry_count": entry_count},
            category=category,
        )

    def log_error(self, action: str, error: Exception) -> None:
        """Log error event with exception details."""
        self.log(
            level=AuditLevel.ERROR,
            action=action,
            details={"error_type": type(error).__name__, "error_message": str(error)},
            success=False,
        )

    def get_audit_trail(self, action: str = None, category: str = None) -> list[dict]:
        """Query audit trail from the JSON log file."""
        if not self.json_path.exists():
            return []

        entries = []
        with open(self.json_path, "r", encoding="utf-8") as f:
            for line in f:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue

                if action and entry.get("action") != action:
                    continue
                if category and entry.get("category") != category:
                    continue
                entries.append(entry)

        return entries

    def close(self) -> None:
        """Flush and release the file handlers."""
        for logger in (self.json_logger, self.text_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
