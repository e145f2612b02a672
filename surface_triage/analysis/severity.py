"""
Surface Triage - Severity Classifier

Deterministic severity assessment for execution surface records.

The policy is a small table of rules evaluated left to right:
- Baseline rules: first match wins and sets the starting level
- Escalators: every matching escalator adds its own reason and may raise
  the level (never lower it)

Levels: LOW < MEDIUM < HIGH < CRITICAL. Classification never mutates the
record and never raises for missing or malformed fields.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from surface_triage.models import Record, Severity

REGISTRY_SOURCES = frozenset({"registry", "registry-msi"})
AUTORUN_MECHANISMS = frozenset({"run_key", "run_once_key"})
SERVICE_KINDS = frozenset({"service", "driver", "sharedservice"})
DRIVER_SERVICE_TYPES = frozenset({"kerneldriver", "filesystemdriver"})
TEMP_MARKERS = ("/temp/", "/tmp/", "%temp%")
APPDATA_MARKERS = ("/appdata/roaming/", "/appdata/local/")
DOUBLE_EXTENSIONS = (".pdf.exe", ".doc.exe", ".txt.exe", ".jpg.exe", ".xls.exe")


class SeverityResult(BaseModel):
    """Outcome of classifying one record."""

    severity: Severity = Field(description="Overall severity level")
    reasons: List[str] = Field(default_factory=list, description="Justifications, primary first")

    @property
    def primary_reason(self) -> str:
        return self.reasons[0] if self.reasons else ""

    @property
    def reasons_text(self) -> str:
        return "; ".join(self.reasons)


class RecordFacts:
    """Lower-cased view of the record attributes the policy inspects."""

    def __init__(self, record: Record):
        self.record = record
        self.source = record.source.strip().lower()
        self.kind = record.kind.strip().lower()
        self.name = record.name.lower()
        self.mechanism = self.value("mechanism").strip().lower()
        self.context = self.value("context").strip().lower()
        self.service_type = self.value("serviceType").strip().lower()
        self.start_type = self.value("startType").strip().lower()
        self.path = (
            self.value("path")
            or self.value("resolvedPath")
            or self.value("rawValue")
        ).lower()
        self._normalized_path = self.path.replace("\\", "/")

    @property
    def is_autorun(self) -> bool:
        return self.source == "persistence" or self.mechanism == "run_key"

    @property
    def is_service(self) -> bool:
        return self.kind in SERVICE_KINDS or self.source == "service"

    @property
    def is_registry(self) -> bool:
        return self.source in REGISTRY_SOURCES

    @property
    def in_temp_dir(self) -> bool:
        return any(marker in self._normalized_path for marker in TEMP_MARKERS)

    @property
    def in_appdata(self) -> bool:
        return any(marker in self._normalized_path for marker in APPDATA_MARKERS)

    def value(self, key: str) -> str:
        """Normalized metadata first, then the scanner's raw metadata."""
        return self.record.meta(key) or self.record.raw_metadata.get(key, "")

    def missing(self, key: str) -> bool:
        return not self.value(key).strip()


Reason = Union[str, Callable[[RecordFacts], str]]


@dataclass(frozen=True)
class SeverityRule:
    """A predicate that contributes a severity level and a reason."""

    rule_id: str
    severity: Severity
    reason: Reason
    predicate: Callable[[RecordFacts], bool]

    def matches(self, facts: RecordFacts) -> bool:
        return self.predicate(facts)

    def describe(self, facts: RecordFacts) -> str:
        if callable(self.reason):
            return self.reason(facts)
        return self.reason


def _autorun_reason(facts: RecordFacts) -> str:
    if facts.mechanism in AUTORUN_MECHANISMS:
        if facts.context == "machine":
            return "HKLM Run key: executes for all users at every logon"
        return "Run key: executes at logon for a specific user"
    if facts.mechanism == "startup_folder":
        return "Startup folder entry: executes on logon"
    if facts.mechanism == "winlogon_value":
        return "Winlogon value: executes as SYSTEM before the user shell loads"
    return "Persistence mechanism registered: can auto-start on this host"


def _service_reason(facts: RecordFacts) -> str:
    if facts.kind == "driver":
        return "Driver: loads into the kernel with full hardware access"
    return "Windows service: runs at boot or on demand, often as a privileged account"


def _temp_escalation_reason(facts: RecordFacts) -> str:
    if facts.is_autorun:
        return "Persistence target in TEMP directory: strong malware indicator"
    return "Service binary in TEMP directory: immediate investigation required"


def _failure_action_reason(facts: RecordFacts) -> str:
    command = facts.value("failureCommand") or "(unspecified)"
    return f"Failure action executes binary on crash: {command}"


BASELINE_RULES: List[SeverityRule] = [
    SeverityRule(
        rule_id="BASE-AUTORUN",
        severity=Severity.HIGH,
        reason=_autorun_reason,
        predicate=lambda f: f.is_autorun,
    ),
    SeverityRule(
        rule_id="BASE-SERVICE",
        severity=Severity.HIGH,
        reason=_service_reason,
        predicate=lambda f: f.kind in ("service", "driver"),
    ),
    SeverityRule(
        rule_id="BASE-FS-TEMP",
        severity=Severity.HIGH,
        reason="Executable in TEMP location: classic dropper/stager location",
        predicate=lambda f: f.source == "filesystem" and "temp" in f.path,
    ),
    SeverityRule(
        rule_id="BASE-REGISTRY-STANDARD",
        severity=Severity.LOW,
        reason="Standard installer registration with publisher, version, and date",
        predicate=lambda f: (
            f.is_registry
            and not f.missing("publisher")
            and not f.missing("displayVersion")
            and not f.missing("installDate")
        ),
    ),
    SeverityRule(
        rule_id="BASE-INSTALLED",
        severity=Severity.MEDIUM,
        reason="Installed Win32 software with incomplete installer registration",
        predicate=lambda f: f.source == "registry" or f.kind == "win32",
    ),
    SeverityRule(
        rule_id="BASE-DEFAULT",
        severity=Severity.LOW,
        reason="No elevated execution signals",
        predicate=lambda f: True,
    ),
]

ESCALATORS: List[SeverityRule] = [
    SeverityRule(
        rule_id="ESC-TEMP-AUTOSTART",
        severity=Severity.CRITICAL,
        reason=_temp_escalation_reason,
        predicate=lambda f: (f.is_autorun or f.kind in ("service", "driver")) and f.in_temp_dir,
    ),
    SeverityRule(
        rule_id="ESC-MISSING-BINARY",
        severity=Severity.CRITICAL,
        reason="Registered binary missing from disk: entry orphaned or binary deleted post-install",
        predicate=lambda f: f.is_service and f.value("fileExists").strip().lower() == "false",
    ),
    SeverityRule(
        rule_id="ESC-KERNEL-DRIVER",
        severity=Severity.HIGH,
        reason="Kernel/filesystem driver: ring-0 execution, no memory protection",
        predicate=lambda f: f.service_type in DRIVER_SERVICE_TYPES,
    ),
    SeverityRule(
        rule_id="ESC-FAILURE-ACTION",
        severity=Severity.HIGH,
        reason=_failure_action_reason,
        predicate=lambda f: f.value("failureActions").strip().lower() == "run_program",
    ),
    SeverityRule(
        rule_id="ESC-EARLY-START",
        severity=Severity.MEDIUM,
        reason="Start type Boot/System: loads before user space and before AV initialises",
        predicate=lambda f: f.is_service and f.start_type in ("boot", "system"),
    ),
    SeverityRule(
        rule_id="ESC-REGISTRY-TEMP",
        severity=Severity.HIGH,
        reason="Binary installed to TEMP directory: strong indicator of dropper activity",
        predicate=lambda f: f.is_registry and f.in_temp_dir,
    ),
    SeverityRule(
        rule_id="ESC-NO-PUBLISHER",
        severity=Severity.MEDIUM,
        reason="No publisher recorded: cannot verify software origin",
        predicate=lambda f: f.is_registry and f.missing("publisher"),
    ),
    SeverityRule(
        rule_id="ESC-NO-VERSION",
        severity=Severity.MEDIUM,
        reason="No version string: unusual for legitimate installers",
        predicate=lambda f: f.is_registry and f.missing("displayVersion"),
    ),
    SeverityRule(
        rule_id="ESC-NO-INSTALL-DATE",
        severity=Severity.MEDIUM,
        reason="No install date: may indicate manual registry write rather than installer",
        predicate=lambda f: f.is_registry and f.missing("installDate"),
    ),
    SeverityRule(
        rule_id="ESC-FS-APPDATA",
        severity=Severity.HIGH,
        reason="Executable in AppData: common malware install path",
        predicate=lambda f: f.source == "filesystem" and f.in_appdata and not f.in_temp_dir,
    ),
    SeverityRule(
        rule_id="ESC-DOUBLE-EXTENSION",
        severity=Severity.CRITICAL,
        reason="Double extension detected: masquerading as document file",
        predicate=lambda f: f.source == "filesystem" and f.name.endswith(DOUBLE_EXTENSIONS),
    ),
    SeverityRule(
        rule_id="ESC-SIDELOAD",
        severity=Severity.MEDIUM,
        reason="AppX package installed outside WindowsApps: possible sideloaded package",
        predicate=lambda f: f.source == "os_catalog" and f.path != "" and "windowsapps" not in f.path,
    ),
]


class SeverityClassifier:
    """
    Classifies records with an ordered baseline table plus escalators.

    The tables are plain lists of SeverityRule so each rule can be tested
    on its own and new escalators can be appended without touching the
    existing policy.
    """

    def __init__(
        self,
        baseline_rules: Optional[List[SeverityRule]] = None,
        escalators: Optional[List[SeverityRule]] = None,
    ):
        self.baseline_rules = list(BASELINE_RULES if baseline_rules is None else baseline_rules)
        self.escalators = list(ESCALATORS if escalators is None else escalators)

    def add_escalator(self, rule: SeverityRule) -> None:
        self.escalators.append(rule)

    def baseline(self, record: Record) -> Optional[SeverityRule]:
        """Return the first baseline rule matching the record."""
        facts = RecordFacts(record)
        for rule in self.baseline_rules:
            if rule.matches(facts):
                return rule
        return None

    def classify(self, record: Record) -> SeverityResult:
        """
        Compute severity and reasons for a record.

        Args:
            record: Record to classify (left untouched)

        Returns:
            SeverityResult with the level and ordered reasons
        """
        facts = RecordFacts(record)
        level = Severity.LOW
        reasons: List[str] = []

        for rule in self.baseline_rules:
            if rule.matches(facts):
                level = rule.severity
                reasons.append(rule.describe(facts))
                break

        for rule in self.escalators:
            if rule.matches(facts):
                if rule.severity.rank > level.rank:
                    level = rule.severity
                reasons.append(rule.describe(facts))

        return SeverityResult(severity=level, reasons=reasons)

    def apply(self, record: Record) -> Record:
        """Return a copy of the record carrying freshly computed severity."""
        result = self.classify(record)
        return record.model_copy(
            update={
                "severity": result.severity.value,
                "severity_reasons": result.reasons_text,
            }
        )

    def classify_all(self, records: Iterable[Record]) -> List[Record]:
        return [self.apply(record) for record in records]


DEFAULT_CLASSIFIER = SeverityClassifier()


def classify(record: Record) -> SeverityResult:
    """Classify a record with the default policy."""
    return DEFAULT_CLASSIFIER.classify(record)


def effective_severity(record: Record) -> Severity:
    """Severity carried by the record if recognized, otherwise computed."""
    level = record.severity_level
    if level is not None:
        return level
    return DEFAULT_CLASSIFIER.classify(record).severity
