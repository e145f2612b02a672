"""
Raw scanner entry normalization.

Scanner output may arrive before normalization: a name, a top-level path,
a source tag and a raw metadata bag. This module fills in the attributes
the rest of the package expects (type, scope, userSID, explanation,
metadata.path). Only blank attributes are filled; values already present
are kept as-is.
"""

from typing import Any, Dict, Mapping

DRIVER_SERVICE_TYPES = ("KernelDriver", "FilesystemDriver")

SOURCE_TYPES = {
    "os_catalog": "UWP",
    "registry": "Win32",
    "registry-msi": "Win32",
    "persistence": "Service",
    "filesystem": "Portable",
}

SOURCE_EXPLANATIONS = {
    "registry": (
        "Found in uninstall registry keys; indicates installed software "
        "with standard registration and likely regular execution footprint."
    ),
    "registry-msi": (
        "Found in MSI UserData registry records; confirms Windows Installer-"
        "managed software and potential machine-wide impact."
    ),
    "os_catalog": (
        "Found in Windows AppX catalog; indicates packaged UWP app presence "
        "that can execute in user context."
    ),
    "filesystem": (
        "Found by executable file scan in Program Files paths; may indicate "
        "manually deployed or portable software that can run directly."
    ),
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def infer_type(source: str, metadata: Mapping[str, str]) -> str:
    """Infer the record type from its source and service type."""
    if source == "service":
        service_type = metadata.get("serviceType", "")
        if service_type in DRIVER_SERVICE_TYPES:
            return "Driver"
        if service_type == "SharedProcess":
            return "SharedService"
        return "Service"
    return SOURCE_TYPES.get(source, "Portable")


def infer_scope(source: str, metadata: Mapping[str, str]) -> str:
    """Infer installation scope from persistence context or registry hive."""
    if source == "service":
        return "per-machine"
    if source == "persistence":
        context = metadata.get("context")
        if context is not None and context != "machine":
            return "per-user"
        return "per-machine"
    registry_path = metadata.get("registryPath", "")
    if "HKEY_CURRENT_USER" in registry_path or "HKU\\" in registry_path:
        return "per-user"
    return "per-machine"


def infer_explanation(source: str, metadata: Mapping[str, str]) -> str:
    """Describe why an entry from this source matters on the host."""
    if source in SOURCE_EXPLANATIONS:
        return SOURCE_EXPLANATIONS[source]
    if source == "persistence":
        mechanism = metadata.get("mechanism", "")
        if mechanism:
            return (
                f"Found in persistence surface ({mechanism}); can auto-start and "
                f"maintain recurring execution on this host."
            )
        return (
            "Found in persistence surface; can auto-start and maintain "
            "recurring execution on this host."
        )
    if source == "service":
        if metadata.get("serviceType", "") in DRIVER_SERVICE_TYPES:
            return (
                "Kernel/filesystem driver registered in SCM; runs in ring-0 "
                "with full hardware access, no OS memory protection."
            )
        return (
            "Windows service registered in SCM; runs at boot or on-demand, "
            "potentially as SYSTEM or a privileged account."
        )
    return (
        f"Found by scanner source {source}; indicates executable presence "
        f"that may affect host attack surface."
    )


def normalize_entry(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fill blank attributes of a raw scanner entry.

    Args:
        entry: Entry as decoded from the scanner JSON

    Returns:
        New dictionary; the input mapping is not modified
    """
    result = dict(entry)
    source = _text(entry.get("source")).strip()

    raw_metadata = entry.get("rawMetadata")
    metadata = entry.get("metadata")
    merged: Dict[str, Any] = {}
    if isinstance(raw_metadata, dict):
        merged.update(raw_metadata)
    if isinstance(metadata, dict):
        merged.update(metadata)

    top_level_path = _text(entry.get("path"))
    if top_level_path and not _text(merged.get("path")):
        merged["path"] = top_level_path
    result["metadata"] = merged

    str_metadata = {str(k): _text(v) for k, v in merged.items()}

    # Sourceless entries are left for the classifier to treat as unknown
    if source:
        if not _text(entry.get("type")).strip():
            result["type"] = infer_type(source, str_metadata)
        if not _text(entry.get("scope")).strip():
            result["scope"] = infer_scope(source, str_metadata)
        if not _text(entry.get("explanation")).strip():
            result["explanation"] = infer_explanation(source, str_metadata)

    if not _text(entry.get("userSID")).strip():
        result["userSID"] = str_metadata.get("userSid") or "N/A"

    return result
