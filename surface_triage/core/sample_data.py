"""Built-in demo dataset used when no scanner export is supplied."""

from typing import Any, Dict, List

SAMPLE_ENTRIES: List[Dict[str, Any]] = [
    {
        "name": "Contoso Agent", "type": "Win32", "source": "registry",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "C:/Program Files/Contoso/agent.exe",
            "publisher": "Contoso Corp",
            "registryPath": "...Uninstall/ContosoAgent",
            "displayVersion": "3.2.1",
            "uninstallCmd": "MsiExec.exe /X{CONTOSO-GUID}",
        },
    },
    {
        "name": "Tailspin.App", "type": "UWP", "source": "os_catalog",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "C:/Program Files/WindowsApps/Tailspin.App",
            "publisher": "Tailspin Toys",
            "displayVersion": "1.0.0",
        },
    },
    {
        "name": "OneDrive", "type": "Service", "source": "persistence",
        "scope": "per-user", "userSID": "S-1-5-21-1004336348-1177238915-682003330-1001",
        "metadata": {
            "path": "C:/Users/user/AppData/Local/Microsoft/OneDrive/OneDrive.exe",
            "publisher": "Microsoft Corporation",
            "mechanism": "run_key",
            "context": "user",
            "displayVersion": "23.201.1002.0005",
            "uninstallCmd": "%LocalAppData%\\Microsoft\\OneDrive\\OneDriveSetup.exe /uninstall",
        },
    },
    {
        "name": "7-Zip 22.01", "type": "Win32", "source": "registry",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "C:/Program Files/7-Zip",
            "publisher": "Igor Pavlov",
            "displayVersion": "22.01",
            "installDate": "20230101",
            "uninstallCmd": "MsiExec.exe /I{23170F69-40C1-2702-2201-000001000000}",
        },
    },
    {
        "name": "Chrome", "type": "Win32", "source": "registry",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "C:/Program Files/Google/Chrome/Application",
            "publisher": "Google LLC",
            "displayVersion": "119.0.6045.160",
            "uninstallCmd": "MsiExec.exe /X{chrome-guid}",
        },
    },
    {
        "name": "Slack", "type": "Win32", "source": "registry",
        "scope": "per-user", "userSID": "S-1-5-21-1004336348-1177238915-682003330-1001",
        "metadata": {
            "path": "C:/Users/user/AppData/Local/slack",
            "publisher": "Slack Technologies",
            "displayVersion": "4.35.126",
            "uninstallCmd": "C:/Users/user/AppData/Local/slack/Update.exe --uninstall",
        },
    },
    {
        "name": "vcredist_x64", "type": "Win32", "source": "registry-msi",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "",
            "publisher": "Microsoft Corporation",
            "displayVersion": "14.36.32532.0",
        },
    },
    {
        "name": "UpdaterSvc", "type": "Service", "source": "persistence",
        "scope": "per-user", "userSID": "S-1-5-21-1004336348-1177238915-682003330-1001",
        "metadata": {
            "path": "C:/Users/user/AppData/Local/Temp/updsvc.exe",
            "mechanism": "run_key",
            "context": "user",
        },
    },
    {
        "name": "ctxflt", "type": "Driver", "source": "service",
        "scope": "per-machine", "userSID": "N/A",
        "metadata": {
            "path": "C:/Windows/System32/drivers/ctxflt.sys",
            "resolvedPath": "C:/Windows/System32/drivers/ctxflt.sys",
            "serviceType": "KernelDriver",
            "startType": "System",
            "objectName": "",
            "fileExists": "false",
        },
    },
    {
        "name": "invoice.pdf.exe", "type": "Portable", "source": "filesystem",
        "scope": "per-user", "userSID": "N/A",
        "metadata": {
            "path": "C:/Users/user/Downloads/invoice.pdf.exe",
        },
    },
]
