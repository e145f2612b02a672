"""
Surface Triage - Configuration

Field policy selection (PERMISSIVE, STRICT) and environment-driven session
settings. Command-line options take precedence over the environment.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import ClassVar, Dict, Optional

from pydantic import BaseModel, Field

from surface_triage.models import RuleLogic

logger = logging.getLogger(__name__)


class FieldPolicy(Enum):
    """
    How stale or invalid rule references are resolved.

    PERMISSIVE: unknown fields fall back to the category's first field and
        unknown operators match every record (default)
    STRICT: unknown fields and operators raise an error for the caller
    """

    PERMISSIVE = "permissive"
    STRICT = "strict"

    @classmethod
    def from_string(cls, policy_str: str) -> "FieldPolicy":
        """
        Parse field policy from string.

        Args:
            policy_str: Policy string ('permissive', 'strict')

        Returns:
            FieldPolicy enum value

        Raises:
            ValueError: If policy string is invalid
        """
        policy_str = policy_str.lower().strip()
        try:
            return cls(policy_str)
        except ValueError:
            raise ValueError(
                f"Invalid field policy: '{policy_str}'. "
                f"Must be one of: {', '.join(p.value for p in cls)}"
            )


class TriageSettings(BaseModel):
    """Settings shared by a triage session and the CLI."""

    field_policy: FieldPolicy = Field(
        default=FieldPolicy.PERMISSIVE,
        description="Resolution policy for unknown fields/operators",
    )
    default_logic: RuleLogic = Field(
        default=RuleLogic.AND,
        description="Logic assigned to fresh rule-sets",
    )
    audit_dir: Optional[Path] = Field(
        default=None,
        description="Directory for session audit logs (disabled when unset)",
    )

    ENV_VAR_POLICY: ClassVar[str] = "SURFACE_TRIAGE_FIELD_POLICY"
    ENV_VAR_AUDIT_DIR: ClassVar[str] = "SURFACE_TRIAGE_AUDIT_DIR"
    ENV_VAR_LOGIC: ClassVar[str] = "SURFACE_TRIAGE_DEFAULT_LOGIC"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "TriageSettings":
        """
        Build settings from environment variables.

        Invalid values are logged and replaced by defaults.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            TriageSettings instance
        """
        env = os.environ if environ is None else environ
        settings = cls()

        policy_str = env.get(settings.ENV_VAR_POLICY)
        if policy_str:
            try:
                settings.field_policy = FieldPolicy.from_string(policy_str)
            except ValueError as e:
                logger.warning(f"{e}. Defaulting to permissive policy.")

        logic_str = env.get(settings.ENV_VAR_LOGIC)
        if logic_str:
            try:
                settings.default_logic = RuleLogic.from_string(logic_str)
            except ValueError as e:
                logger.warning(f"{e}. Defaulting to AND logic.")

        audit_dir = env.get(settings.ENV_VAR_AUDIT_DIR, "").strip()
        if audit_dir:
            settings.audit_dir = Path(audit_dir)

        logger.debug(
            f"TriageSettings loaded: policy={settings.field_policy.value}, "
            f"logic={settings.default_logic.value}, audit_dir={settings.audit_dir}"
        )
        return settings
