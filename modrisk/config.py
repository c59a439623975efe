"""Runtime configuration read from ``MODRISK_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class Settings:
    """Engine settings.

    ``home`` is the root directory of every JSON store; each store lives in
    its own file below it.
    """

    home: Path
    risk_policy_path: Optional[Path] = None
    detect_profanity: bool = False
    seed_defaults: bool = True
    log_level: str = "WARNING"
    webhook_timeout: float = 10.0

    @classmethod
    def from_env(cls, home: Optional[str | Path] = None) -> "Settings":
        """Build settings from the environment; *home* overrides ``MODRISK_HOME``."""
        home_path = Path(home) if home else Path(
            os.environ.get("MODRISK_HOME", str(Path.home() / ".modrisk"))
        ).expanduser()
        policy = os.environ.get("MODRISK_RISK_POLICY", "").strip()
        try:
            timeout = float(os.environ.get("MODRISK_WEBHOOK_TIMEOUT", "10"))
        except ValueError:
            timeout = 10.0
        return cls(
            home=home_path,
            risk_policy_path=Path(policy).expanduser() if policy else None,
            detect_profanity=_env_flag("MODRISK_DETECT_PROFANITY", False),
            seed_defaults=_env_flag("MODRISK_SEED_DEFAULTS", True),
            log_level=os.environ.get("MODRISK_LOG_LEVEL", "WARNING").upper(),
            webhook_timeout=timeout,
        )

    # -- store locations -----------------------------------------------------

    @property
    def moderation_dir(self) -> Path:
        return self.home / "moderation"

    @property
    def risk_dir(self) -> Path:
        return self.home / "risk"

    @property
    def audit_dir(self) -> Path:
        return self.home / "audit_logs"

    @property
    def notifications_dir(self) -> Path:
        return self.home / "notifications"
