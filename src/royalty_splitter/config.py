"""
Royalty Splitter - Configuration Store

Holds the process-wide tunables that gate split definition and distribution:
the basis-point denominator, share bounds, the per-work recipient limit, the
pause flag and the administrator identity.

The configuration is a plain dataclass owned by the splitter service and
passed into every registry and engine call. Mutation goes through
``ConfigStore`` setters, each guarded by an administrator check.
"""

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any

from .errors import ErrorCode, Result, failure, success

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Reserved burn identity; never a valid recipient or administrator
NULL_PRINCIPAL = "SP000000000000000000002Q6VF78"

DEFAULT_BASIS_POINTS = 10000  # 10000 bps = 100%
DEFAULT_MIN_SHARE = 1
DEFAULT_MAX_SHARE = 10000
DEFAULT_MAX_SPLITS_PER_WORK = 10
DEFAULT_ADMIN = "ST1ADMIN"


def is_int(value: Any) -> bool:
    """True for real integers (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_principal(identity: Any) -> bool:
    """True if identity is a non-empty string other than the null identity."""
    return isinstance(identity, str) and bool(identity) and identity != NULL_PRINCIPAL


@dataclass
class GlobalConfig:
    """Global tunables read by every operation."""

    basis_points: int = DEFAULT_BASIS_POINTS
    min_share: int = DEFAULT_MIN_SHARE
    max_share: int = DEFAULT_MAX_SHARE
    max_splits_per_work: int = DEFAULT_MAX_SPLITS_PER_WORK
    paused: bool = False
    admin: str = DEFAULT_ADMIN

    def __post_init__(self):
        # Bounds every ConfigStore setter preserves. max_share may exceed
        # basis_points after set_basis_points lowers the denominator.
        if not is_int(self.basis_points) or self.basis_points <= 0:
            raise ValueError(f"basis_points must be a positive integer, got {self.basis_points!r}")
        if not is_int(self.min_share) or self.min_share <= 0:
            raise ValueError(f"min_share must be a positive integer, got {self.min_share!r}")
        if not is_int(self.max_share) or self.max_share < self.min_share:
            raise ValueError(f"max_share must be at least {self.min_share}, got {self.max_share!r}")
        if not is_int(self.max_splits_per_work) or self.max_splits_per_work <= 0:
            raise ValueError(f"max_splits_per_work must be positive, got {self.max_splits_per_work!r}")
        if not is_valid_principal(self.admin):
            raise ValueError(f"Invalid administrator identity: {self.admin!r}")

    @classmethod
    def from_env(cls) -> "GlobalConfig":
        """
        Build a configuration from environment variables.

        Environment variables:
            SPLITTER_ADMIN: Administrator identity (default: ST1ADMIN)
            SPLITTER_BASIS_POINTS: Share denominator (default: 10000)
            SPLITTER_MIN_SHARE: Smallest allowed share (default: 1)
            SPLITTER_MAX_SHARE: Largest allowed share (default: 10000)
            SPLITTER_MAX_SPLITS: Max recipients per work (default: 10)
            SPLITTER_PAUSED: "true" to start paused (default: false)
        """
        return cls(
            basis_points=int(os.getenv("SPLITTER_BASIS_POINTS", str(DEFAULT_BASIS_POINTS))),
            min_share=int(os.getenv("SPLITTER_MIN_SHARE", str(DEFAULT_MIN_SHARE))),
            max_share=int(os.getenv("SPLITTER_MAX_SHARE", str(DEFAULT_MAX_SHARE))),
            max_splits_per_work=int(os.getenv("SPLITTER_MAX_SPLITS", str(DEFAULT_MAX_SPLITS_PER_WORK))),
            paused=os.getenv("SPLITTER_PAUSED", "false").lower() == "true",
            admin=os.getenv("SPLITTER_ADMIN", DEFAULT_ADMIN),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlobalConfig":
        """Rebuild from a dictionary produced by ``to_dict``."""
        defaults = cls()
        return cls(
            basis_points=int(data.get("basis_points", defaults.basis_points)),
            min_share=int(data.get("min_share", defaults.min_share)),
            max_share=int(data.get("max_share", defaults.max_share)),
            max_splits_per_work=int(data.get("max_splits_per_work", defaults.max_splits_per_work)),
            paused=bool(data.get("paused", defaults.paused)),
            admin=str(data.get("admin", defaults.admin)),
        )


class ConfigStore:
    """
    Admin-gated mutation of a GlobalConfig.

    Each setter checks the caller against the administrator first, then
    range-checks the new value, then mutates exactly one field.
    """

    def __init__(self, config: GlobalConfig | None = None):
        self.config = config if config is not None else GlobalConfig()

    def _require_admin(self, caller: str) -> Result | None:
        """Return a failure result unless caller is the administrator."""
        if caller != self.config.admin:
            return failure(ErrorCode.NOT_AUTHORIZED, caller=caller)
        return None

    def set_admin(self, caller: str, new_admin: str) -> Result:
        """Hand the administrator role to another identity."""
        denied = self._require_admin(caller)
        if denied:
            return denied
        if not is_valid_principal(new_admin):
            return failure(ErrorCode.INVALID_PRINCIPAL)

        previous = self.config.admin
        self.config.admin = new_admin
        logger.info("Administrator changed from %s to %s", previous, new_admin)
        return success(field="admin", value=new_admin)

    def set_paused(self, caller: str, paused: bool) -> Result:
        """Pause or resume split mutation and distribution."""
        denied = self._require_admin(caller)
        if denied:
            return denied
        if not isinstance(paused, bool) or paused == self.config.paused:
            return failure(ErrorCode.INVALID_PAUSE_STATE, paused=self.config.paused)

        self.config.paused = paused
        logger.warning("Splitter %s by %s", "paused" if paused else "resumed", caller)
        return success(field="paused", value=paused)

    def set_basis_points(self, caller: str, basis_points: int) -> Result:
        """Replace the share denominator. Existing splits are not re-validated."""
        denied = self._require_admin(caller)
        if denied:
            return denied
        if not is_int(basis_points) or basis_points <= 0:
            return failure(ErrorCode.INVALID_BASIS_POINTS)

        self.config.basis_points = basis_points
        return success(field="basis_points", value=basis_points)

    def set_min_share(self, caller: str, min_share: int) -> Result:
        denied = self._require_admin(caller)
        if denied:
            return denied
        if not is_int(min_share) or min_share <= 0 or min_share > self.config.max_share:
            return failure(ErrorCode.INVALID_MIN_SHARE, max_share=self.config.max_share)

        self.config.min_share = min_share
        return success(field="min_share", value=min_share)

    def set_max_share(self, caller: str, max_share: int) -> Result:
        denied = self._require_admin(caller)
        if denied:
            return denied
        if (
            not is_int(max_share)
            or max_share < self.config.min_share
            or max_share > self.config.basis_points
        ):
            return failure(
                ErrorCode.INVALID_MAX_SHARE,
                min_share=self.config.min_share,
                basis_points=self.config.basis_points,
            )

        self.config.max_share = max_share
        return success(field="max_share", value=max_share)

    def set_max_splits(self, caller: str, max_splits: int) -> Result:
        denied = self._require_admin(caller)
        if denied:
            return denied
        if not is_int(max_splits) or max_splits <= 0:
            return failure(ErrorCode.MAX_SPLITS_EXCEEDED)

        self.config.max_splits_per_work = max_splits
        return success(field="max_splits_per_work", value=max_splits)
