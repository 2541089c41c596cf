"""Production configuration guard — enforces hard constraints at startup.

The guard runs once when a ``ConfigVault`` is constructed and fails hard
(raises ``ProductionConfigError``) if any constraint is violated, so the
rest of the code never needs scattered ``if is_production`` checks.
"""

from __future__ import annotations

import logging

from configvault.config import VaultSettings

logger = logging.getLogger(__name__)

# Settings that MUST be non-empty in production.
PRODUCTION_REQUIRED_SECRETS: list[str] = [
    "update_password",
    "delete_password",
]


class ProductionConfigError(RuntimeError):
    """Raised when production configuration constraints are violated.

    The process should exit; this error must not be caught and ignored.
    """


def enforce_production_constraints(settings: VaultSettings) -> None:
    """Validate all production-critical configuration constraints.

    Constraints enforced
    --------------------
    1. Debug mode must be disabled.
    2. The shared update and delete secrets must be configured.

    Raises
    ------
    ProductionConfigError
        If any production constraint is violated.
    """
    if not settings.is_production:
        return

    violations: list[str] = []

    if settings.debug:
        violations.append(
            "debug=True is not allowed in production. Set CONFIGVAULT_DEBUG=false."
        )

    for key_name in PRODUCTION_REQUIRED_SECRETS:
        if not getattr(settings, key_name, ""):
            violations.append(
                f"{key_name} must be configured in production. "
                f"Set CONFIGVAULT_{key_name.upper()}."
            )

    if violations:
        message = "Production configuration violations:\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.error(message)
        raise ProductionConfigError(message)

    logger.info("Production constraints satisfied.")
