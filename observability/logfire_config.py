"""
Logfire configuration and initialization.

Logfire provides structured logging and tracing for the API and the
DataTable query layer.

Environment Variables:
    LOGFIRE_TOKEN: Logfire project token (optional; nothing is sent without it)
    ENVIRONMENT: deployment environment (development, staging, production)
"""
import os
from typing import Optional

import logfire


class LogfireConfig:
    """
    Logfire configuration singleton.

    Ensures Logfire is initialized only once. Without a token, spans and
    logs stay local and the application runs normally.
    """

    _initialized = False

    @classmethod
    def initialize(cls, token: Optional[str] = None) -> None:
        """
        Initialize Logfire.

        Args:
            token: Logfire project token (or set LOGFIRE_TOKEN env var)
        """
        if cls._initialized:
            return

        token = token or os.getenv("LOGFIRE_TOKEN") or None

        logfire.configure(
            token=token,
            service_name="adminkit",
            environment=os.getenv("ENVIRONMENT", "development"),
            send_to_logfire="if-token-present",
        )

        cls._initialized = True

    @classmethod
    def is_initialized(cls) -> bool:
        """
        Check if Logfire has been initialized.

        Returns:
            True if initialized, False otherwise
        """
        return cls._initialized
