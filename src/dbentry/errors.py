# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/errors.py


class EntrypointError(RuntimeError):
    """Base class for failures that abort the entrypoint with exit code 1."""


class ConfigurationError(EntrypointError):
    """Raised before any mutation when the environment or host facts are unusable."""


class StartupTimeoutError(EntrypointError):
    """Raised when the temporary mysqld never accepted a connection."""


class ProvisioningError(EntrypointError):
    """Raised when an administrative statement, init file or mysqld call fails."""


class DiscoveryUnavailable(EntrypointError):
    """No primary registered yet. Retried forever, never surfaced to the CLI."""
