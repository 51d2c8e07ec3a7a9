"""
Tool client module.

Command catalog, transports (local CLI and remote API) and the backends
that pair each transport with its decoder.
"""

from .backends import CliBackend, HttpBackend, MutationOutcome
from .commands import (
    ENTITY_COMMANDS,
    MUTATIONS,
    MutationRequest,
    MutationSpec,
    UngClient,
    build_mutation,
    mutation_spec,
)
from .runners import CliRunner, HttpRunner

__all__ = [
    # Commands
    "ENTITY_COMMANDS",
    "MUTATIONS",
    "MutationRequest",
    "MutationSpec",
    "UngClient",
    "build_mutation",
    "mutation_spec",
    # Transports
    "CliRunner",
    "HttpRunner",
    # Backends
    "CliBackend",
    "HttpBackend",
    "MutationOutcome",
]
