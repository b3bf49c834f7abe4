"""Error taxonomy for nodeflow runs.

Every error raised by the engine carries a ``retriable`` flag. Retriable
errors allow the dispatcher to re-attempt the whole run, relying on the step
ledger to skip completed side effects. Non-retriable errors terminate the run
immediately.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class NodeflowError(Exception):
    """Base class for all nodeflow errors."""

    retriable: bool = False


class NonRetriableError(NodeflowError):
    """A failure that no amount of retrying can resolve."""

    retriable = False


class RetriableError(NodeflowError):
    """A transient failure; the run may be attempted again."""

    retriable = True


class ConfigurationError(NonRetriableError):
    """Configuration is missing or invalid."""


class InvalidGraph(NonRetriableError):
    """The workflow graph violates a structural invariant."""


class CycleDetected(NonRetriableError):
    """The workflow graph contains at least one cycle."""

    def __init__(self, nodes: Iterable[str]) -> None:
        self.nodes: List[str] = list(nodes)
        super().__init__(
            f"Workflow contains a cycle involving nodes: {', '.join(self.nodes)}"
        )


class UnknownNodeType(NonRetriableError):
    """No executor is registered for a node type."""

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type
        super().__init__(f"Unknown node type: {node_type}")


class MissingConfiguration(NonRetriableError):
    """A node is missing a required configuration field."""

    def __init__(self, field: str, node_type: Optional[str] = None) -> None:
        self.field = field
        self.node_type = node_type
        prefix = f"{node_type} node: " if node_type else ""
        super().__init__(f"{prefix}missing required field '{field}'")


class CredentialNotFound(NonRetriableError):
    """The credential is absent or belongs to another owner."""

    def __init__(self, credential_id: str) -> None:
        self.credential_id = credential_id
        super().__init__(f"Credential not found: {credential_id}")


class CredentialDecryptionError(NonRetriableError):
    """The stored credential could not be decrypted with the process key."""


class TemplateCompileError(NonRetriableError):
    """A user-authored template is malformed."""


class WorkflowNotFound(NonRetriableError):
    """The definition store has no workflow with the requested id."""

    def __init__(self, workflow_id: str) -> None:
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class RunCancelled(NonRetriableError):
    """The run was cancelled between node dispatches."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run {run_id} was cancelled")


class RetriableEffectError(RetriableError):
    """An external effect failed transiently."""


class NonRetriableEffectError(NonRetriableError):
    """An external effect failed permanently (e.g. malformed request)."""


__all__ = [
    "NodeflowError",
    "NonRetriableError",
    "RetriableError",
    "ConfigurationError",
    "InvalidGraph",
    "CycleDetected",
    "UnknownNodeType",
    "MissingConfiguration",
    "CredentialNotFound",
    "CredentialDecryptionError",
    "TemplateCompileError",
    "WorkflowNotFound",
    "RunCancelled",
    "RetriableEffectError",
    "NonRetriableEffectError",
]
