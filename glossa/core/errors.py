"""
Errors — Exception hierarchy for extension orchestration.

Resolution errors abort a run before anything executes.
Extension errors are scoped to one extension and handled by policy.
"""

from typing import Any, Optional, Sequence


class GlossaError(Exception):
    """Base class for all glossa errors."""


# ============================================================================
# Resolution
# ============================================================================

class ResolutionError(GlossaError):
    """The extension set cannot be ordered. Fatal for the run."""

    def __init__(self, message: str, extension_id: str):
        super().__init__(message)
        self.extension_id = extension_id


class CircularDependencyError(ResolutionError):
    """An extension was reached again while its own dependencies were being visited."""

    def __init__(self, extension_id: str, cycle: Sequence[str] = ()):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle) if self.cycle else extension_id
        super().__init__(
            f"Circular dependency detected involving extension '{extension_id}': {path}",
            extension_id,
        )


class MissingExtensionError(ResolutionError):
    """A declared dependency id matches no known extension."""

    def __init__(self, extension_id: str, dependency_id: str):
        self.dependency_id = dependency_id
        super().__init__(
            f"Extension '{extension_id}' depends on '{dependency_id}', "
            f"which is not registered or supplied",
            extension_id,
        )


class DuplicateExtensionError(ResolutionError):
    def __init__(self, extension_id: str):
        super().__init__(f"Extension '{extension_id}' is supplied more than once", extension_id)


class UnknownExtensionError(ResolutionError):
    """A requested extension id is not available."""

    def __init__(self, extension_id: str):
        super().__init__(f"Extension '{extension_id}' not found", extension_id)


# ============================================================================
# Execution
# ============================================================================

class ExtensionError(GlossaError):
    """Raised inside one extension's pass. Handled per policy."""

    def __init__(self, message: str, extension_id: str):
        super().__init__(message)
        self.extension_id = extension_id


class MissingDependencyError(ExtensionError):
    """
    A node lacks a field the executing extension requires.

    Args:
        extension_id: Extension whose requirement is unmet
        dependency_id: Extension expected to provide the field
        missing_field: Dotted field path (e.g. "extras.transcription")
        suggestion: How to fix it
    """

    def __init__(
        self,
        extension_id: str,
        dependency_id: str,
        missing_field: str,
        suggestion: str = "",
    ):
        self.dependency_id = dependency_id
        self.missing_field = missing_field
        self.suggestion = suggestion
        message = f"Extension '{extension_id}' requires '{missing_field}' from '{dependency_id}'."
        if suggestion:
            message = f"{message} {suggestion}"
        super().__init__(message, extension_id)


class MissingNodeTypeError(ExtensionError):
    """The tree contains none of a node type the extension requires."""

    def __init__(self, extension_id: str, node_type: str, suggestion: str = ""):
        self.node_type = node_type
        self.suggestion = suggestion
        message = f"Extension '{extension_id}' requires {node_type} nodes, but the tree has none."
        if suggestion:
            message = f"{message} {suggestion}"
        super().__init__(message, extension_id)


class FieldConflictError(GlossaError):
    """Two extensions wrote the same leaf under the ``error`` merge strategy."""

    def __init__(
        self,
        field: str,
        existing_extension_id: str,
        incoming_extension_id: str,
        existing_value: Any = None,
        incoming_value: Any = None,
    ):
        self.field = field
        self.existing_extension_id = existing_extension_id
        self.incoming_extension_id = incoming_extension_id
        self.existing_value = existing_value
        self.incoming_value = incoming_value
        super().__init__(
            f"Field '{field}' written by '{existing_extension_id}' would be "
            f"overwritten by '{incoming_extension_id}' "
            f"(existing={existing_value!r}, incoming={incoming_value!r})"
        )


# ============================================================================
# Run outcome
# ============================================================================

class RunCancelledError(GlossaError):
    """The run's cancellation token fired."""


class PipelineAbortedError(GlossaError):
    """
    Raised by ``RunResult.raise_for_status()`` for an aborted run.

    Carries the report so callers can still inspect what applied.
    """

    def __init__(self, report: Any, message: Optional[str] = None):
        self.report = report
        failure = report.errors[0] if report.errors else None
        self.failure = failure
        if message is None:
            message = (
                f"Pipeline aborted at '{failure.extension_id}': {failure.message}"
                if failure else "Pipeline aborted"
            )
        super().__init__(message)
