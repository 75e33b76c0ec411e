"""
Registry — Named extensions available to the engine.

The registry answers two questions for a run: which extensions exist
(so dependencies outside the selected set are not "missing"), and
which ones to use when the caller passes only ids.
"""

from typing import Iterable, Optional

from glossa.core.conflicts import ConflictReport, check_conflicts
from glossa.core.contracts import Extension
from glossa.core.errors import DuplicateExtensionError, UnknownExtensionError
from glossa.core.logging import LogChannel, get_logger
from glossa.core.resolver import resolve_order

log = get_logger(LogChannel.SYSTEM)


class ExtensionRegistry:
    """Insertion-ordered map of extension id to descriptor."""

    def __init__(self, extensions: Iterable[Extension] = ()) -> None:
        self._extensions: dict[str, Extension] = {}
        self.register_many(extensions)

    def register(self, extension: Extension, overwrite: bool = False) -> None:
        """
        Register an extension.

        Raises:
            DuplicateExtensionError: id already registered and overwrite is False
        """
        if extension.id in self._extensions:
            if not overwrite:
                raise DuplicateExtensionError(extension.id)
            log.warning("extension_overwritten", extension_id=extension.id)
        self._extensions[extension.id] = extension

    def register_many(self, extensions: Iterable[Extension], overwrite: bool = False) -> None:
        for ext in extensions:
            self.register(ext, overwrite=overwrite)

    def unregister(self, extension_id: str) -> bool:
        """Remove an extension. Returns whether it was registered."""
        return self._extensions.pop(extension_id, None) is not None

    def get(self, extension_id: str) -> Optional[Extension]:
        return self._extensions.get(extension_id)

    def require(self, extension_id: str) -> Extension:
        ext = self._extensions.get(extension_id)
        if ext is None:
            raise UnknownExtensionError(extension_id)
        return ext

    def has(self, extension_id: str) -> bool:
        return extension_id in self._extensions

    def ids(self) -> list[str]:
        return list(self._extensions)

    def list_extensions(self) -> list[Extension]:
        return list(self._extensions.values())

    def select(self, extension_ids: Iterable[str]) -> list[Extension]:
        """Descriptors for ``extension_ids``, in the given order."""
        return [self.require(ext_id) for ext_id in extension_ids]

    def check_conflicts(self, extension_ids: Iterable[str]) -> ConflictReport:
        return check_conflicts(self.select(extension_ids))

    def resolve(self, extension_ids: Iterable[str], derive_dependencies: bool = False) -> list[str]:
        """Execution order for registered ids."""
        ordered = resolve_order(
            self.select(extension_ids),
            known_ids=self.ids(),
            derive_dependencies=derive_dependencies,
        )
        return [ext.id for ext in ordered]

    def clear(self) -> None:
        self._extensions.clear()

    def __contains__(self, extension_id: object) -> bool:
        return extension_id in self._extensions

    def __len__(self) -> int:
        return len(self._extensions)


_registry: Optional[ExtensionRegistry] = None


def get_registry() -> ExtensionRegistry:
    """Process-wide registry, populated with the built-in extensions."""
    global _registry
    if _registry is None:
        from glossa.extensions import register_builtins

        _registry = ExtensionRegistry()
        register_builtins(_registry)
    return _registry
