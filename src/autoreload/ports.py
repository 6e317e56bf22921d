"""Host-facing ports: where watched paths come from and how they are toggled.

A host application implements RegistrationSource to list the (name, path)
slots it wants watched and to be told when a slot's file changed, and
optionally ToggleHost to give operators one enable/disable switch per file.
In-memory implementations are provided for the command line and tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RegistrationSource(Protocol):
    """Supplies paths to watch and receives change notifications."""

    def watch_targets(self) -> Iterable[tuple[str, str]]:
        """Current (name, path) pairs. Empty paths are not watched."""
        ...

    def set_file_path(self, name: str, path: str) -> None:
        """Re-apply a path to a slot so the host reloads it."""
        ...


@runtime_checkable
class ToggleHost(Protocol):
    """Creates and removes operator-facing enable/disable toggles."""

    def create_toggle(
        self, initial: bool, label: str, on_change: Callable[[bool], None]
    ) -> Any:
        """Create a toggle and return an opaque handle for remove_toggle()."""
        ...

    def remove_toggle(self, handle: Any) -> None:
        ...


@dataclass
class Toggle:
    """An in-memory toggle."""

    label: str
    value: bool
    on_change: Callable[[bool], None] | None = field(default=None, repr=False)

    def set(self, value: bool) -> None:
        self.value = value
        if self.on_change is not None:
            self.on_change(value)


class MemoryToggleHost:
    """ToggleHost that keeps toggles in a list."""

    def __init__(self) -> None:
        self.toggles: list[Toggle] = []

    def create_toggle(
        self, initial: bool, label: str, on_change: Callable[[bool], None]
    ) -> Toggle:
        toggle = Toggle(label=label, value=initial, on_change=on_change)
        self.toggles.append(toggle)
        return toggle

    def remove_toggle(self, handle: Any) -> None:
        if handle in self.toggles:
            self.toggles.remove(handle)

    def find(self, label: str) -> Toggle | None:
        for toggle in self.toggles:
            if toggle.label == label:
                return toggle
        return None

    def set_all(self, value: bool) -> None:
        for toggle in list(self.toggles):
            toggle.set(value)


class StaticRegistrationSource:
    """RegistrationSource over a fixed name -> path mapping.

    Reloads are recorded in ``reloads`` and forwarded to ``on_reload``.
    """

    def __init__(
        self,
        targets: Mapping[str, str] | Iterable[tuple[str, str]],
        on_reload: Callable[[str, str], None] | None = None,
    ) -> None:
        items = targets.items() if isinstance(targets, Mapping) else targets
        self._targets: dict[str, str] = dict(items)
        self._on_reload = on_reload
        self.reloads: list[tuple[str, str]] = []

    def watch_targets(self) -> list[tuple[str, str]]:
        return list(self._targets.items())

    def set_file_path(self, name: str, path: str) -> None:
        self._targets[name] = path
        self.reloads.append((name, path))
        if self._on_reload is not None:
            self._on_reload(name, path)
