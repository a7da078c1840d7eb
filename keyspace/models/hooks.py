"""
Handle-based hook registry.

Each registration gets its own slot. Removing a registration deactivates
that slot only, so registering the same callable twice and removing one
handle leaves the other in place. Iteration always runs over a snapshot
of the slots, which makes registering or removing hooks from inside a
running hook well defined.
"""

from collections.abc import Callable, Iterator
from typing import Any


class _Slot:
    """One registration of a hook."""

    __slots__ = ("hook", "active")

    def __init__(self, hook: Callable[..., Any]) -> None:
        self.hook = hook
        self.active = True


class HookHandle:
    """
    Deregistration capability returned by HookRegistry.add().

    Calling the handle (or its remove() method) removes exactly the
    registration it was returned for. Calling it again is a no-op.
    """

    __slots__ = ("_registry", "_slot")

    def __init__(self, registry: "HookRegistry", slot: _Slot) -> None:
        self._registry = registry
        self._slot = slot

    @property
    def hook(self) -> Callable[..., Any]:
        return self._slot.hook

    @property
    def active(self) -> bool:
        return self._slot.active

    def remove(self) -> None:
        self._registry._discard(self._slot)

    def __call__(self) -> None:
        self.remove()

    def __repr__(self) -> str:
        state = "active" if self._slot.active else "removed"
        return f"HookHandle({self._slot.hook!r}, {state})"


class HookRegistry:
    """Ordered registry of hooks; insertion order is invocation order."""

    def __init__(self) -> None:
        self._slots: list[_Slot] = []

    def add(self, hook: Callable[..., Any]) -> HookHandle:
        """
        Register a hook.

        Args:
            hook: Callable to register.

        Returns:
            Handle that removes this registration when called.

        Raises:
            TypeError: If hook is not callable.
        """
        if not callable(hook):
            raise TypeError(f"hook must be callable, got {type(hook).__name__}")
        slot = _Slot(hook)
        # Copy-on-write so snapshots held by running iterations stay stable
        self._slots = [*self._slots, slot]
        return HookHandle(self, slot)

    def _discard(self, slot: _Slot) -> None:
        if not slot.active:
            return
        slot.active = False
        self._slots = [s for s in self._slots if s is not slot]

    def snapshot(self) -> tuple[_Slot, ...]:
        return tuple(self._slots)

    def __iter__(self) -> Iterator[Callable[..., Any]]:
        """
        Yield active hooks in registration order.

        Hooks removed while iterating are skipped; hooks added while
        iterating are not visited until the next iteration.
        """
        for slot in self.snapshot():
            if slot.active:
                yield slot.hook

    def clear(self) -> None:
        for slot in self._slots:
            slot.active = False
        self._slots = []

    def __len__(self) -> int:
        return len(self._slots)

    def __bool__(self) -> bool:
        return bool(self._slots)
