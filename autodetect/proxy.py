"""The facade's stable connection point and the component behind it.

``ProxyEndpoint`` is what downstream consumers hold on to. It forwards to
whichever candidate port it currently targets and is never without a
target: it is created with one, and ``set_target`` refuses anything it
cannot actually forward to, leaving the old target in place.

``ProxyBinding`` owns the endpoint together with the single bound
component (a real candidate or the placeholder) and the capability filter.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .base import BaseCandidate, OutputPort, PortDirection, release
from .bus import Bus
from .caps import Caps
from .errors import FilterLockedError, TargetError

logger = logging.getLogger("autodetect.proxy")


class ProxyEndpoint:
    def __init__(self, name: str, target: OutputPort, direction: PortDirection = PortDirection.SRC):
        self.name = name
        self.direction = direction
        self._lock = threading.Lock()
        self._target: OutputPort | None = None
        if not self.set_target(target):
            raise TargetError(f"{name}: cannot use {target!r} as initial target")

    @property
    def target(self) -> OutputPort:
        with self._lock:
            return self._target

    def _can_target(self, port: OutputPort | None) -> bool:
        if port is None:
            return False
        if port.direction is not self.direction:
            logger.debug("%s: %r has direction %s", self.name, port, port.direction.value)
            return False
        if port.owner.disposed:
            logger.debug("%s: owner of %r is disposed", self.name, port)
            return False
        if port.proxied_by is not None and port.proxied_by is not self:
            logger.debug("%s: %r is already proxied", self.name, port)
            return False
        return True

    def set_target(self, port: OutputPort | None) -> bool:
        """
        Atomically switch to ``port``.

        Returns False, keeping the current target, if ``port`` is unusable.
        """
        if not self._can_target(port):
            return False
        with self._lock:
            previous = self._target
            if previous is not None and previous is not port:
                previous.proxied_by = None
            port.proxied_by = self
            self._target = port
        logger.debug("%s: target is now %r", self.name, port)
        return True

    # ── Forwarding ────────────────────────────────────────────────────

    def get_caps(self) -> Caps:
        return self.target.get_caps()

    def pull(self) -> bytes | None:
        return self.target.pull()

    def __repr__(self) -> str:
        return f"<ProxyEndpoint {self.name} -> {self._target!r}>"


class ProxyBinding:
    """
    Owns the endpoint, the bound component and the capability filter.

    Args:
        owner: The facade; becomes the ``parent`` of bound components.
        child_bus: Bus handed to every bound component.
        placeholder_factory: Callable creating a fresh placeholder from an
            instance name.
    """

    def __init__(self, owner: Any, child_bus: Bus, placeholder_factory: Callable[[str], BaseCandidate]):
        self.owner = owner
        self.child_bus = child_bus
        self.placeholder_factory = placeholder_factory
        self._filter_caps: Caps | None = None

        self._kid = self._adopt(placeholder_factory("tempsrc"))
        self.endpoint = ProxyEndpoint("src", self._kid.src)

    @property
    def kid(self) -> BaseCandidate:
        return self._kid

    @property
    def has_candidate(self) -> bool:
        return not self._kid.is_placeholder

    # ── Filter ────────────────────────────────────────────────────────

    @property
    def filter_caps(self) -> Caps | None:
        return self._filter_caps.copy() if self._filter_caps is not None else None

    @filter_caps.setter
    def filter_caps(self, caps: Caps | None) -> None:
        if self.has_candidate:
            raise FilterLockedError(
                f"Cannot change filter caps while {self._kid.instance_name} is bound"
            )
        self._filter_caps = caps.copy() if caps is not None else None

    # ── Binding ───────────────────────────────────────────────────────

    def bind(self, component: BaseCandidate) -> None:
        """
        Re-target the endpoint to ``component`` and tear down the previous one.

        Raises:
            TargetError: If the endpoint refused the component's port. The
                previous component stays bound; ``component`` is untouched.
        """
        if not self.endpoint.set_target(component.src):
            raise TargetError(f"Failed to set target port to {component.src!r}")

        previous, self._kid = self._kid, self._adopt(component)
        if previous is not component:
            release(previous)
        logger.debug("Bound %r", component)

    def reset(self, instance_name: str = "tempsrc") -> BaseCandidate:
        """Replace whatever is bound with a fresh placeholder."""
        placeholder = self.placeholder_factory(instance_name)
        self.bind(placeholder)
        return placeholder

    def _adopt(self, component: BaseCandidate) -> BaseCandidate:
        component.parent = self.owner
        component.set_bus(self.child_bus)
        return component
