"""Permission-gated capability access.

Device capabilities (photo library, camera, location) sit behind a user
prompt. The gate simulates that prompt on the virtual timeline: a request
answers granted/denied after a short delay, decided by an injectable policy.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from models.errors import DeviceUnavailableError, PermissionDeniedError
from models.observable import CallbackSet
from models.requests import LatestRequestGate, RequestTicket
from models.scheduler import Scheduler

logger = logging.getLogger(__name__)

PHOTO_LIBRARY = "photo_library"
CAMERA = "camera"
LOCATION = "location"


class CapabilityStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


class CapabilityGate:
    """Tracks and requests access to device capabilities.

    Args:
        scheduler: Timeline the simulated prompt runs on.
        owner: Screen manager owning the prompt callbacks.
        available: Capabilities this device has; others are UNAVAILABLE.
        policy: Decides how the user answers a prompt (True = grant).
            Defaults to always granting.
        prompt_delay: Virtual seconds the user takes to answer.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        owner: str = "scheduler",
        available: Iterable[str] = (PHOTO_LIBRARY, CAMERA, LOCATION),
        policy: Optional[Callable[[str], bool]] = None,
        prompt_delay: float = 0.3,
    ) -> None:
        self.scheduler = scheduler
        self.owner = owner
        self.policy = policy or (lambda capability: True)
        self.prompt_delay = prompt_delay
        self._available = set(available)
        self._statuses: dict[str, CapabilityStatus] = {}
        self._gates: dict[str, LatestRequestGate[bool]] = {}

    def status(self, capability: str) -> CapabilityStatus:
        if capability not in self._available:
            return CapabilityStatus.UNAVAILABLE
        return self._statuses.get(capability, CapabilityStatus.NOT_DETERMINED)

    def statuses(self) -> dict[str, str]:
        return {name: self.status(name).value for name in sorted(self._available)}

    def set_status(self, capability: str, granted: bool) -> None:
        """Record an answer directly (settings screen, test setup)."""
        self._require_available(capability)
        self._statuses[capability] = (
            CapabilityStatus.GRANTED if granted else CapabilityStatus.DENIED
        )

    def request(
        self, capability: str, callbacks: Optional[CallbackSet[bool]] = None
    ) -> Optional[RequestTicket]:
        """Ask for ``capability``.

        Already-granted capabilities resolve immediately with True. Otherwise
        the user is prompted (again, if previously denied) and the answer
        arrives after ``prompt_delay``; a denial is delivered to ``on_error``
        as PermissionDeniedError.

        Returns:
            The prompt ticket, or None when no prompt was needed.
        """
        callbacks = callbacks or CallbackSet()

        if capability not in self._available:
            callbacks.reject(DeviceUnavailableError(f"{capability} is not available on this device"))
            return None

        if self.status(capability) == CapabilityStatus.GRANTED:
            callbacks.resolve(True)
            return None

        gate = self._gates.setdefault(
            capability,
            LatestRequestGate(self.scheduler, label=f"capability.{capability}", owner=self.owner),
        )

        def answer() -> bool:
            granted = bool(self.policy(capability))
            self.set_status(capability, granted)
            logger.info(f"Capability {capability} {'granted' if granted else 'denied'}")
            if not granted:
                raise PermissionDeniedError(capability)
            return True

        return gate.issue(self.prompt_delay, answer, callbacks)

    def require(self, capability: str) -> None:
        """Raise unless ``capability`` is currently granted.

        Raises:
            DeviceUnavailableError: The device lacks the capability.
            PermissionDeniedError: Access is denied or was never granted.
        """
        self._require_available(capability)
        if self.status(capability) != CapabilityStatus.GRANTED:
            raise PermissionDeniedError(capability)

    def _require_available(self, capability: str) -> None:
        if capability not in self._available:
            raise DeviceUnavailableError(f"{capability} is not available on this device")
