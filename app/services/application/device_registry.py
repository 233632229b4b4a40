"""
Device Registry
===============
Identity and metadata for SwitchBot units. Hardware addresses are assigned
by the devices themselves; the registry only records them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from app.domain.devices import Device, MacAddress
from app.domain.exceptions import UnknownDevice
from app.schemas import PydanticValidationError, RegisterDeviceRequest, to_domain_error

if TYPE_CHECKING:
    from infrastructure.database.repositories.devices import DeviceRepository

logger = logging.getLogger(__name__)


class DeviceRegistry:
    def __init__(self, device_repo: "DeviceRepository") -> None:
        self.device_repo = device_repo

    def register_device(self, device_id: Any, device_type: Any, name: str, sort_order: int) -> Device:
        """
        Register a device.

        Args:
            device_id: 6-byte address as bytes or ``AA:BB:CC:DD:EE:FF``
            device_type: SwitchBotDeviceType member, value or name
            name: Display name
            sort_order: Global display position

        Raises:
            ValidationError: malformed id, unknown type, empty name
            DuplicateDevice, DuplicateSortOrder
        """
        try:
            request = RegisterDeviceRequest(
                device_id=device_id,
                type=device_type,
                name=name,
                sort_order=sort_order,
            )
        except PydanticValidationError as exc:
            raise to_domain_error(exc) from None

        device = self.device_repo.register_device(
            device_id=request.device_id,
            device_type=request.type,
            name=request.name,
            sort_order=request.sort_order,
        )
        logger.info("Registered %s device %s (%s)", device.type.value, device.id, device.name)
        return device

    def get_device(self, device_id: Any) -> Optional[Device]:
        return self.device_repo.get_device(MacAddress.parse(device_id))

    def require_device(self, device_id: Any) -> Device:
        device = self.get_device(device_id)
        if device is None:
            raise UnknownDevice(f"device {device_id} is not registered", detail={"device_id": str(device_id)})
        return device

    def list_devices(self) -> List[Device]:
        """Registered devices ordered by sort order."""
        return list(self.device_repo.list_devices())
