from __future__ import annotations

from app.domain.devices import Device, MacAddress
from app.enums.device import SwitchBotDeviceType
from infrastructure.database.decorators import invalidates_caches, repository_cache
from infrastructure.database.ops.devices import DeviceOperations


class DeviceRepository:
    """Facade over SwitchBot device registry persistence."""

    def __init__(self, backend: DeviceOperations) -> None:
        self._backend = backend

    @invalidates_caches
    def register_device(
        self,
        *,
        device_id: MacAddress,
        device_type: SwitchBotDeviceType,
        name: str,
        sort_order: int,
    ) -> Device:
        return self._backend.insert_device(
            device_id=device_id,
            device_type=device_type,
            name=name,
            sort_order=sort_order,
        )

    def get_device(self, device_id: MacAddress) -> Device | None:
        return self._backend.get_device(device_id)

    @repository_cache(maxsize=16, invalidate_on=["register_device"])
    def list_devices(self) -> tuple[Device, ...]:
        """All registered devices ordered by sort order."""
        return tuple(self._backend.get_all_devices())
