from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from app.domain.devices import Device, MacAddress
from app.domain.exceptions import DuplicateDevice, DuplicateSortOrder, RepositoryError
from app.enums.device import SwitchBotDeviceType

logger = logging.getLogger(__name__)


class DeviceOperations:
    """SwitchBot device registry helpers shared across database handlers."""

    def insert_device(
        self,
        *,
        device_id: MacAddress,
        device_type: SwitchBotDeviceType,
        name: str,
        sort_order: int,
    ) -> Device:
        db = self.get_db()
        try:
            db.execute(
                "INSERT INTO switchbot_devices (id, type, name, sort_order) VALUES (?, ?, ?, ?)",
                (device_id.packed, device_type.value, name, sort_order),
            )
        except sqlite3.IntegrityError as exc:
            message = str(exc)
            if "switchbot_devices.sort_order" in message:
                raise DuplicateSortOrder(
                    f"device sort_order {sort_order} is already taken",
                    detail={"scope": "switchbot_devices", "sort_order": sort_order},
                ) from exc
            if "switchbot_devices.id" in message:
                raise DuplicateDevice(
                    f"device {device_id} is already registered",
                    detail={"device_id": str(device_id)},
                ) from exc
            raise RepositoryError(f"failed to insert device: {exc}") from exc
        logger.info("Device %s '%s' (%s) registered.", device_id, name, device_type.value)
        return Device(id=device_id, type=device_type, name=name, sort_order=sort_order)

    def get_device(self, device_id: MacAddress) -> Optional[Device]:
        row = self.get_db().execute(
            "SELECT id, type, name, sort_order FROM switchbot_devices WHERE id = ?",
            (device_id.packed,),
        ).fetchone()
        return Device.from_row(row) if row else None

    def get_all_devices(self) -> List[Device]:
        cursor = self.get_db().execute(
            "SELECT id, type, name, sort_order FROM switchbot_devices ORDER BY sort_order"
        )
        return [Device.from_row(row) for row in cursor.fetchall()]
