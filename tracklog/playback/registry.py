"""Registry of devices replayed from a capture."""

from typing import Dict, Iterator, List, Optional

from tracklog.schemas.session import Device

REPLAY_DRIVER = "replay"


class DeviceRegistry:
    """Name-keyed devices; lookups never create duplicates."""

    def __init__(self):
        self._devices: Dict[str, Device] = {}

    def get(self, name: str) -> Optional[Device]:
        return self._devices.get(name)

    def get_or_create(self, name: str, driver: str = REPLAY_DRIVER) -> Device:
        """Return the device registered under ``name``, creating it if needed."""
        device = self._devices.get(name)
        if device is None:
            device = Device(name=name, driver=driver)
            self._devices[name] = device
        return device

    def remove(self, name: str) -> None:
        self._devices.pop(name, None)

    def names(self) -> List[str]:
        return list(self._devices)

    def __contains__(self, name: object) -> bool:
        return name in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))
