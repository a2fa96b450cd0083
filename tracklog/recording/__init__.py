"""Recording of live tracking events."""

from .recorder import Recorder, install_recording, category_mask_from_settings

__all__ = [
    "Recorder",
    "install_recording",
    "category_mask_from_settings",
]
