"""Configuration settings for recording and playback."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Dict


class Settings(BaseSettings):
    """Global recording/playback settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRACKLOG_",
        case_sensitive=False,
        extra="allow",
    )

    # Recording
    record: str = ""  # Output path; a .gz suffix selects compression
    record_stdout: bool = False
    record_rawlight: bool = True
    record_imu: bool = True
    record_cal_imu: bool = False
    record_angle: bool = True

    # Playback
    playback: str = ""
    playback_factor: float = 1.0  # 0 = as fast as possible, 1 = real time
    playback_replay_pose: bool = False

    # Device declarations are expected within this many recorded seconds
    prescan_horizon_sec: float = 10.0

    # Delimited reader buffer growth increment (bytes)
    reader_grow_by: int = 128

    # Sleep between drains when replaying standalone
    poll_interval_sec: float = 0.001

    # Data Paths
    reports_path: str = "reports"
    logs_path: str = "logs"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "Settings":
        """Build settings from host option names.

        Host options use hyphenated names (``record-stdout``,
        ``playback-factor``); they map onto the underscored fields.

        Args:
            options: Mapping of option name to value

        Returns:
            Settings with the given options applied over the defaults
        """
        return cls(**{name.replace("-", "_"): value for name, value in options.items()})


# Global settings instance
settings = Settings()
