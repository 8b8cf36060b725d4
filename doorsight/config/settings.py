"""Configuration management for DoorSight."""

import os
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from dotenv import load_dotenv

from doorsight.errors import ConfigurationError

CONFIG_ENV_VAR = "DOORSIGHT_CONFIG"


class ModelConfig(BaseModel):
    """Inference model configuration."""
    door_model_path: str = Field(default="models/door_float32.tflite")
    obstacle_model_path: str = Field(default="models/yolov8n_float32.tflite")
    input_size: int = Field(default=640, ge=32, le=2048)
    door_input_encoding: str = Field(default="float32")
    obstacle_input_encoding: str = Field(default="float32")
    num_threads: Optional[int] = Field(default=None, ge=1, le=32)

    @field_validator('door_input_encoding', 'obstacle_input_encoding')
    @classmethod
    def validate_encoding(cls, v):
        """Validate input buffer encoding."""
        allowed = ['uint8', 'float32']
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"input encoding must be one of {allowed}")
        return v


class DetectionConfig(BaseModel):
    """Tensor decoding and suppression settings."""
    confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    iou_threshold: float = Field(default=0.8, gt=0.0, le=1.0)
    class_aware_nms: bool = Field(default=False)


class GuidanceConfig(BaseModel):
    """Guidance synthesis and announcement settings."""
    min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    left_threshold: float = Field(default=1.0 / 3.0, gt=0.0, lt=1.0)
    right_threshold: float = Field(default=2.0 / 3.0, gt=0.0, lt=1.0)
    stability_count: int = Field(default=2, ge=1, le=10)

    @model_validator(mode='after')
    def validate_zones(self):
        """Ensure the left zone ends before the right zone starts."""
        if self.left_threshold > self.right_threshold:
            raise ValueError("left_threshold must not exceed right_threshold")
        return self


class ScanConfig(BaseModel):
    """Continuous scan scheduling."""
    poll_interval_s: float = Field(default=1.0, ge=0.05, le=10.0)
    cooldown_ms: int = Field(default=3000, ge=0, le=60000)


class SpeechConfig(BaseModel):
    """Text-to-speech configuration."""
    enabled: bool = Field(default=True)
    voice: Optional[str] = Field(default=None)
    rate: int = Field(default=160, ge=80, le=400)


class CameraConfig(BaseModel):
    """Camera capture configuration."""
    device_index: int = Field(default=0, ge=0)
    rotation_degrees: int = Field(default=0)
    width: Optional[int] = Field(default=None, ge=160, le=3840)
    height: Optional[int] = Field(default=None, ge=120, le=2160)

    @field_validator('rotation_degrees')
    @classmethod
    def validate_rotation(cls, v):
        """Normalize rotation into [0, 360)."""
        return v % 360


class DisplayConfig(BaseModel):
    """Display configuration."""
    preview_enabled: bool = Field(default=True)
    window_name: str = Field(default="DoorSight - Door and Obstacle Guidance")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")
    console_colors: bool = Field(default=True)
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"level must be one of {allowed}")
        return v


class Settings(BaseModel):
    """Main application settings."""
    models: ModelConfig = Field(default_factory=ModelConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    guidance: GuidanceConfig = Field(default_factory=GuidanceConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """
        Load settings from YAML file and environment variables.

        Args:
            config_path: Path to config.yaml file. If None, uses the
                DOORSIGHT_CONFIG environment variable or config/config.yaml
                in the project root.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If the YAML is malformed or fails validation.
        """
        load_dotenv()

        if config_path is None:
            env_path = os.getenv(CONFIG_ENV_VAR)
            if env_path:
                config_path = Path(env_path)
            else:
                project_root = Path(__file__).parent.parent.parent
                config_path = project_root / "config" / "config.yaml"

        config_path = Path(config_path)
        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e
        else:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


# Singleton instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[Path] = None, reload: bool = False) -> Settings:
    """
    Get application settings (singleton pattern).

    Args:
        config_path: Path to config.yaml file. Only used on first call or when reload=True.
        reload: Force reload of settings.

    Returns:
        Settings instance.
    """
    global _settings

    if _settings is None or reload:
        _settings = Settings.load(config_path)

    return _settings
