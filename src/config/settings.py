"""Configuration for async action controls.

Per-state labels and icons were previously supplied by a framework mixin;
here they are plain dataclasses that can be loaded from YAML and handed to
a control by ordinary parameter passing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from src.button.labels import StateVariants
from src.button.states import ButtonState
from src.utils.logging import configure_logging
from src.utils.result import ConfigError, Err, Ok, Result

ICON_PREFIX = "icon-"
VALID_LOG_LEVELS = ("debug", "info", "warn", "warning", "error")
VALID_LOG_FORMATS = ("json", "text")


@dataclass
class ButtonConfig:
    """Labels and icon classes of a control, per state.

    ``default_label``/``default_icon`` are used for IDLE and for any state
    without its own entry.
    """

    default_label: Optional[str] = None
    labels: dict[ButtonState, str] = field(default_factory=dict)

    default_icon: Optional[str] = None
    icons: dict[ButtonState, str] = field(default_factory=dict)

    def label_variants(self) -> StateVariants:
        """Labels as a lookup table falling back to ``default_label``."""
        return StateVariants(values=self.labels, default=self.default_label)

    def icon_variants(self) -> StateVariants:
        """Icons as a lookup table falling back to ``default_icon``."""
        return StateVariants(values=self.icons, default=self.default_icon)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result["ButtonConfig", ConfigError]:
        """
        Create button configuration from a dictionary.

        Keys are state names (``default``, ``executing``, ``resolved``,
        ``rejected`` or aliases such as ``idle``/``inFlight``); icon keys
        carry an ``icon-`` prefix. Nested ``labels``/``icons`` sections are
        accepted too.

        Args:
            data: Configuration dictionary

        Returns:
            Result with loaded config or error
        """
        if not isinstance(data, dict):
            return _shape_error("button", data)

        labels_section = _section(data, "labels")
        if labels_section.is_err():
            return labels_section
        icons_section = _section(data, "icons")
        if icons_section.is_err():
            return icons_section

        labels_data: dict[str, Any] = dict(labels_section.unwrap())
        icons_data: dict[str, Any] = dict(icons_section.unwrap())

        for key, value in data.items():
            key = str(key)
            if key in ("labels", "icons"):
                continue
            if key.startswith(ICON_PREFIX):
                icons_data[key[len(ICON_PREFIX):]] = value
            else:
                labels_data[key] = value

        labels_result = _parse_variants(labels_data, "labels")
        if labels_result.is_err():
            return labels_result
        icons_result = _parse_variants(icons_data, "icons")
        if icons_result.is_err():
            return icons_result

        labels = labels_result.unwrap()
        icons = icons_result.unwrap()

        return Ok(cls(
            default_label=labels.get(ButtonState.IDLE),
            labels=labels,
            default_icon=icons.get(ButtonState.IDLE),
            icons=icons,
        ))


def _shape_error(field_name: str, value: Any) -> Err[ConfigError]:
    return Err(ConfigError(
        field=field_name,
        message=f"Must be a mapping, got {type(value).__name__}",
    ))


def _section(data: dict[str, Any], name: str) -> Result[dict[str, Any], ConfigError]:
    """Get an optional mapping section; missing or empty reads as {}."""
    value = data.get(name)
    if value is None:
        return Ok({})
    if not isinstance(value, dict):
        return _shape_error(name, value)
    return Ok(value)


def _parse_variants(
    data: dict[str, Any],
    section: str,
) -> Result[dict[ButtonState, str], ConfigError]:
    """Key a section by ButtonState, rejecting unknown states."""
    values: dict[ButtonState, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        try:
            state = ButtonState.parse(key)
        except ValueError:
            return Err(ConfigError(
                field=f"{section}.{key}",
                message=f"Unknown state '{key}'",
            ))
        if not isinstance(value, str):
            return Err(ConfigError(
                field=f"{section}.{key}",
                message=f"Must be a string, got {type(value).__name__}",
            ))
        values[state] = value
    return Ok(values)


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    format: str = "json"


@dataclass
class AppConfig:
    """
    Complete configuration.

    ``buttons`` holds named button configurations; ``button`` is the one
    used when a control does not ask for a name.
    """

    button: ButtonConfig = field(default_factory=ButtonConfig)
    buttons: dict[str, ButtonConfig] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def button_config(self, name: Optional[str] = None) -> ButtonConfig:
        """Get a named button configuration, or the default one."""
        if name is None:
            return self.button
        return self.buttons.get(name, self.button)

    @classmethod
    def from_yaml(cls, path: Path) -> Result["AppConfig", ConfigError]:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Result with loaded config or error
        """
        path = Path(path)

        if not path.exists():
            return Err(ConfigError(
                field="path",
                message=f"Configuration file not found: {path}",
            ))

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            return Err(ConfigError(
                field="yaml",
                message=f"Failed to parse YAML: {e}",
            ))
        except OSError as e:
            return Err(ConfigError(
                field="file",
                message=f"Failed to read config file: {e}",
            ))

        if not isinstance(data, dict):
            return Err(ConfigError(
                field="yaml",
                message=f"Top level must be a mapping, got {type(data).__name__}",
            ))

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result["AppConfig", ConfigError]:
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Result with loaded config or error
        """
        if not isinstance(data, dict):
            return _shape_error("config", data)

        sections: dict[str, dict[str, Any]] = {}
        for name in ("button", "buttons", "logging"):
            section = _section(data, name)
            if section.is_err():
                return section
            sections[name] = section.unwrap()

        button_result = ButtonConfig.from_dict(sections["button"])
        if button_result.is_err():
            error = button_result.unwrap_err()
            return Err(ConfigError(
                field=_nested_field("button", error.field),
                message=error.message,
            ))

        buttons: dict[str, ButtonConfig] = {}
        for name, button_data in sections["buttons"].items():
            result = ButtonConfig.from_dict(button_data if button_data is not None else {})
            if result.is_err():
                error = result.unwrap_err()
                return Err(ConfigError(
                    field=_nested_field(f"buttons.{name}", error.field),
                    message=error.message,
                ))
            buttons[name] = result.unwrap()

        logging_data = sections["logging"]
        logging_config = LoggingConfig(
            level=str(logging_data.get("level", "info")),
            format=str(logging_data.get("format", "json")),
        )

        return Ok(cls(
            button=button_result.unwrap(),
            buttons=buttons,
            logging=logging_config,
        ))

    def apply_logging(self, stream: Any = None) -> None:
        """Configure structured logging from the logging section."""
        configure_logging(
            level=self.logging.level,
            format_type=self.logging.format,
            stream=stream,
        )

    def validate(self) -> Result[None, ConfigError]:
        """
        Validate configuration values.

        Returns:
            Result indicating success or validation error
        """
        if self.logging.level.lower() not in VALID_LOG_LEVELS:
            return Err(ConfigError(
                field="logging.level",
                message=f"Must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.logging.level}",
            ))
        if self.logging.format not in VALID_LOG_FORMATS:
            return Err(ConfigError(
                field="logging.format",
                message=f"Must be one of {', '.join(VALID_LOG_FORMATS)}, got {self.logging.format}",
            ))

        return Ok(None)


def load_config(config_dir: Path = None) -> Result[AppConfig, ConfigError]:
    """
    Load configuration from the standard location.

    Loads config/defaults.yaml if present, otherwise uses built-in defaults.

    Args:
        config_dir: Configuration directory (defaults to ./config)

    Returns:
        Result with loaded config or error
    """
    if config_dir is None:
        config_dir = Path("./config")

    defaults_path = Path(config_dir) / "defaults.yaml"
    if defaults_path.exists():
        result = AppConfig.from_yaml(defaults_path)
        if result.is_err():
            return result
        config = result.unwrap()
    else:
        config = AppConfig()

    validation_result = config.validate()
    if validation_result.is_err():
        return Err(validation_result.unwrap_err())

    return Ok(config)


def _nested_field(prefix: str, field_name: str) -> str:
    """Prefix a ButtonConfig error field with its section path."""
    if field_name == "button":
        return prefix
    return f"{prefix}.{field_name}"
