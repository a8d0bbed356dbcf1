"""Walkthrough configuration.

Selectors for every element the walkthrough touches are declared here as
an explicit, named set. A renamed or missing element is fixed in config;
a typo in config fails at load time instead of silently skipping a screen.

Sources, lowest priority first: defaults, environment, JSON file,
keyword overrides.

JSON example:
    {
        "package": "com.example.timeslots",
        "selectors": {
            "settings_button": {"resource_id": "com.example.timeslots:id/settings"},
            "back_button": {"clickable": true, "within": {"class_name": "androidx.appcompat.widget.Toolbar"}}
        }
    }
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_CONFIG = "STORESHOTS_CONFIG"
ENV_PACKAGE = "STORESHOTS_PACKAGE"
ENV_ACTIVITY = "STORESHOTS_ACTIVITY"
ENV_DEVICE = "STORESHOTS_DEVICE"
ENV_OUTPUT_DIR = "STORESHOTS_OUTPUT_DIR"

_STRING_CRITERIA = (
    "text",
    "text_contains",
    "label",
    "resource_id",
    "resource_id_contains",
    "class_name",
    "content_desc",
)
_BOOL_CRITERIA = ("clickable", "enabled", "scrollable")


@dataclass(frozen=True)
class Selector:
    """Declarative element criteria, optionally scoped to a container."""

    text: Optional[str] = None
    text_contains: Optional[str] = None
    label: Optional[str] = None
    resource_id: Optional[str] = None
    resource_id_contains: Optional[str] = None
    class_name: Optional[str] = None
    content_desc: Optional[str] = None
    clickable: Optional[bool] = None
    enabled: Optional[bool] = None
    scrollable: Optional[bool] = None
    within: Optional["Selector"] = None

    def criteria(self) -> Dict[str, Any]:
        """Criteria dict for ElementInfo.matches, without `within`."""
        return {
            name: getattr(self, name)
            for name in _STRING_CRITERIA + _BOOL_CRITERIA
            if getattr(self, name) is not None
        }

    def within_criteria(self) -> Optional[Dict[str, Any]]:
        return self.within.criteria() if self.within is not None else None

    def describe(self) -> str:
        parts = [f"{k}={v!r}" for k, v in self.criteria().items()]
        if self.within is not None:
            parts.append(f"within=({self.within.describe()})")
        return ", ".join(parts)

    @classmethod
    def from_dict(cls, data: Any, *, context: str) -> "Selector":
        if not isinstance(data, dict):
            raise ConfigError(f"Selector {context} must be an object", key=context)

        known = set(_STRING_CRITERIA) | set(_BOOL_CRITERIA) | {"within"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown selector fields in {context}: {', '.join(unknown)}",
                key=context,
            )

        kwargs: Dict[str, Any] = {}
        for name in _STRING_CRITERIA:
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, str) or not value:
                raise ConfigError(
                    f"{context}.{name} must be a non-empty string", key=context
                )
            kwargs[name] = value
        for name in _BOOL_CRITERIA:
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, bool):
                raise ConfigError(f"{context}.{name} must be a boolean", key=context)
            kwargs[name] = value
        if data.get("within") is not None:
            kwargs["within"] = cls.from_dict(data["within"], context=f"{context}.within")

        selector = cls(**kwargs)
        if not selector.criteria():
            raise ConfigError(f"Selector {context} has no criteria", key=context)
        return selector


# Placeholders for the stock timeslot app layout
DEFAULT_SELECTORS: Dict[str, Selector] = {
    "timeslot_list": Selector(scrollable=True),
    "settings_button": Selector(label="Settings", clickable=True),
    "back_button": Selector(
        clickable=True,
        within=Selector(resource_id_contains="action_bar"),
    ),
    "analysis_button": Selector(label="Analysis", clickable=True),
}
SELECTOR_NAMES = tuple(DEFAULT_SELECTORS)


@dataclass
class WalkthroughConfig:
    """Settings for one screenshot walkthrough run. Durations are seconds."""

    package: str = ""
    activity: Optional[str] = None
    device_id: Optional[str] = None
    output_dir: Path = Path("./screenshots")
    launch_timeout: float = 20.0
    element_timeout: float = 5.0
    poll_interval: float = 0.5
    initial_settle: float = 2.0
    step_settle: float = 1.0
    stop_app_on_teardown: bool = True
    selectors: Dict[str, Selector] = field(
        default_factory=lambda: dict(DEFAULT_SELECTORS)
    )

    def selector(self, name: str) -> Selector:
        try:
            return self.selectors[name]
        except KeyError:
            raise ConfigError(f"Unknown selector: {name}", key=name)

    def validate(self) -> "WalkthroughConfig":
        """Raise ConfigError on the first invalid setting; return self."""
        if not self.package:
            raise ConfigError(
                f"App package is required (set {ENV_PACKAGE} or 'package')",
                key="package",
            )
        for name in ("launch_timeout", "element_timeout", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be greater than 0", key=name)
        for name in ("initial_settle", "step_settle"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative", key=name)

        unknown = sorted(set(self.selectors) - set(SELECTOR_NAMES))
        if unknown:
            raise ConfigError(
                f"Unknown selectors: {', '.join(unknown)}; "
                f"expected {', '.join(SELECTOR_NAMES)}",
                key="selectors",
            )
        missing = [name for name in SELECTOR_NAMES if name not in self.selectors]
        if missing:
            raise ConfigError(f"Missing selectors: {', '.join(missing)}", key="selectors")
        return self


def load_json_file(path: str | Path) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigError(f"Config file not found: {file_path}", key="config")
    if file_path.is_dir():
        raise ConfigError(
            f"Expected a JSON file but found a directory: {file_path}", key="config"
        )

    raw = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {file_path}: {e}", key="config") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected top-level JSON object in {file_path}", key="config")
    return data


def _from_env(config: WalkthroughConfig) -> WalkthroughConfig:
    env = os.environ
    updates: Dict[str, Any] = {}
    if env.get(ENV_PACKAGE):
        updates["package"] = env[ENV_PACKAGE]
    if env.get(ENV_ACTIVITY):
        updates["activity"] = env[ENV_ACTIVITY]
    if env.get(ENV_DEVICE):
        updates["device_id"] = env[ENV_DEVICE]
    if env.get(ENV_OUTPUT_DIR):
        updates["output_dir"] = Path(env[ENV_OUTPUT_DIR])
    return replace(config, **updates)


def _from_mapping(config: WalkthroughConfig, data: dict[str, Any]) -> WalkthroughConfig:
    scalar_fields = {f.name: f for f in fields(WalkthroughConfig)}
    updates: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in scalar_fields:
            raise ConfigError(f"Unknown config key: {key}", key=key)
        if key == "selectors":
            if not isinstance(value, dict):
                raise ConfigError("selectors must be an object", key=key)
            selectors = dict(config.selectors)
            for name, raw in value.items():
                if name not in SELECTOR_NAMES:
                    raise ConfigError(
                        f"Unknown selector: {name}; expected one of "
                        f"{', '.join(SELECTOR_NAMES)}",
                        key=f"selectors.{name}",
                    )
                if isinstance(raw, Selector):
                    selectors[name] = raw
                else:
                    selectors[name] = Selector.from_dict(
                        raw, context=f"selectors.{name}"
                    )
            updates["selectors"] = selectors
        elif key == "output_dir":
            updates[key] = Path(value)
        elif key in ("launch_timeout", "element_timeout", "poll_interval",
                     "initial_settle", "step_settle"):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{key} must be a number", key=key)
            updates[key] = float(value)
        elif key == "stop_app_on_teardown":
            if not isinstance(value, bool):
                raise ConfigError(f"{key} must be a boolean", key=key)
            updates[key] = value
        else:
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{key} must be a string", key=key)
            updates[key] = value
    return replace(config, **updates)


def load_config(path: Optional[str | Path] = None, **overrides) -> WalkthroughConfig:
    """Build and validate a WalkthroughConfig.

    Args:
        path: JSON config file; defaults to $STORESHOTS_CONFIG when set
        **overrides: Field values that take precedence over every source

    Raises:
        ConfigError: Unreadable file, unknown keys or invalid values
    """
    config = _from_env(WalkthroughConfig())

    path = path or os.environ.get(ENV_CONFIG)
    if path:
        logger.info(f"Loading walkthrough config from {path}")
        config = _from_mapping(config, load_json_file(path))

    if overrides:
        config = _from_mapping(
            config, {k: v for k, v in overrides.items() if v is not None}
        )
    return config.validate()
