from __future__ import annotations
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Callable, Dict
from PySide6.QtCore import QSettings
import logging

logger = logging.getLogger(__name__)

ORG_DOMAIN = "millerview.org"
APP_NAME = "MillerView"


class RunMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    VERBOSE = "verbose"

    def __str__(self):
        return self.value
    def __repr__(self):
        return self.value


class ParserMode(str, Enum):
    LOCAL = "local"
    HTTP = "http"

    def __str__(self):
        return self.value


# ----------------------
# Defaults
# ----------------------
DEFAULTS: Dict[str, Any] = {
    "general": {
        "run_mode": RunMode.PRODUCTION.value,
        "logging_level": "INFO",  # "DEBUG", "INFO", "WARNING", "ERROR"
    },
    "view": {
        "field_of_view": 75.0,
        "near_plane": 0.1,
        "far_plane": 1000.0,
        "frame_interval_ms": 16,
        "damping_factor": 0.1,
        "rotation_factor": 0.5,
    },
    "parser": {
        "mode": ParserMode.LOCAL.value,
        "url": "http://localhost:8081/api/parse",
        "timeout_ms": 5000,
    },
}

SECTIONS = tuple(DEFAULTS.keys())


# ---------------------
# Data model
# ---------------------
@dataclass
class GeneralConfig:
    run_mode: RunMode = RunMode.PRODUCTION
    logging_level: str = "INFO"

@dataclass
class ViewConfig:
    field_of_view: float = 75.0
    near_plane: float = 0.1
    far_plane: float = 1000.0
    frame_interval_ms: int = 16
    damping_factor: float = 0.1
    rotation_factor: float = 0.5

@dataclass
class ParserConfig:
    mode: ParserMode = ParserMode.LOCAL
    url: str = "http://localhost:8081/api/parse"
    timeout_ms: int = 5000

@dataclass
class AppSettingsData:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)


# ----------------------
# Validation
# ----------------------
def _validate_run_mode(v: Any) -> RunMode:
    if isinstance(v, RunMode):
        return v
    mode = str(v).strip().lower()
    try:
        return RunMode(mode)
    except ValueError:
        return RunMode(DEFAULTS["general"]["run_mode"])

def _validate_logging_level(v: str) -> str:
    v = str(v).upper()
    return v if v in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"

def _float_in_range(low: float, high: float, default: float,
                    *, low_inclusive: bool = False) -> Callable[[Any], float]:
    def validate(v: Any) -> float:
        try:
            f = float(v)
        except (TypeError, ValueError):
            return default
        above = f >= low if low_inclusive else f > low
        return f if (above and f <= high) else default
    return validate

def _int_in_range(low: int, high: int, default: int) -> Callable[[Any], int]:
    def validate(v: Any) -> int:
        try:
            i = int(float(v))
        except (TypeError, ValueError):
            return default
        return i if low <= i <= high else default
    return validate

_validate_field_of_view = _float_in_range(0.0, 179.0, DEFAULTS["view"]["field_of_view"])
_validate_near_plane = _float_in_range(0.0, 1e6, DEFAULTS["view"]["near_plane"])
_validate_far_plane = _float_in_range(0.0, 1e9, DEFAULTS["view"]["far_plane"])
_validate_frame_interval = _int_in_range(1, 1000, DEFAULTS["view"]["frame_interval_ms"])
_validate_damping_factor = _float_in_range(0.0, 1.0, DEFAULTS["view"]["damping_factor"],
                                           low_inclusive=True)
_validate_rotation_factor = _float_in_range(0.0, 10.0, DEFAULTS["view"]["rotation_factor"])
_validate_timeout_ms = _int_in_range(1, 600_000, DEFAULTS["parser"]["timeout_ms"])

def _validate_parser_mode(v: Any) -> ParserMode:
    try:
        return ParserMode(str(v).strip().lower())
    except ValueError:
        return ParserMode(DEFAULTS["parser"]["mode"])

def _validate_url(v: Any) -> str:
    s = str(v).strip()
    return s if s.startswith(("http://", "https://")) else DEFAULTS["parser"]["url"]


_VIEW_VALIDATORS: Dict[str, Callable[[Any], Any]] = {
    "field_of_view": _validate_field_of_view,
    "near_plane": _validate_near_plane,
    "far_plane": _validate_far_plane,
    "frame_interval_ms": _validate_frame_interval,
    "damping_factor": _validate_damping_factor,
    "rotation_factor": _validate_rotation_factor,
}

_PARSER_VALIDATORS: Dict[str, Callable[[Any], Any]] = {
    "mode": lambda v: _validate_parser_mode(v).value,
    "url": _validate_url,
    "timeout_ms": _validate_timeout_ms,
}


# ---------------------
# AppSettingManager
# ---------------------
class AppSettingsManager:
    """
    Application settings backed by QSettings.

    Values start from the in-code DEFAULTS and are overridden by whatever
    QSettings holds. Every value is validated on load; out-of-range values
    fall back to the default. set_* methods write through to QSettings
    immediately.
    """
    def __init__(self, org_domain: str = ORG_DOMAIN, app_name: str = APP_NAME):
        self._settings = QSettings(org_domain, app_name)
        self._data = self._load_effective()

    # Read
    @property
    def data(self) -> AppSettingsData:
        return self._data

    @property
    def run_mode(self) -> RunMode:
        return self._data.general.run_mode

    @property
    def dev_mode(self) -> bool:
        return self.run_mode is RunMode.DEVELOPMENT

    @property
    def logging_level(self) -> str:
        return self._data.general.logging_level

    @property
    def view(self) -> ViewConfig:
        return self._data.view

    @property
    def parser(self) -> ParserConfig:
        return self._data.parser

    # Write
    def set_run_mode(self, v: str | RunMode) -> None:
        mode = _validate_run_mode(v)
        self._settings.setValue("general/run_mode", mode.value)
        self._data.general.run_mode = mode

    def set_logging_level(self, v: str) -> None:
        level = _validate_logging_level(v)
        self._settings.setValue("general/logging_level", level)
        self._data.general.logging_level = level

    def set_view_value(self, key: str, v: Any) -> None:
        """Validate and store one ``view/*`` value."""
        if key not in _VIEW_VALIDATORS:
            raise KeyError(f"Unknown view setting: {key}")
        value = _VIEW_VALIDATORS[key](v)
        if key == "far_plane" and value <= self._data.view.near_plane:
            logger.warning("far_plane %s must exceed near_plane %s; ignored",
                           value, self._data.view.near_plane)
            return
        self._settings.setValue(f"view/{key}", value)
        setattr(self._data.view, key, value)

    def set_parser_mode(self, v: str | ParserMode) -> None:
        mode = _validate_parser_mode(v)
        self._settings.setValue("parser/mode", mode.value)
        self._data.parser.mode = mode

    def set_parser_url(self, v: str) -> None:
        url = _validate_url(v)
        self._settings.setValue("parser/url", url)
        self._data.parser.url = url

    def set_parser_timeout_ms(self, v: int) -> None:
        timeout = _validate_timeout_ms(v)
        self._settings.setValue("parser/timeout_ms", timeout)
        self._data.parser.timeout_ms = timeout

    # Reset
    def reset_all_to_default(self) -> None:
        """Remove every user value (shortcuts are managed separately)."""
        for section in SECTIONS:
            self._settings.remove(section)
        self._data = self._load_effective()

    def reset_section(self, section: str) -> None:
        """Restore one section to its defaults."""
        if section not in SECTIONS:
            raise ValueError(f"Invalid section: {section}")
        self._settings.remove(section)
        self._data = self._load_effective()

    def to_dict(self) -> dict[str, Any]:
        data = {
            "general": asdict(self._data.general),
            "view": asdict(self._data.view),
            "parser": asdict(self._data.parser),
        }
        data["general"]["run_mode"] = self._data.general.run_mode.value
        data["parser"]["mode"] = self._data.parser.mode.value
        return data

    # ---------- internals ---------------
    def _load_effective(self) -> AppSettingsData:
        """Apply QSettings overrides on top of DEFAULTS, validate, build the model."""
        merged = self._apply_qsettings_overrides(DEFAULTS)
        return self._make_model_from(merged)

    def _apply_qsettings_overrides(self, base: dict[str, Any]) -> dict[str, Any]:
        """
        Read the dict based settings and apply QSettings overrides.
        :param base:
        :return: apply QSettings overrides
        """
        # general
        g = dict(base.get("general", {}))
        v = self._settings.value("general/run_mode", None)
        if v is not None:
            g["run_mode"] = _validate_run_mode(v).value
        v = self._settings.value("general/logging_level", None)
        if v is not None:
            g["logging_level"] = _validate_logging_level(v)

        # view
        vw = dict(base.get("view", {}))
        for key, validate in _VIEW_VALIDATORS.items():
            v = self._settings.value(f"view/{key}", None)
            if v is not None:
                vw[key] = validate(v)
        if vw["far_plane"] <= vw["near_plane"]:
            logger.warning("Invalid clipping planes near=%s far=%s; using defaults",
                           vw["near_plane"], vw["far_plane"])
            vw["near_plane"] = DEFAULTS["view"]["near_plane"]
            vw["far_plane"] = DEFAULTS["view"]["far_plane"]

        # parser
        p = dict(base.get("parser", {}))
        for key, validate in _PARSER_VALIDATORS.items():
            v = self._settings.value(f"parser/{key}", None)
            if v is not None:
                p[key] = validate(v)

        return {"general": g, "view": vw, "parser": p}

    def _make_model_from(self, merged: dict[str, Any]) -> AppSettingsData:
        """
        making model from merged dict and returning merged AppSettingsData
        :param merged:
        :return: merged AppSettingsData
        """
        g = merged.get("general", {})
        vw = merged.get("view", {})
        p = merged.get("parser", {})
        return AppSettingsData(
            general=GeneralConfig(
                run_mode=_validate_run_mode(g.get("run_mode", DEFAULTS["general"]["run_mode"])),
                logging_level=_validate_logging_level(g.get("logging_level", DEFAULTS["general"]["logging_level"])),
            ),
            view=ViewConfig(**{
                key: validate(vw.get(key, DEFAULTS["view"][key]))
                for key, validate in _VIEW_VALIDATORS.items()
            }),
            parser=ParserConfig(
                mode=_validate_parser_mode(p.get("mode", DEFAULTS["parser"]["mode"])),
                url=_validate_url(p.get("url", DEFAULTS["parser"]["url"])),
                timeout_ms=_validate_timeout_ms(p.get("timeout_ms", DEFAULTS["parser"]["timeout_ms"])),
            ),
        )
