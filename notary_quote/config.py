"""Application configuration.

A YAML document (or JSON, for a .json suffix) is merged field by field
over the defaults below. Every field has a default, so an empty or
missing file yields a complete AppConfig.

    pricing:
      min_order_price: 300000      # currency minor units
      price_per_character: 500
      counting_mode: exclude-whitespace   # or include-whitespace
    ocr:
      languages: [ru, en]
      engine: easyocr              # or paddleocr
    extraction:
      min_text_threshold: 50
    limits:
      max_file_size_mb: 50
      max_files_at_once: 10
    ui:
      currency: "₫"
      locale: ru-RU
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .classifier import MIN_TEXT_THRESHOLD
from .errors import ConfigurationError
from .types import COUNTING_MODES, CountingMode

logger = logging.getLogger(__name__)

OCR_ENGINES: frozenset[str] = frozenset({"easyocr", "paddleocr"})


@dataclass(frozen=True)
class PricingPolicy:
    price_per_character: int = 500
    min_order_price: int = 300000
    counting_mode: CountingMode = "exclude-whitespace"

    def __post_init__(self) -> None:
        if self.price_per_character < 0:
            raise ValueError(f"price_per_character must be >= 0; got {self.price_per_character}")
        if self.min_order_price < 0:
            raise ValueError(f"min_order_price must be >= 0; got {self.min_order_price}")
        if self.counting_mode not in COUNTING_MODES:
            raise ValueError(
                f"counting_mode must be one of {sorted(COUNTING_MODES)!r}; got {self.counting_mode!r}"
            )


@dataclass(frozen=True)
class OCRSettings:
    languages: tuple[str, ...] = ("ru", "en")
    engine: str = "easyocr"
    gpu: bool = False
    preprocess: bool = False


@dataclass(frozen=True)
class ExtractionSettings:
    min_text_threshold: int = MIN_TEXT_THRESHOLD
    render_zoom: float = 2.0


@dataclass(frozen=True)
class Limits:
    max_file_size_mb: int = 50
    max_files_at_once: int = 10

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


@dataclass(frozen=True)
class DisplaySettings:
    currency: str = "₫"
    locale: str = "ru-RU"


@dataclass(frozen=True)
class AppConfig:
    pricing: PricingPolicy = field(default_factory=PricingPolicy)
    ocr: OCRSettings = field(default_factory=OCRSettings)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    limits: Limits = field(default_factory=Limits)
    ui: DisplaySettings = field(default_factory=DisplaySettings)

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["ocr"]["languages"] = list(self.ocr.languages)
        return out


DEFAULT_CONFIG = AppConfig()


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _int(section: Mapping[str, Any], key: str, default: int, *, where: str) -> int:
    value = section.get(key, default)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{where}.{key} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigurationError(f"{where}.{key} must be >= 0, got {value}")
    return value


def _float(section: Mapping[str, Any], key: str, default: float, *, where: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{where}.{key} must be a number, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{where}.{key} must be > 0, got {value}")
    return float(value)


def _bool(section: Mapping[str, Any], key: str, default: bool, *, where: str) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{where}.{key} must be true/false, got {value!r}")
    return value


def _str(section: Mapping[str, Any], key: str, default: str, *, where: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"{where}.{key} must be a non-empty string, got {value!r}")
    return value


def _counting_mode(section: Mapping[str, Any], default: CountingMode) -> CountingMode:
    if "counting_mode" in section:
        mode = section["counting_mode"]
        if mode not in COUNTING_MODES:
            raise ConfigurationError(
                f"pricing.counting_mode must be one of {sorted(COUNTING_MODES)!r}, got {mode!r}"
            )
        return mode
    if "count_spaces" in section:
        return "include-whitespace" if _bool(section, "count_spaces", False, where="pricing") else "exclude-whitespace"
    return default


def _languages(section: Mapping[str, Any], default: tuple[str, ...]) -> tuple[str, ...]:
    value = section.get("languages", list(default))
    if isinstance(value, str):
        value = [v.strip() for v in value.replace("+", ",").split(",")]
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigurationError(f"ocr.languages must be a non-empty list, got {value!r}")
    langs = tuple(str(v).strip() for v in value if str(v).strip())
    if not langs:
        raise ConfigurationError("ocr.languages must name at least one language")
    return langs


def merge_with_defaults(data: Mapping[str, Any] | None, defaults: AppConfig = DEFAULT_CONFIG) -> AppConfig:
    """Merge a partial config mapping over defaults. Pure; raises ConfigurationError."""
    if data is None:
        return defaults
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"config root must be a mapping, got {type(data).__name__}")

    pricing = _section(data, "pricing")
    ocr = _section(data, "ocr")
    extraction = _section(data, "extraction")
    limits = _section(data, "limits")
    ui = _section(data, "ui")

    engine = _str(ocr, "engine", defaults.ocr.engine, where="ocr")
    if engine not in OCR_ENGINES:
        raise ConfigurationError(f"ocr.engine must be one of {sorted(OCR_ENGINES)!r}, got {engine!r}")

    return AppConfig(
        pricing=PricingPolicy(
            price_per_character=_int(pricing, "price_per_character", defaults.pricing.price_per_character, where="pricing"),
            min_order_price=_int(pricing, "min_order_price", defaults.pricing.min_order_price, where="pricing"),
            counting_mode=_counting_mode(pricing, defaults.pricing.counting_mode),
        ),
        ocr=OCRSettings(
            languages=_languages(ocr, defaults.ocr.languages),
            engine=engine,
            gpu=_bool(ocr, "gpu", defaults.ocr.gpu, where="ocr"),
            preprocess=_bool(ocr, "preprocess", defaults.ocr.preprocess, where="ocr"),
        ),
        extraction=ExtractionSettings(
            min_text_threshold=_int(
                extraction, "min_text_threshold", defaults.extraction.min_text_threshold, where="extraction"
            ),
            render_zoom=_float(extraction, "render_zoom", defaults.extraction.render_zoom, where="extraction"),
        ),
        limits=Limits(
            max_file_size_mb=_int(limits, "max_file_size_mb", defaults.limits.max_file_size_mb, where="limits"),
            max_files_at_once=_int(limits, "max_files_at_once", defaults.limits.max_files_at_once, where="limits"),
        ),
        ui=DisplaySettings(
            currency=_str(ui, "currency", defaults.ui.currency, where="ui"),
            locale=_str(ui, "locale", defaults.ui.locale, where="ui"),
        ),
    )


def read_config_file(config_path: str | Path) -> Any:
    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"failed to parse JSON config {path}: {e}") from e
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"failed to read config {path}: {e}") from e


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load config from a file, falling back to defaults on any failure."""
    if config_path is None:
        return DEFAULT_CONFIG
    try:
        return merge_with_defaults(read_config_file(config_path))
    except ConfigurationError as e:
        logger.warning("Using default configuration: %s", e)
        return DEFAULT_CONFIG


def with_languages(cfg: AppConfig, languages: list[str] | tuple[str, ...]) -> AppConfig:
    langs = _languages({"languages": list(languages)}, cfg.ocr.languages)
    return replace(cfg, ocr=replace(cfg.ocr, languages=langs))
