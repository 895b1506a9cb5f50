"""Configuration for site generation runs."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CONFIG_FILE = Path("config.ini")
DEFAULT_OUTPUT_DIR = Path("dist")
DEFAULT_CONCURRENCY = 100
DEFAULT_QUEUE_SIZE = 1024
DEFAULT_PROGRESS_INTERVAL = 1.0
DEFAULT_SITE_NAME = "Lunar Letters"

PACKAGE_ROOT = Path(__file__).resolve().parent
DEFAULT_TEMPLATE_DIR = PACKAGE_ROOT / "templates"
DEFAULT_ASSETS_DIR = PACKAGE_ROOT / "static"

_DSN_ENV = "SSG_DATABASE_DSN"
_OUTPUT_ENV = "SSG_OUTPUT_DIR"
_CONCURRENCY_ENV = "SSG_CONCURRENCY"
_BASE_URL_ENV = "SSG_BASE_URL"


@dataclass(slots=True)
class DatabaseConfig:
    dsn: Optional[str] = None


@dataclass(slots=True)
class GeneratorConfig:
    """Output and scheduling controls for a generation run."""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    concurrency: int = 0
    base_url: str = ""
    queue_size: int = DEFAULT_QUEUE_SIZE
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL
    template_dir: Path = DEFAULT_TEMPLATE_DIR
    assets_dir: Optional[Path] = DEFAULT_ASSETS_DIR
    site_name: str = DEFAULT_SITE_NAME
    failure_log: Optional[Path] = None
    copyright_year: Optional[int] = None

    def worker_count(self) -> int:
        """Return the number of workers to start; non-positive values use the default."""

        if self.concurrency and self.concurrency > 0:
            return self.concurrency
        return DEFAULT_CONCURRENCY

    def effective_queue_size(self) -> int:
        if self.queue_size and self.queue_size > 0:
            return self.queue_size
        return DEFAULT_QUEUE_SIZE


@dataclass(slots=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ssg: GeneratorConfig = field(default_factory=GeneratorConfig)


def _parse_int(raw_value: str, option: str) -> int:
    cleaned = raw_value.strip()
    try:
        return int(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {option}: {cleaned!r}") from exc


def _parse_float(raw_value: str, option: str) -> float:
    cleaned = raw_value.strip()
    try:
        return float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid number for {option}: {cleaned!r}") from exc


def _optional_path(raw_value: str | None) -> Optional[Path]:
    if raw_value is None or not raw_value.strip():
        return None
    return Path(raw_value.strip()).expanduser()


def _apply_ssg_section(config: GeneratorConfig, section: Mapping[str, str]) -> None:
    if section.get("output_dir", "").strip():
        config.output_dir = Path(section["output_dir"].strip()).expanduser()
    if section.get("concurrency", "").strip():
        config.concurrency = _parse_int(section["concurrency"], "concurrency")
    if "base_url" in section:
        config.base_url = section["base_url"].strip()
    if section.get("queue_size", "").strip():
        config.queue_size = _parse_int(section["queue_size"], "queue_size")
    if section.get("progress_interval", "").strip():
        config.progress_interval = _parse_float(section["progress_interval"], "progress_interval")
    if section.get("template_dir", "").strip():
        config.template_dir = Path(section["template_dir"].strip()).expanduser()
    if "assets_dir" in section:
        # An empty value disables the static asset copy.
        config.assets_dir = _optional_path(section["assets_dir"])
    if section.get("site_name", "").strip():
        config.site_name = section["site_name"].strip()
    if "failure_log" in section:
        config.failure_log = _optional_path(section["failure_log"])
    if section.get("copyright_year", "").strip():
        config.copyright_year = _parse_int(section["copyright_year"], "copyright_year")


def apply_env_overrides(config: AppConfig, environ: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if environ is None else environ

    dsn = env.get(_DSN_ENV)
    if dsn and dsn.strip():
        config.database.dsn = dsn.strip()
    output_dir = env.get(_OUTPUT_ENV)
    if output_dir and output_dir.strip():
        config.ssg.output_dir = Path(output_dir.strip()).expanduser()
    concurrency = env.get(_CONCURRENCY_ENV)
    if concurrency and concurrency.strip():
        config.ssg.concurrency = _parse_int(concurrency, _CONCURRENCY_ENV)
    base_url = env.get(_BASE_URL_ENV)
    if base_url and base_url.strip():
        config.ssg.base_url = base_url.strip()
    return config


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Read an INI configuration file and apply ``SSG_*`` environment overrides."""

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    parser = configparser.ConfigParser(interpolation=None)
    with path.open("r", encoding="utf-8") as handle:
        parser.read_file(handle)

    config = AppConfig()
    if parser.has_section("database"):
        dsn = parser.get("database", "dsn", fallback="").strip()
        config.database.dsn = dsn or None
    if parser.has_section("ssg"):
        _apply_ssg_section(config.ssg, parser["ssg"])
    return apply_env_overrides(config, environ)
