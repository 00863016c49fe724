"""
Run configuration for the auction lot watcher.

Builds a single RunConfig from defaults, a YAML file, environment
variables and command line overrides. The config is read once at start
and passed to every component.
"""

import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urljoin
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

import crawler_config

FETCHER_CHOICES = ('browser', 'http')

# Environment variable -> RunConfig field
ENV_VARS = {
    'BASE': 'base',
    'KEYWORDS': 'keywords',
    'DELAY_MS': 'delay_ms',
    'MAX_PAGES': 'max_pages',
    'TZ_NAME': 'timezone',
    'RUN_HOUR': 'run_hour',
    'OUTPUT_PATH': 'output_path',
    'RECORDS_JSONL': 'records_jsonl',
    'FETCHER': 'fetcher',
    'FETCH_TIMEOUT_MS': 'fetch_timeout_ms',
    'SETTLE_MS': 'settle_ms',
    'HEADLESS': 'headless',
    'STRICT': 'strict',
}

_INT_FIELDS = ('delay_ms', 'max_pages', 'run_hour', 'fetch_timeout_ms', 'settle_ms')
_BOOL_FIELDS = ('headless', 'strict')
_TRUE_STRINGS = ('1', 'true', 'yes', 'on')
_FALSE_STRINGS = ('0', 'false', 'no', 'off', '')


@dataclass(frozen=True)
class RunConfig:
    """
    Complete configuration of one run.

    Immutable: derive variants with dataclasses.replace().
    """
    base: str = crawler_config.BASE
    keywords: str = crawler_config.KEYWORDS
    delay_ms: int = crawler_config.DELAY_MS
    max_pages: int = crawler_config.MAX_PAGES
    timezone: str = crawler_config.TIMEZONE
    run_hour: int = crawler_config.RUN_HOUR
    output_path: str = crawler_config.OUTPUT_PATH
    records_jsonl: Optional[str] = None
    fetcher: str = crawler_config.FETCHER
    fetch_timeout_ms: int = crawler_config.FETCH_TIMEOUT_MS
    settle_ms: int = crawler_config.SETTLE_MS
    headless: bool = crawler_config.HEADLESS
    strict: bool = crawler_config.STRICT
    _pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.delay_ms < 0:
            raise ValueError("'delay_ms' must be >= 0")
        if self.max_pages < 1:
            raise ValueError("'max_pages' must be >= 1")
        if not 0 <= self.run_hour <= 23:
            raise ValueError("'run_hour' must be between 0 and 23")
        if self.fetch_timeout_ms <= 0:
            raise ValueError("'fetch_timeout_ms' must be > 0")
        if self.settle_ms < 0:
            raise ValueError("'settle_ms' must be >= 0")
        if self.fetcher not in FETCHER_CHOICES:
            raise ValueError(f"Invalid fetcher: {self.fetcher}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {self.timezone}")
        try:
            pattern = re.compile(self.keywords, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"Invalid keyword pattern {self.keywords!r}: {e}") from e
        object.__setattr__(self, '_pattern', pattern)

    @property
    def keyword_pattern(self) -> re.Pattern:
        """Compiled, case-insensitive keyword regular expression."""
        return self._pattern

    @property
    def listing_url(self) -> str:
        """Root of the paginated sale listing."""
        return urljoin(self.base, crawler_config.LISTING_PATH)

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RunConfig':
        """
        Create a RunConfig from a dictionary (loaded from YAML or env).

        String values are coerced for numeric and boolean fields.

        Raises:
            ValueError: If a key is unknown or a value is invalid
        """
        known = {f.name for f in fields(cls) if f.init}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in data.items():
            if value is None and key != 'records_jsonl':
                continue
            if key in _INT_FIELDS:
                values[key] = _to_int(key, value)
            elif key in _BOOL_FIELDS:
                values[key] = _to_bool(key, value)
            elif key == 'records_jsonl':
                values[key] = str(value) if value else None
            else:
                values[key] = str(value)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 base: Optional[Mapping[str, Any]] = None) -> 'RunConfig':
        """
        Create a RunConfig from environment variables.

        Args:
            environ: Mapping to read (defaults to os.environ)
            base: Values to start from (e.g. a loaded YAML file); env wins
        """
        environ = os.environ if environ is None else environ
        data = dict(base or {})
        for var, key in ENV_VARS.items():
            if var in environ:
                data[key] = environ[var]
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Any) -> 'RunConfig':
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.init}


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"'{key}' must be a boolean, got {value!r}")


def read_config_file(file_path: str) -> Dict[str, Any]:
    """
    Read a YAML config file into a dictionary.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not a YAML mapping
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config file must contain a YAML dictionary")
    return data


def load_run_config(file_path: Optional[str] = None,
                    environ: Optional[Mapping[str, str]] = None) -> RunConfig:
    """
    Load the run configuration: defaults < YAML file < environment.

    Args:
        file_path: Optional path to a YAML config file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        RunConfig instance
    """
    data = read_config_file(file_path) if file_path else {}
    return RunConfig.from_env(environ, base=data)


def validate_run_config(config: RunConfig) -> List[str]:
    """
    Validate a config and return a list of warnings (not errors).

    Args:
        config: RunConfig to validate

    Returns:
        List of warning messages (empty if no warnings)
    """
    warnings = []

    if not config.base.startswith('http://') and not config.base.startswith('https://'):
        warnings.append(f"Base URL may be invalid (missing http/https): {config.base}")

    if config.max_pages > 1000:
        warnings.append(f"max_pages is very high: {config.max_pages}")

    if config.delay_ms == 0:
        warnings.append("delay_ms is 0 - requests will not be rate limited")

    if '\\b' not in config.keywords:
        warnings.append("Keyword pattern has no word boundary (\\b) - partial words will match")

    return warnings
