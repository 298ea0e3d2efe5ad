"""Tile provider and offline cache configuration."""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.constants import (
    API_KEY_PLACEHOLDER,
    API_KEY_QUERY_PARAM,
    API_KEY_VISIBLE_PREFIX_LEN,
    APP_DIR_NAME,
    BOUNDS_TOLERANCE_DEG,
    DEFAULT_TILE_PROVIDER_NAME,
    DEFAULT_TILE_PROVIDER_URL,
    DEFAULT_TILE_PROVIDER_USER_AGENT,
    DOWNLOAD_CONCURRENCY,
    ENV_EXPO_PREFIX,
    ENV_TILE_PROVIDER_API_KEY,
    ENV_TILE_PROVIDER_NAME,
    ENV_TILE_PROVIDER_URL,
    ENV_TILE_PROVIDER_USER_AGENT,
    HTTP_BACKOFF_FACTOR,
    HTTP_RETRIES_DEFAULT,
    HTTP_TIMEOUT_DEFAULT,
    NETWORK_POLL_INTERVAL_S,
    REFRESH_DISTANCE_THRESHOLD_M,
    REFRESH_TIME_THRESHOLD,
    TARGET_OFFLINE_AREA_SQ_KM,
    TILE_DIR_NAME,
    TILE_ZOOMS,
)

if TYPE_CHECKING:
    from domain.models import TileCoordinate

logger = logging.getLogger(__name__)


class TileProviderConfig(BaseModel):
    """Remote XYZ tile provider reached by URL templating."""

    model_config = ConfigDict(frozen=True)

    # Empty string means the provider is not configured
    url_template: str = DEFAULT_TILE_PROVIDER_URL
    api_key: str = ''
    name: str = DEFAULT_TILE_PROVIDER_NAME
    user_agent: str = DEFAULT_TILE_PROVIDER_USER_AGENT

    @field_validator('url_template', 'api_key', 'name', 'user_agent')
    @classmethod
    def strip_value(cls, v: str) -> str:
        return v.strip()

    @property
    def is_configured(self) -> bool:
        """A template is set and any {apiKey} placeholder has a key to fill it."""
        if not self.url_template:
            return False
        return bool(self.api_key) or API_KEY_PLACEHOLDER not in self.url_template

    def build_tile_url(self, coord: TileCoordinate) -> str | None:
        """Tile URL for a coordinate, or None if no template is configured."""
        if not self.is_configured:
            return None
        url = (
            self.url_template.replace('{z}', str(coord.zoom))
            .replace('{x}', str(coord.x))
            .replace('{y}', str(coord.y))
        )
        return self._with_api_key(url, self.api_key)

    def display_url(self, coord: TileCoordinate) -> str | None:
        """Same as build_tile_url but with the key masked, for logs and errors."""
        if not self.is_configured:
            return None
        url = (
            self.url_template.replace('{z}', str(coord.zoom))
            .replace('{x}', str(coord.x))
            .replace('{y}', str(coord.y))
        )
        return self._with_api_key(url, self.masked_api_key(), encode=False)

    @staticmethod
    def _with_api_key(url: str, key: str, *, encode: bool = True) -> str:
        if not key:
            return url
        if API_KEY_PLACEHOLDER in url:
            return url.replace(API_KEY_PLACEHOLDER, key)
        separator = '&' if '?' in url else '?'
        value = quote(key, safe='') if encode else key
        return f'{url}{separator}{API_KEY_QUERY_PARAM}={value}'

    def request_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.user_agent:
            headers['User-Agent'] = self.user_agent
        return headers

    def masked_api_key(self) -> str:
        if not self.api_key:
            return ''
        return self.api_key[:API_KEY_VISIBLE_PREFIX_LEN] + '***'


class OfflineTilesSettings(BaseModel):
    """Policy knobs of the offline tile cache."""

    zoom_levels: list[int] = Field(default_factory=lambda: list(TILE_ZOOMS))
    target_area_sq_km: float = TARGET_OFFLINE_AREA_SQ_KM
    refresh_distance_m: float = REFRESH_DISTANCE_THRESHOLD_M
    refresh_age: timedelta = REFRESH_TIME_THRESHOLD
    bounds_tolerance_deg: float = BOUNDS_TOLERANCE_DEG
    tile_timeout_s: float = HTTP_TIMEOUT_DEFAULT
    tile_retries: int = HTTP_RETRIES_DEFAULT
    tile_backoff: float = HTTP_BACKOFF_FACTOR
    network_poll_interval_s: float = NETWORK_POLL_INTERVAL_S
    # 1 = sequential fetch; larger values use a bounded worker pool
    concurrency: int = DOWNLOAD_CONCURRENCY
    # Union new bounds with the previous record instead of replacing them
    merge_bounds: bool = False

    @field_validator('zoom_levels')
    @classmethod
    def validate_zoom_levels(cls, v: list[int]) -> list[int]:
        if not v:
            msg = 'at least one zoom level is required'
            raise ValueError(msg)
        if any(z < 0 for z in v):
            msg = 'zoom levels must be non-negative'
            raise ValueError(msg)
        return v

    @field_validator(
        'target_area_sq_km',
        'refresh_distance_m',
        'tile_timeout_s',
        'network_poll_interval_s',
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            msg = 'value must be positive'
            raise ValueError(msg)
        return v

    @field_validator('tile_retries', 'concurrency')
    @classmethod
    def validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            msg = 'value must be at least 1'
            raise ValueError(msg)
        return v


def _dotenv_candidates() -> list[Path]:
    cwd = Path.cwd()
    repo_root = Path(__file__).resolve().parent.parent.parent
    candidates = [cwd / '.secrets.env', cwd / '.env']
    appdata = os.getenv('APPDATA')
    if appdata:
        candidates.extend(
            [Path(appdata) / APP_DIR_NAME / '.secrets.env', Path(appdata) / APP_DIR_NAME / '.env']
        )
    candidates.extend([repo_root / '.secrets.env', repo_root / '.env'])
    return candidates


def _read_env(name: str) -> str | None:
    """Read a variable by its plain or EXPO_PUBLIC_ prefixed name."""
    value = os.getenv(name)
    if value is None:
        value = os.getenv(ENV_EXPO_PREFIX + name)
    return value


def load_provider_config(env_file: str | Path | None = None) -> TileProviderConfig:
    """
    Build the provider configuration from the environment.

    An explicit ``env_file`` is loaded first; otherwise the first existing
    .secrets.env/.env candidate is used. Variables already present in the
    process environment win. A variable set to an empty string disables
    the corresponding value (an empty URL template means unconfigured).
    """
    candidates = [Path(env_file)] if env_file is not None else _dotenv_candidates()
    for p in candidates:
        if p.exists():
            load_dotenv(p)
            logger.debug('Loaded environment from %s', p)
            break

    values: dict[str, str] = {}
    for field, env_name in (
        ('url_template', ENV_TILE_PROVIDER_URL),
        ('api_key', ENV_TILE_PROVIDER_API_KEY),
        ('name', ENV_TILE_PROVIDER_NAME),
        ('user_agent', ENV_TILE_PROVIDER_USER_AGENT),
    ):
        raw = _read_env(env_name)
        if raw is not None:
            values[field] = raw

    config = TileProviderConfig(**values)
    if config.is_configured:
        logger.info(
            'Tile provider %s configured (key=%s)',
            config.name,
            config.masked_api_key() or '<none>',
        )
    else:
        logger.warning(
            'Tile provider is not configured; set %s (and %s when the template needs a key)',
            ENV_TILE_PROVIDER_URL,
            ENV_TILE_PROVIDER_API_KEY,
        )
    return config


def resolve_data_dir() -> Path:
    """Per-user directory for offline tiles and their metadata."""
    local = os.getenv('LOCALAPPDATA')
    if local:
        return (Path(local) / APP_DIR_NAME).resolve()
    xdg = os.getenv('XDG_DATA_HOME')
    if xdg:
        return (Path(xdg) / APP_DIR_NAME).resolve()
    return (Path.home() / '.local' / 'share' / APP_DIR_NAME).resolve()


def resolve_tile_dir(data_dir: Path | None = None) -> Path:
    return (data_dir or resolve_data_dir()) / TILE_DIR_NAME
