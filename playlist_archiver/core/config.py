"""
Configuration management for playlist-archiver.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - The archive root directory (audio, playlists, index, logs)
    - The ordered list of monitored sources
    - Archive behavior (thumbnails, playlist path remap, cookies)
    - The refresh schedule (cron expression and timezone)
    - The retry policy wrapped around each refresh cycle

Configuration File Location:
    By default config.yaml is read from the current working directory.
    The CLI accepts --config (or PLAYLIST_ARCHIVER_CONFIG) to override it.

Example config.yaml:
    paths:
      root: "~/Music/archive"

    sources:
      - type: soundcloud
        url: "https://soundcloud.com/someone/sets/favorites"
      - type: youtube
        url: "https://www.youtube.com/playlist?list=PL..."
        inactive: true

    archive:
      save_thumbnails: true
      playlist_path_remap: "/media/archive"

    schedule:
      cron: "0 4 * * *"
      timezone: "Europe/Berlin"

    retry:
      policy: exponential
      interval: 30
      max_retries: 5
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from playlist_archiver.core.exceptions import ConfigError
from playlist_archiver.core.retry import RetryOptions, RetryPolicy
from playlist_archiver.core.schedule import build_trigger
from playlist_archiver.models import SourceKind


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_TIMEZONE = "UTC"
DEFAULT_RETRY_INTERVAL = 30.0
DEFAULT_MAX_RETRIES = 5
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class PathsConfig:
    """
    Archive directory configuration.

    Attributes:
        root: Absolute path of the archive root. Contains audio/, playlists/,
              logs/ and index.json. ~ is expanded; the directory is created
              at startup if missing.
    """
    root: Path


@dataclass(frozen=True)
class SourceConfig:
    """
    One monitored remote playlist.

    Attributes:
        kind: Which service the playlist lives on. Selects the fetcher.
        url: Playlist URL. Also the key of this source in the index.
        active: Inactive sources stay in the index untouched and are
                skipped by every refresh cycle.
    """
    kind: SourceKind
    url: str
    active: bool = True


@dataclass(frozen=True)
class ArchiveConfig:
    """
    Archive behavior configuration.

    Attributes:
        save_thumbnails: Write cover.jpg next to each downloaded track.
        playlist_path_remap: Optional base path written in front of
                             audio/<id>/track.mp3 in playlist files, for
                             players that see the archive under another mount.
                             When None, entries are relative to playlists/.
        cookie_file: Optional cookies.txt handed to yt-dlp.
    """
    save_thumbnails: bool = True
    playlist_path_remap: str | None = None
    cookie_file: Path | None = None


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Refresh schedule configuration.

    Attributes:
        cron: Cron expression (5 fields, or 6 with leading seconds).
              None means "24 hours after the previous cycle".
        timezone: IANA timezone name the cron expression is evaluated in.
        run_on_start: Refresh once immediately when the daemon starts.
    """
    cron: str | None = None
    timezone: str = DEFAULT_TIMEZONE
    run_on_start: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        level: Console log level. Log files always receive DEBUG.
    """
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created once by load_config() and treated as immutable afterwards.

    Attributes:
        paths: Archive directory settings.
        sources: Monitored playlists, in processing order.
        archive: Thumbnail, remap and cookie settings.
        schedule: When refresh cycles run.
        retry: Retry options applied to each whole refresh cycle.
        logging: Console log level.
    """
    paths: PathsConfig
    sources: tuple[SourceConfig, ...]
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    retry: RetryOptions = field(default_factory=RetryOptions)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def active_sources(self) -> list[SourceConfig]:
        """Sources processed by a refresh cycle, in configured order."""
        return [source for source in self.sources if source.active]


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content
        3. Validate required sections (paths, sources)
        4. Parse every section, applying defaults for optional ones
        5. Validate the schedule by building its trigger once
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config)


def parse_config(raw_config: dict[str, Any]) -> Config:
    """
    Build a Config from an already-parsed YAML dictionary.

    Split out of load_config() so tests can skip the filesystem.

    Raises:
        ConfigError: On any missing or invalid value.
    """
    _validate_config(raw_config)

    schedule = _parse_schedule_config(_optional_section(raw_config, "schedule"))
    build_trigger(schedule.cron, schedule.timezone)

    return Config(
        paths=_parse_paths_config(raw_config["paths"]),
        sources=_parse_sources(raw_config["sources"]),
        archive=_parse_archive_config(_optional_section(raw_config, "archive")),
        schedule=schedule,
        retry=_parse_retry_config(_optional_section(raw_config, "retry")),
        logging=_parse_logging_config(_optional_section(raw_config, "logging")),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Validate the top-level structure of the configuration.

    Raises:
        ConfigError: If a required section is missing or has the wrong type.
    """
    if "paths" not in raw_config:
        raise ConfigError(
            "Missing required section: 'paths'",
            details={"missing_section": "paths"}
        )
    if not isinstance(raw_config["paths"], dict):
        raise ConfigError(
            "Section 'paths' must be a dictionary",
            details={"section": "paths"}
        )

    if "sources" not in raw_config:
        raise ConfigError(
            "Missing required section: 'sources'",
            details={"missing_section": "sources"}
        )
    if not isinstance(raw_config["sources"], list) or not raw_config["sources"]:
        raise ConfigError(
            "Section 'sources' must be a non-empty list",
            details={"section": "sources"}
        )


def _optional_section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_paths_config(paths_section: dict[str, Any]) -> PathsConfig:
    """
    Parse the paths section. Expands ~ and makes the root absolute.

    Raises:
        ConfigError: If root is missing or empty.
    """
    root = paths_section.get("root", "")

    if not isinstance(root, str) or not root.strip():
        raise ConfigError(
            "'paths.root' must be a non-empty string",
            details={"field": "paths.root"}
        )

    return PathsConfig(root=Path(root.strip()).expanduser().resolve())


def _parse_sources(sources_section: list[Any]) -> tuple[SourceConfig, ...]:
    """
    Parse the ordered source list.

    Raises:
        ConfigError: On a malformed entry, an unknown type, or a URL
                     configured twice (the URL is the index key).
    """
    sources: list[SourceConfig] = []
    seen_urls: set[str] = set()

    for position, entry in enumerate(sources_section):
        field_name = f"sources[{position}]"

        if not isinstance(entry, dict):
            raise ConfigError(
                f"'{field_name}' must be a dictionary",
                details={"field": field_name}
            )

        raw_kind = entry.get("type")
        try:
            kind = SourceKind(str(raw_kind).lower())
        except ValueError:
            raise ConfigError(
                f"Unknown source type '{raw_kind}'",
                details={
                    "field": f"{field_name}.type",
                    "value": raw_kind,
                    "allowed": [k.value for k in SourceKind],
                }
            ) from None

        url = entry.get("url", "")
        if not isinstance(url, str) or not url.strip():
            raise ConfigError(
                f"'{field_name}.url' must be a non-empty string",
                details={"field": f"{field_name}.url"}
            )
        url = url.strip()

        if url in seen_urls:
            raise ConfigError(
                f"Source configured twice: {url}",
                details={"field": f"{field_name}.url", "value": url}
            )
        seen_urls.add(url)

        inactive = entry.get("inactive", False)
        if not isinstance(inactive, bool):
            raise ConfigError(
                f"'{field_name}.inactive' must be true or false",
                details={"field": f"{field_name}.inactive", "value": inactive}
            )

        sources.append(SourceConfig(kind=kind, url=url, active=not inactive))

    return tuple(sources)


def _parse_archive_config(archive_section: dict[str, Any]) -> ArchiveConfig:
    """
    Parse the archive section, applying defaults.

    Raises:
        ConfigError: On wrong types, or a cookie file that doesn't exist.
    """
    save_thumbnails = archive_section.get("save_thumbnails", True)
    if not isinstance(save_thumbnails, bool):
        raise ConfigError(
            "'archive.save_thumbnails' must be true or false",
            details={"field": "archive.save_thumbnails", "value": save_thumbnails}
        )

    remap = archive_section.get("playlist_path_remap")
    if remap is not None:
        if not isinstance(remap, str) or not remap.strip():
            raise ConfigError(
                "'archive.playlist_path_remap' must be a non-empty string or null",
                details={"field": "archive.playlist_path_remap"}
            )
        remap = remap.strip()

    cookie_file = None
    raw_cookie = archive_section.get("cookie_file")
    if raw_cookie is not None:
        if not isinstance(raw_cookie, str):
            raise ConfigError(
                "'archive.cookie_file' must be a string path or null",
                details={"field": "archive.cookie_file"}
            )
        cookie_path = Path(raw_cookie).expanduser().resolve()
        if not cookie_path.exists():
            raise ConfigError(
                f"Cookie file not found: {cookie_path}",
                details={"field": "archive.cookie_file", "path": str(cookie_path)}
            )
        cookie_file = cookie_path

    return ArchiveConfig(
        save_thumbnails=save_thumbnails,
        playlist_path_remap=remap,
        cookie_file=cookie_file,
    )


def _parse_schedule_config(schedule_section: dict[str, Any]) -> ScheduleConfig:
    """
    Parse the schedule section. The expression itself is validated by
    load_config() once the trigger can be built.
    """
    cron = schedule_section.get("cron")
    if cron is not None:
        if not isinstance(cron, str) or not cron.strip():
            raise ConfigError(
                "'schedule.cron' must be a non-empty string or null",
                details={"field": "schedule.cron"}
            )
        cron = cron.strip()

    timezone = schedule_section.get("timezone", DEFAULT_TIMEZONE)
    if not isinstance(timezone, str) or not timezone.strip():
        raise ConfigError(
            "'schedule.timezone' must be a non-empty string",
            details={"field": "schedule.timezone"}
        )

    run_on_start = schedule_section.get("run_on_start", True)
    if not isinstance(run_on_start, bool):
        raise ConfigError(
            "'schedule.run_on_start' must be true or false",
            details={"field": "schedule.run_on_start", "value": run_on_start}
        )

    return ScheduleConfig(cron=cron, timezone=timezone.strip(), run_on_start=run_on_start)


def _parse_retry_config(retry_section: dict[str, Any]) -> RetryOptions:
    """
    Parse the retry section into RetryOptions.

    Defaults to exponential backoff from 30 seconds with at most 5 retries.

    Raises:
        ConfigError: On an unknown policy, a negative interval, or a
                     max_retries that is neither null nor a non-negative int.
    """
    policy_name = str(retry_section.get("policy", "exponential")).lower()

    interval = retry_section.get("interval", DEFAULT_RETRY_INTERVAL)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
        raise ConfigError(
            "'retry.interval' must be a non-negative number of seconds",
            details={"field": "retry.interval", "value": interval}
        )

    if policy_name == "immediate":
        policy = RetryPolicy.immediate()
    elif policy_name == "delay":
        policy = RetryPolicy.delay(float(interval))
    elif policy_name == "exponential":
        policy = RetryPolicy.exponential(float(interval))
    else:
        raise ConfigError(
            f"Unknown retry policy '{policy_name}'",
            details={
                "field": "retry.policy",
                "value": policy_name,
                "allowed": ["immediate", "delay", "exponential"],
            }
        )

    max_retries = retry_section.get("max_retries", DEFAULT_MAX_RETRIES)
    if max_retries is not None:
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigError(
                "'retry.max_retries' must be a non-negative integer or null",
                details={"field": "retry.max_retries", "value": max_retries}
            )

    return RetryOptions(max_retries=max_retries, policy=policy)


def _parse_logging_config(logging_section: dict[str, Any]) -> LoggingConfig:
    level = str(logging_section.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"Unknown log level '{level}'",
            details={"field": "logging.level", "value": level, "allowed": list(LOG_LEVELS)}
        )
    return LoggingConfig(level=level)
