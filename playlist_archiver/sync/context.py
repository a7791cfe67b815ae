"""
Process-wide context built once at startup.

Holds the immutable configuration together with the collaborators built
from it, and is passed explicitly to the scheduler, the refresh engine and
the executor.
"""

from dataclasses import dataclass

from playlist_archiver.core.config import Config
from playlist_archiver.core.exceptions import ConfigError
from playlist_archiver.core.file_manager import FileManager
from playlist_archiver.download.downloader import Downloader
from playlist_archiver.models import SourceKind
from playlist_archiver.sources import build_fetchers
from playlist_archiver.sources.base import Fetcher
from playlist_archiver.sync.executor import OperationExecutor


@dataclass
class ArchiveContext:
    """
    Attributes:
        config: Loaded configuration.
        file_manager: Archive layout rooted at config.paths.root.
        fetchers: One fetcher per source kind.
        executor: Performs actions against the archive.
    """
    config: Config
    file_manager: FileManager
    fetchers: dict[SourceKind, Fetcher]
    executor: OperationExecutor

    @classmethod
    def from_config(cls, config: Config) -> "ArchiveContext":
        file_manager = FileManager(
            config.paths.root,
            playlist_path_remap=config.archive.playlist_path_remap,
        )
        downloader = Downloader(
            file_manager,
            save_thumbnails=config.archive.save_thumbnails,
            cookie_file=config.archive.cookie_file,
        )
        return cls(
            config=config,
            file_manager=file_manager,
            fetchers=build_fetchers(downloader, cookie_file=config.archive.cookie_file),
            executor=OperationExecutor(file_manager),
        )

    def fetcher_for(self, kind: SourceKind) -> Fetcher:
        try:
            return self.fetchers[kind]
        except KeyError:
            raise ConfigError(
                f"No fetcher available for source type '{kind.value}'",
                details={"type": kind.value}
            ) from None
