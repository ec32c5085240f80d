"""
Loader modes, raw documents and run statistics.

Dependencies: dataclasses (stdlib), semantic_kb.core.indexing.hashing
System role: Value types driving an incremental indexing run
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from semantic_kb.core.exceptions import InvalidConfigurationError
from semantic_kb.core.indexing.hashing import calculate_content_hash


@dataclass(frozen=True)
class RawDocument:
    """A document read from disk, consumed once per indexing pass."""

    path: str
    content: str
    content_hash: str

    @classmethod
    def from_text(cls, path: str, content: str) -> "RawDocument":
        return cls(path=path, content=content, content_hash=calculate_content_hash(content))

    @classmethod
    def from_file(cls, path: str | Path, encoding: str = "utf-8") -> "RawDocument":
        """
        Read a document from disk.

        Raises:
            OSError: File cannot be read
            UnicodeDecodeError: File is not valid text in ``encoding``
        """
        # Decoded from raw bytes so the hash matches calculate_file_hash.
        content = Path(path).read_bytes().decode(encoding)
        return cls.from_text(str(path), content)


@dataclass(frozen=True)
class LoaderConfig:
    """
    Incremental load mode flags.

    resume: skip unchanged documents and index new ones
    update: also re-index modified documents
    cleanup: delete chunks of documents no longer on disk
    dry_run: classify and report without writing
    force: replace every discovered document regardless of hash
    """

    resume: bool = False
    update: bool = False
    cleanup: bool = False
    dry_run: bool = False
    force: bool = False

    def validate(self) -> None:
        """
        Reject conflicting flags.

        Raises:
            InvalidConfigurationError: force combined with resume or update
        """
        if self.force and self.resume:
            raise InvalidConfigurationError("Cannot use --force and --resume together")
        if self.force and self.update:
            raise InvalidConfigurationError(
                "Cannot use --force and --update together (force implies full reload)"
            )

    def mode_description(self) -> str:
        if self.force:
            return "Force Full Reload"
        if self.resume:
            return "Resume (Skip Unchanged)"
        if self.update:
            return "Incremental Update"
        return "Full Load"


@dataclass
class LoadStats:
    """Counters for one loader run."""

    files_skipped: int = 0
    files_added: int = 0
    files_updated: int = 0
    files_deleted: int = 0
    files_failed: int = 0
    chunks_inserted: int = 0
    chunks_deleted: int = 0
    duration_secs: float = 0.0
    failures: dict[str, str] = field(default_factory=dict)

    def total_files(self) -> int:
        return self.files_skipped + self.files_added + self.files_updated + self.files_deleted

    def files_to_process(self) -> int:
        return self.files_added + self.files_updated + self.files_deleted

    def log_summary(self, logger: logging.Logger) -> None:
        """Write the run summary at INFO level."""
        logger.info(f"Load operation completed in {self.duration_secs:.2f}s")
        logger.info(f"  Files discovered: {self.total_files()}")
        logger.info(f"  Files skipped:    {self.files_skipped}")
        logger.info(f"  Files added:      {self.files_added}")
        logger.info(f"  Files updated:    {self.files_updated}")
        logger.info(f"  Files deleted:    {self.files_deleted}")
        logger.info(f"  Files failed:     {self.files_failed}")
        logger.info(f"  Chunks inserted:  {self.chunks_inserted}")
        logger.info(f"  Chunks deleted:   {self.chunks_deleted}")
