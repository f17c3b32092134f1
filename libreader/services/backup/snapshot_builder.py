"""Builds library snapshots for export, backup and migration."""

import json
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from libreader.archive import default_mime_type, encode_data_uri, iter_data_uri
from libreader.constants import ARCHIVE_CHUNK_SIZE, SESSION_DISPLAY_LIMIT
from libreader.schemas import DocumentProjection, FileEntry, Snapshot
from libreader.services.backup.ports import LibrarySource

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class _FileRef:
    document_id: str
    title: str
    kind: str


class SnapshotBuilder:
    """
    Walks a library and serializes it into one self-contained snapshot.

    Metadata-only snapshots carry documents and shelves. Full snapshots also
    carry each document's binary content as a data URI; documents whose
    content is missing are left out of ``files`` without error.
    """

    def __init__(
        self,
        source: LibrarySource,
        clock: Callable[[], datetime] = _utcnow,
        chunk_size: int = ARCHIVE_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.clock = clock
        self.chunk_size = chunk_size

    def build(self, include_files: bool = False) -> Snapshot:
        """
        Build the whole snapshot in memory.

        Args:
            include_files: Embed binary content (full backup)

        Returns:
            Snapshot with ``metadata``, ``shelves`` and, for full backups, ``files``
        """
        documents = [self._limit_sessions(d) for d in self.source.iter_documents()]
        shelves = self.source.list_shelves()

        files: list[FileEntry] = []
        if include_files:
            for document in documents:
                entry = self._file_entry(document)
                if entry is not None:
                    files.append(entry)

        logger.info(
            "snapshot_built",
            documents=len(documents),
            shelves=len(shelves),
            files=len(files),
            include_files=include_files,
        )
        return Snapshot(
            exported_at=self.clock(),
            metadata=documents,
            files=files,
            shelves=shelves,
        )

    def iter_json(self, include_files: bool = True) -> Iterator[str]:
        """
        Serialize the snapshot as JSON text, one chunk at a time.

        Documents are written as they are read and each file is streamed
        through the archive encoder, so at most one chunk of one file is held
        in memory.

        Yields:
            JSON text fragments whose concatenation is one JSON object
        """
        yield '{"exportedAt":' + json.dumps(self.clock().isoformat())

        refs: list[_FileRef] = []
        yield ',"metadata":['
        for index, document in enumerate(self.source.iter_documents()):
            document = self._limit_sessions(document)
            refs.append(_FileRef(document.id, document.title, document.type))
            yield ("," if index else "") + document.model_dump_json(by_alias=True)
        yield "]"

        shelves = self.source.list_shelves()
        yield ',"shelves":['
        yield ",".join(shelf.model_dump_json(by_alias=True) for shelf in shelves)
        yield "]"

        files_written = 0
        if include_files:
            yield ',"files":['
            for ref in refs:
                opened = self.source.open_file(ref.document_id)
                if opened is None:
                    logger.debug("file_missing", document_id=ref.document_id)
                    continue
                mime_type, stream = opened
                mime_type = mime_type or default_mime_type(ref.kind)
                yield ("," if files_written else "") + (
                    '{"id":' + json.dumps(ref.document_id)
                    + ',"name":' + json.dumps(ref.title)
                    + ',"type":' + json.dumps(mime_type)
                    + ',"data":"'
                )
                with stream:
                    yield from iter_data_uri(stream, mime_type, self.chunk_size)
                yield '"}'
                files_written += 1
            yield "]"

        yield "}"
        logger.info(
            "snapshot_streamed",
            documents=len(refs),
            shelves=len(shelves),
            files=files_written,
            include_files=include_files,
        )

    def _file_entry(self, document: DocumentProjection) -> FileEntry | None:
        opened = self.source.open_file(document.id)
        if opened is None:
            logger.debug("file_missing", document_id=document.id)
            return None
        mime_type, stream = opened
        mime_type = mime_type or default_mime_type(document.type)
        with stream:
            content = stream.read()
        return FileEntry(
            id=document.id,
            name=document.title,
            type=mime_type,
            data=encode_data_uri(content, mime_type),
        )

    @staticmethod
    def _limit_sessions(document: DocumentProjection) -> DocumentProjection:
        sessions = document.reading_stats.sessions
        ordered = sorted(sessions, key=lambda s: s.started_at, reverse=True)[
            :SESSION_DISPLAY_LIMIT
        ]
        if ordered == sessions:
            return document
        stats = document.reading_stats.model_copy(update={"sessions": ordered})
        return document.model_copy(update={"reading_stats": stats})
