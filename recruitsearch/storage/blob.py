"""Document/blob store used for candidate records and resume files."""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from recruitsearch.core.errors import NotFoundError, ValidationError
from recruitsearch.core.schemas import CandidateRecord

logger = logging.getLogger(__name__)

_META_DIR = ".meta"


class DocumentStore(ABC):
    """Base class for blob stores addressed by ``(container, name)``."""

    @abstractmethod
    def get(self, container: str, name: str) -> bytes:
        """Return the blob's bytes. Raises NotFoundError when absent."""

    @abstractmethod
    def put(
        self,
        container: str,
        name: str,
        data: bytes,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Create or overwrite a blob."""

    @abstractmethod
    def list(self, container: str, prefix: str = "") -> Iterator[str]:
        """Yield blob names in a container, sorted, optionally by prefix."""

    @abstractmethod
    def exists(self, container: str, name: str) -> bool:
        """Return True when the blob is present."""

    @abstractmethod
    def get_metadata(self, container: str, name: str) -> dict[str, str]:
        """Return the metadata stored with a blob, empty when none was given."""


class LocalDocumentStore(DocumentStore):
    """Filesystem-backed store: one directory per container.

    Metadata, when given, is kept in a JSON sidecar under ``<container>/.meta``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, container: str, name: str) -> Path:
        parts = Path(name).parts
        if not name or Path(name).is_absolute() or ".." in parts or _META_DIR in parts:
            msg = f"Invalid blob name: {name!r}"
            raise ValidationError(msg, details={"container": container, "name": name})
        return self.root / container / name

    def get(self, container: str, name: str) -> bytes:
        path = self._path(container, name)
        if not path.is_file():
            msg = f"Blob {container}/{name} not found"
            raise NotFoundError(msg, details={"container": container, "name": name})
        return path.read_bytes()

    def put(
        self,
        container: str,
        name: str,
        data: bytes,
        metadata: dict[str, str] | None = None,
    ) -> None:
        path = self._path(container, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if metadata:
            meta_path = self.root / container / _META_DIR / f"{name}.json"
            meta_path.parent.mkdir(parents=True, exist_ok=True)
            meta_path.write_text(json.dumps(metadata, indent=2))
        logger.debug("Stored %s/%s (%d bytes)", container, name, len(data))

    def get_metadata(self, container: str, name: str) -> dict[str, str]:
        self._path(container, name)
        meta_path = self.root / container / _META_DIR / f"{name}.json"
        if not meta_path.is_file():
            return {}
        return json.loads(meta_path.read_text())  # type: ignore[no-any-return]

    def list(self, container: str, prefix: str = "") -> Iterator[str]:
        base = self.root / container
        if not base.is_dir():
            return
        for path in sorted(base.rglob("*")):
            if not path.is_file():
                continue
            name = path.relative_to(base).as_posix()
            if name.split("/", 1)[0] == _META_DIR:
                continue
            if name.startswith(prefix):
                yield name

    def exists(self, container: str, name: str) -> bool:
        return self._path(container, name).is_file()


class CandidateRepository:
    """Candidate records stored as ``<candidateId>.json`` blobs."""

    def __init__(
        self,
        store: DocumentStore,
        candidates_container: str = "candidates",
        resumes_container: str = "resumes",
    ) -> None:
        self.store = store
        self.candidates_container = candidates_container
        self.resumes_container = resumes_container

    def load(self, candidate_id: str) -> CandidateRecord:
        raw = self.store.get(self.candidates_container, f"{candidate_id}.json")
        data: dict[str, Any] = json.loads(raw)
        # Records written by older tooling key the id as ``id``.
        if "candidateId" not in data and "id" in data:
            data["candidateId"] = data.pop("id")
        return CandidateRecord.model_validate(data)

    def save(self, record: CandidateRecord) -> None:
        payload = record.model_dump_json(by_alias=True, indent=2).encode("utf-8")
        self.store.put(
            self.candidates_container,
            f"{record.candidate_id}.json",
            payload,
            metadata={"candidateId": record.candidate_id},
        )

    def candidate_ids(self) -> Iterator[str]:
        for name in self.store.list(self.candidates_container):
            if name.endswith(".json"):
                yield name[: -len(".json")]

    def iter_records(self) -> Iterator[CandidateRecord]:
        """Yield every readable record, skipping unparseable blobs with a log line."""
        for candidate_id in self.candidate_ids():
            try:
                yield self.load(candidate_id)
            except (ValueError, NotFoundError) as e:
                logger.warning("Skipping unreadable candidate record %s: %s", candidate_id, e)

    def load_resume(self, file_name: str) -> bytes:
        return self.store.get(self.resumes_container, file_name)

    def save_resume(self, file_name: str, data: bytes, content_type: str = "") -> None:
        metadata = {"contentType": content_type} if content_type else None
        self.store.put(self.resumes_container, file_name, data, metadata=metadata)

    def resume_content_type(self, file_name: str) -> str | None:
        """Content type recorded at upload, if any."""
        return self.store.get_metadata(self.resumes_container, file_name).get("contentType") or None
