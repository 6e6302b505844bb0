from __future__ import annotations

import logging
from pathlib import Path

from .config import CodecSettings
from .model import Document
from .parser import decode
from .printer import encode

logger = logging.getLogger(__name__)

# Files go through bytes so CRLF record ends and LF card separators survive;
# text-mode newline translation would merge the two.


def read_document(path: Path, settings: CodecSettings | None = None) -> Document:
    """Decode one .vcf file. A leading UTF-8 byte order mark is dropped."""
    text = path.read_bytes().decode("utf-8-sig")
    return decode(text, settings)


def read_documents(
    paths: list[Path],
    settings: CodecSettings | None = None,
) -> list[tuple[Document, str]]:
    """Decode all files and return (document, source_label) pairs."""
    results: list[tuple[Document, str]] = []
    for p in paths:
        label = p.stem
        document = read_document(p, settings)
        logger.debug("%s: %d vCard(s)", label, len(document))
        results.append((document, label))
    return results


def write_document(
    document: Document,
    path: Path,
    settings: CodecSettings | None = None,
) -> int:
    """Encode ``document`` into ``path`` and return the number of vCards."""
    text = encode(document, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    logger.debug("%s: wrote %d vCard(s)", path, len(document))
    return len(document)


def collect_sources(directory: Path) -> list[Path]:
    """Return all .vcf files found directly inside ``directory``, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix.lower() == ".vcf")
