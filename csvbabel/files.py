"""Downloading, translating, and encoding referenced CSV files."""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

import aiohttp

from .errors import EmptyInputError, FileDownloadError, UnsupportedFileTypeError
from .table import parse_csv, serialize_csv
from .translator import TableTranslator

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = "text/csv"
OUTPUT_PREFIX = "translated_"

Fetcher = Callable[[str], Awaitable[bytes]]


@dataclass(frozen=True)
class FileReference:
    """A file to translate, identified by a download link."""

    name: str
    download_link: str
    mime_type: str


@dataclass(frozen=True)
class FileResponse:
    """A translated file with base64-encoded CSV content."""

    name: str
    mime_type: str
    content: str

    def to_dict(self) -> dict:
        return {"name": self.name, "mime_type": self.mime_type, "content": self.content}


def decode_content(raw: bytes) -> str:
    return raw.decode("utf-8-sig")


def encode_content(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class HttpFetcher:
    """Fetches file contents over HTTP with a shared aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self.session = session

    async def __call__(self, url: str) -> bytes:
        try:
            async with self.session.get(url) as response:
                if response.status >= 400:
                    raise FileDownloadError(
                        f"Failed to download {url}: HTTP {response.status}."
                    )
                return await response.read()
        except aiohttp.ClientError as exc:
            raise FileDownloadError(f"Failed to download {url}: {exc}") from exc


async def process_file(
    ref: FileReference,
    translator: TableTranslator,
    fetcher: Fetcher,
    language: Optional[str] = None,
) -> FileResponse:
    """Download, translate, and re-encode one CSV file."""

    if ref.mime_type != CSV_MIME_TYPE:
        raise UnsupportedFileTypeError(
            f"Unsupported file type: {ref.mime_type}. Only CSV files are supported."
        )

    logger.info("Processing file: %s", ref.name)
    raw = await fetcher(ref.download_link)
    try:
        table = parse_csv(decode_content(raw))
    except UnicodeDecodeError as exc:
        raise UnsupportedFileTypeError(
            f"The file {ref.name} is not valid UTF-8 text."
        ) from exc
    if not table.rows:
        raise EmptyInputError(f"The CSV file {ref.name} is empty.")

    outcome = await translator.translate(table, language)
    logger.info(
        "Finished processing file: %s (%d cells translated)",
        ref.name,
        outcome.summary.translated_cells,
    )
    return FileResponse(
        name=f"{OUTPUT_PREFIX}{ref.name}",
        mime_type=CSV_MIME_TYPE,
        content=encode_content(serialize_csv(outcome.table)),
    )


async def translate_files(
    refs: Sequence[FileReference],
    translator: TableTranslator,
    fetcher: Fetcher,
    language: Optional[str] = None,
) -> List[FileResponse]:
    """Process every file concurrently; any failure fails the whole call."""

    return list(
        await asyncio.gather(
            *(process_file(ref, translator, fetcher, language) for ref in refs)
        )
    )
