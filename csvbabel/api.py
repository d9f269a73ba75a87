"""FastAPI application exposing CSV translation over HTTP."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import aiohttp
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaValidationError

from .configuration import build_orchestrator_config, get_settings
from .errors import CsvBabelError, UnsupportedLanguageError
from .files import Fetcher, FileReference, HttpFetcher, translate_files
from .languages import validate_language
from .providers import build_provider
from .translator import TableTranslator

logger = logging.getLogger(__name__)


class FileIdRef(BaseModel):
    name: str
    download_link: str
    mime_type: str


class TranslateRequest(BaseModel):
    openaiFileIdRefs: List[FileIdRef] = Field(min_length=1)
    language: Optional[str] = None


class TranslatedFile(BaseModel):
    name: str
    mime_type: str
    content: str


class TranslateResponse(BaseModel):
    openaiFileResponse: List[TranslatedFile]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    translator: TableTranslator | None = None,
    fetcher: Fetcher | None = None,
) -> FastAPI:
    """Build the application.

    Without arguments the translator is built from the loaded settings and
    files are fetched with a shared aiohttp session.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session: aiohttp.ClientSession | None = None
        if translator is None:
            settings = get_settings()
            provider = build_provider(
                settings.LLM_PROVIDER,
                settings,
                debug=settings.CSVBABEL_PROVIDER_DEBUG,
            )
            app.state.translator = TableTranslator(
                provider, build_orchestrator_config(settings)
            )
        else:
            app.state.translator = translator
        if fetcher is None:
            session = aiohttp.ClientSession()
            app.state.fetcher = HttpFetcher(session)
        else:
            app.state.fetcher = fetcher
        try:
            yield
        finally:
            if session is not None:
                await session.close()
            if translator is None:
                await app.state.translator.provider.aclose()

    app = FastAPI(
        title="csvbabel",
        description="Translate CSV files with an LLM translation provider",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/translate", response_model=TranslateResponse)
    async def translate(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return error_response(400, "Request body must be valid JSON.")

        try:
            payload = TranslateRequest.model_validate(body)
        except SchemaValidationError:
            return error_response(400, 'Invalid or empty "openaiFileIdRefs" array.')

        language = payload.language
        if language is not None:
            try:
                language = validate_language(language)
            except UnsupportedLanguageError as exc:
                return error_response(400, str(exc))

        refs = [FileReference(**ref.model_dump()) for ref in payload.openaiFileIdRefs]
        try:
            files = await translate_files(
                refs,
                request.app.state.translator,
                request.app.state.fetcher,
                language,
            )
        except CsvBabelError as exc:
            logger.error("Translation request failed: %s", exc)
            return error_response(500, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while translating files")
            return error_response(500, str(exc) or "Internal Server Error")

        return TranslateResponse(
            openaiFileResponse=[TranslatedFile(**item.to_dict()) for item in files]
        )

    return app
