"""Form analysis with Gemini.

For each PDF URL this module:

1. Downloads the PDF over HTTP
2. Uploads it to the Gemini Files API and waits while it is PROCESSING
3. Asks Gemini the form analysis questions (see ``prompts.py``)
4. Extracts the JSON answer and normalizes it into a MachineRecord
5. Deletes the uploaded file

``FormAnalyzer.analyze_pdf`` never raises: any failure becomes a
MachineRecord with ``error_message`` set.
"""

import asyncio
import io
import json
import logging
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
from google import genai
from google.genai import types

from formbot.config import DEFAULT_USER_AGENT
from formbot.models.classification import MachineRecord
from formbot.services.prompts import FORM_ANALYSIS_PROMPT
from formbot.utils.normalizers import normalize_response, raw_text

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DEFAULT_DISPLAY_NAME = "document.pdf"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class FormAnalysisError(Exception):
    """Base class for per-document analysis failures."""


class DocumentRetrievalError(FormAnalysisError):
    """The PDF could not be downloaded."""


class OracleProcessingError(FormAnalysisError):
    """Gemini reported a failure while processing the document."""


class OracleTimeoutError(FormAnalysisError):
    """The uploaded file was still processing after the last poll."""


class ResponseParseError(FormAnalysisError):
    """The Gemini reply did not contain a JSON object."""


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _decode_object(text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Could not parse JSON from response: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParseError("Could not parse JSON from response: expected an object")
    return parsed


def extract_json_payload(text: str) -> Dict[str, Any]:
    """Pull the JSON object out of a Gemini reply.

    A fenced code block is used when present. Otherwise the first top-level
    ``{...}`` object in the text is decoded; trailing prose is ignored.

    Raises:
        ResponseParseError: If no JSON object can be decoded.
    """
    text = text or ""

    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        return _decode_object(fenced.group(1))

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)

    raise ResponseParseError("Could not parse JSON from response")


def display_name_for(url: str) -> str:
    """File name shown in the Gemini Files API: last path segment of the URL."""
    name = urlparse(url).path.rstrip("/").split("/")[-1]
    return name or DEFAULT_DISPLAY_NAME


def _state_name(state: Any) -> str:
    if state is not None and hasattr(state, "name"):
        return str(state.name)
    return str(state) if state else "UNKNOWN"


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class FormAnalyzer:
    """Classifies PDF documents with a Gemini model, one at a time."""

    def __init__(
        self,
        client: genai.Client,
        model: str = "gemini-2.5-flash",
        prompt: Optional[str] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        poll_max_attempts: int = 30,
        poll_interval_seconds: float = 2.0,
    ):
        self.client = client
        self.model = model
        self.prompt = prompt or FORM_ANALYSIS_PROMPT
        self.user_agent = user_agent
        self.poll_max_attempts = poll_max_attempts
        self.poll_interval_seconds = poll_interval_seconds
        self._http_client = http_client

    async def download_pdf(self, url: str) -> bytes:
        """Download a PDF, following redirects.

        Raises:
            DocumentRetrievalError: On transport errors or a non-2xx response.
        """
        logger.info(f"  Downloading PDF from {url}")
        headers = {"User-Agent": self.user_agent}

        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=headers, follow_redirects=True)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise DocumentRetrievalError(f"Failed to download: {e}") from e

        if not response.is_success:
            raise DocumentRetrievalError(
                f"Failed to download: {response.status_code} {response.reason_phrase}"
            )
        return response.content

    async def upload_pdf(self, content: bytes, display_name: str) -> types.File:
        """Upload PDF bytes to the Gemini Files API."""
        logger.info(f"  Uploading to Gemini ({round(len(content) / 1024)} KB)")
        return await asyncio.to_thread(
            self.client.files.upload,
            file=io.BytesIO(content),
            config=types.UploadFileConfig(display_name=display_name, mime_type=PDF_MIME_TYPE),
        )

    async def wait_until_processed(self, uploaded: types.File) -> types.File:
        """Poll the uploaded file until it leaves the PROCESSING state.

        Raises:
            OracleProcessingError: If Gemini reports the file as FAILED.
            OracleTimeoutError: If the file is still PROCESSING after
                ``poll_max_attempts`` polls.
        """
        current = await asyncio.to_thread(self.client.files.get, name=uploaded.name)
        attempts = 0
        while _state_name(current.state) == "PROCESSING" and attempts < self.poll_max_attempts:
            attempts += 1
            logger.info(f"  Processing... ({attempts})")
            await asyncio.sleep(self.poll_interval_seconds)
            current = await asyncio.to_thread(self.client.files.get, name=uploaded.name)

        state = _state_name(current.state)
        if state == "FAILED":
            raise OracleProcessingError("Gemini file processing failed")
        if state == "PROCESSING":
            raise OracleTimeoutError(
                f"Gemini file processing did not finish after {self.poll_max_attempts} polls"
            )
        if not current.uri or not current.mime_type:
            raise OracleProcessingError("File upload succeeded but missing URI or mimeType")
        return current

    async def ask_model(self, uploaded: types.File) -> str:
        """Send the uploaded file and the prompt; return the reply text."""
        logger.info(f"  Analyzing with {self.model}...")
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=[uploaded, self.prompt],
        )
        return response.text or ""

    async def delete_uploaded(self, uploaded: types.File) -> None:
        """Best-effort delete of an uploaded file; failures are only logged."""
        if not getattr(uploaded, "name", None):
            return
        try:
            await asyncio.to_thread(self.client.files.delete, name=uploaded.name)
        except Exception as e:
            logger.warning(f"  Could not delete uploaded file {uploaded.name}: {e}")

    async def analyze_pdf(self, url: str) -> MachineRecord:
        """Analyze one PDF URL.

        Returns:
            MachineRecord with the normalized classification, or with
            ``error_message`` set if any step failed.
        """
        start = time.monotonic()
        uploaded: Optional[types.File] = None

        try:
            content = await self.download_pdf(url)
            file_size_kb = round(len(content) / 1024)

            uploaded = await self.upload_pdf(content, display_name_for(url))
            processed = await self.wait_until_processed(uploaded)

            reply = await self.ask_model(processed)
            parsed = extract_json_payload(reply)
            classification = normalize_response(parsed)

            return MachineRecord(
                url=url,
                raw_form_type=raw_text(parsed.get("formType")),
                model=self.model,
                file_size_kb=file_size_kb,
                processing_time_sec=round(time.monotonic() - start, 1),
                **classification.model_dump(),
            )

        except Exception as e:
            logger.error(f"  Error: {e}")
            return MachineRecord.from_error(
                url,
                str(e) or type(e).__name__,
                model=self.model,
                processing_time_sec=round(time.monotonic() - start, 1),
            )

        finally:
            if uploaded is not None:
                await self.delete_uploaded(uploaded)
