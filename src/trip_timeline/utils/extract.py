"""
Attachment text extraction for the travel assistant.

Plain text files are read directly; PDFs are sent to the PDF extraction API,
which answers ``{"text": "..."}``. Every file yields an ExtractionResult so a
failure never travels through the text channel as if it were content.
"""

import base64
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

import requests

# Bracketed error strings older clients embedded as if they were document text
_SENTINEL_ERROR = re.compile(
    r"^\[(Error extracting PDF|Unsupported file|No text extracted)[^\]]*\]$", re.IGNORECASE
)


@dataclass(frozen=True)
class ExtractionResult:
    name: str
    ok: bool
    text: str = ""
    error: str = ""


def is_extraction_error_text(text: str) -> bool:
    """True for legacy sentinel strings such as ``[Error extracting PDF: ...]``."""
    return bool(isinstance(text, str) and _SENTINEL_ERROR.match(text.strip()))


def _kind(attachment: Dict[str, Any]) -> str:
    name = (attachment.get("name") or "").lower()
    mime_type = attachment.get("mimeType")
    if name.endswith(".txt") or mime_type == "text/plain":
        return "text"
    if name.endswith(".pdf") or mime_type == "application/pdf":
        return "pdf"
    return "unsupported"


class AttachmentExtractor:
    """Extracts text from attachments; one worker per file, results in input order."""

    def __init__(self, pdf_api_url: Optional[str], session: Optional[requests.Session] = None,
                 timeout: float = 30):
        self.pdf_api_url = pdf_api_url.strip().rstrip("/") if pdf_api_url else ""
        self.session = session or requests.Session()
        self.timeout = timeout
        self._cache: Dict[Tuple[str, str], str] = {}

    def _read_bytes(self, uri: str) -> bytes:
        parsed = urlparse(uri)
        if parsed.scheme in ("http", "https"):
            response = self.session.get(uri, timeout=self.timeout)
            response.raise_for_status()
            return response.content
        path = unquote(parsed.path) if parsed.scheme == "file" else uri
        with open(path, "rb") as fh:
            return fh.read()

    def _read_text(self, attachment: Dict[str, Any]) -> ExtractionResult:
        name = attachment.get("name", "")
        try:
            text = self._read_bytes(attachment["uri"]).decode("utf-8", errors="replace")
        except (OSError, KeyError, requests.exceptions.RequestException) as e:
            logging.error(f"Failed to read text attachment '{name}': {e}")
            return ExtractionResult(name, False, error=f"Could not read file: {e}")
        return ExtractionResult(name, True, text=text)

    def _extract_pdf(self, attachment: Dict[str, Any]) -> ExtractionResult:
        name = attachment.get("name", "")
        key = (attachment.get("uri", ""), name)
        if key in self._cache:
            logging.info(f"Using cached PDF text for '{name}'.")
            return ExtractionResult(name, True, text=self._cache[key])

        if not self.pdf_api_url:
            return ExtractionResult(name, False, error="PDF_EXTRACT_API_URL is not configured.")

        try:
            payload = {"pdfBase64": base64.b64encode(self._read_bytes(attachment["uri"])).decode("ascii")}
        except (OSError, KeyError, requests.exceptions.RequestException) as e:
            logging.error(f"Failed to read PDF attachment '{name}': {e}")
            return ExtractionResult(name, False, error=f"Could not read file: {e}")

        try:
            response = self.session.post(self.pdf_api_url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"PDF extraction API request failed: {e}")
            return ExtractionResult(name, False, error=f"PDF API unreachable: {e}")

        if not response.ok:
            message = f"API responded {response.status_code}"
            try:
                body = response.json()
                message = body.get("detail") or body.get("error") or message
            except (ValueError, AttributeError):
                if response.text:
                    message = response.text[:200]
            logging.error(f"PDF extraction failed for '{name}': {message}")
            return ExtractionResult(name, False, error=message)

        try:
            text = (response.json().get("text") or "").strip()
        except (ValueError, AttributeError):
            logging.error("PDF extraction API returned invalid JSON.")
            return ExtractionResult(name, False, error="Invalid response from PDF API.")
        if not text or is_extraction_error_text(text):
            return ExtractionResult(name, False, error=text or "No text extracted from PDF.")

        self._cache[key] = text
        return ExtractionResult(name, True, text=text)

    def extract(self, attachment: Dict[str, Any]) -> ExtractionResult:
        kind = _kind(attachment)
        logging.info(f"Extracting text from '{attachment.get('name')}' ({kind}).")
        if kind == "text":
            return self._read_text(attachment)
        if kind == "pdf":
            return self._extract_pdf(attachment)
        return ExtractionResult(attachment.get("name", ""), False,
                                error="Unsupported file. Use .txt or .pdf.")

    def extract_all(self, attachments: Sequence[Dict[str, Any]]) -> List[ExtractionResult]:
        if not attachments:
            return []
        with ThreadPoolExecutor(max_workers=len(attachments)) as pool:
            return list(pool.map(self.extract, attachments))


def format_extracted(results: Sequence[ExtractionResult]) -> str:
    """Joins successful results as ``--- name ---`` blocks; failures are left out."""
    return "\n\n".join(f"--- {r.name} ---\n{r.text}" for r in results if r.ok and r.text.strip())
