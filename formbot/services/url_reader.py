"""Read the list of PDF URLs to analyze.

- ``.txt`` files: one URL per line, blank lines and ``#`` comments ignored
- any other file (CSV exports etc.): every PDF URL found anywhere in the text
- anything that is not an existing file: treated as a single literal URL
"""

import re
from pathlib import Path
from typing import Iterable, List, Union

PDF_URL_PATTERN = re.compile(r"https?://[^\s,\"'<>]+\.pdf", re.IGNORECASE)

# Sample documents used by ``formbot analyze --test``
TEST_URLS = [
    "http://cspinet.org/new/pdf/cspi_soda_philanthropy_online.pdf",
    "http://forms.sfplanning.org/SchoolChildCareManagementPlan_SupplementalApplication.pdf",
    "http://media.api.sf.gov/documents/Folsom_Street_Entertainment_Zone_Management_Plan_.pdf",
    "http://oag.ca.gov/sites/all/files/agweb/pdfs/victimservices/OVSform.pdf",
    "http://sfbos.org/ftp/uploadedfiles/bdsupvrs/ordinances15/o0099-15.pdf",
    "http://www.cdcr.ca.gov/victim_services/docs/CDCR1707.pdf",
]


def _dedupe(urls: Iterable[str]) -> List[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(urls))


def parse_url_lines(content: str) -> List[str]:
    """One URL per line; skips blank lines and lines starting with ``#``."""
    urls = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            urls.append(stripped)
    return _dedupe(urls)


def extract_pdf_urls(content: str) -> List[str]:
    """Every PDF URL appearing anywhere in ``content``, in order of first appearance."""
    return _dedupe(PDF_URL_PATTERN.findall(content))


def read_urls_from_file(file_path: Union[str, Path]) -> List[str]:
    """Read URLs from a ``.txt`` list or extract them from any other text file."""
    path = Path(file_path)
    content = path.read_text(encoding="utf-8-sig")
    if path.suffix.lower() == ".txt":
        return parse_url_lines(content)
    return extract_pdf_urls(content)


def resolve_urls(source: str) -> List[str]:
    """Resolve a CLI argument: an existing file is read, anything else is one URL."""
    if Path(source).is_file():
        return read_urls_from_file(source)
    url = source.strip()
    return [url] if url else []
