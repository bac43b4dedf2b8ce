"""Tests for the Gemini form analyzer."""

from unittest.mock import MagicMock

import httpx
import pytest

from formbot.models.classification import FormType, IsForm, SensitivityFlags
from formbot.services.form_analyzer import (
    DocumentRetrievalError,
    FormAnalyzer,
    OracleProcessingError,
    OracleTimeoutError,
    ResponseParseError,
    display_name_for,
    extract_json_payload,
)
from formbot.services.prompts import FORM_ANALYSIS_PROMPT

PDF_BYTES = b"%PDF-1.4\n" + b"0" * 4096

FORM_REPLY = """Here is my analysis.

```json
{
  "isForm": "Yes",
  "formType": "Fillable PDF",
  "sensitiveInfo": {
    "ssn": true,
    "driversLicense": false,
    "financial": true,
    "health": false,
    "criminalHistory": false
  },
  "confidence": 0.9,
  "pageCount": 3,
  "notes": "Application for victim compensation"
}
```
"""


def make_file(state="ACTIVE", name="files/abc123"):
    uploaded = MagicMock()
    uploaded.name = name
    uploaded.state = state
    uploaded.uri = "https://generativelanguage.googleapis.com/v1beta/files/abc123"
    uploaded.mime_type = "application/pdf"
    return uploaded


def make_client(reply=FORM_REPLY, states=("ACTIVE",)):
    """Mock genai.Client whose uploaded file goes through ``states``."""
    client = MagicMock()
    client.files.upload.return_value = make_file(state="PROCESSING")
    client.files.get.side_effect = [make_file(state=s) for s in states]
    response = MagicMock()
    response.text = reply
    client.models.generate_content.return_value = response
    return client


def make_http_client(status_code=200, content=PDF_BYTES):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_analyzer(client, http_client=None, **kwargs):
    kwargs.setdefault("poll_interval_seconds", 0)
    return FormAnalyzer(
        client,
        model="gemini-test",
        http_client=http_client or make_http_client(),
        **kwargs,
    )


class TestExtractJsonPayload:

    def test_fenced_json_block(self):
        assert extract_json_payload(FORM_REPLY)["formType"] == "Fillable PDF"

    def test_fence_without_language_tag(self):
        assert extract_json_payload('```\n{"isForm": "No"}\n```') == {"isForm": "No"}

    def test_bare_object_with_surrounding_prose(self):
        text = 'Sure! {"isForm": "No", "notes": "uses {braces}"} Let me know if you need more.'
        assert extract_json_payload(text) == {"isForm": "No", "notes": "uses {braces}"}

    def test_first_object_wins(self):
        assert extract_json_payload('{"a": 1} and then {"b": 2}') == {"a": 1}

    def test_skips_brace_that_is_not_json(self):
        assert extract_json_payload('see {note} then {"isForm": "Yes"}') == {"isForm": "Yes"}

    @pytest.mark.parametrize("text", [
        "",
        "I could not read this document.",
        "```json\n{not json}\n```",
        "```json\n[1, 2]\n```",
        "isForm: Yes",
    ])
    def test_unparseable_replies(self, text):
        with pytest.raises(ResponseParseError):
            extract_json_payload(text)


class TestDisplayName:

    def test_uses_last_path_segment(self):
        assert display_name_for("https://x.test/forms/OVSform.pdf?v=2") == "OVSform.pdf"

    def test_falls_back_for_bare_host(self):
        assert display_name_for("https://x.test/") == "document.pdf"


class TestDownload:

    @pytest.mark.asyncio
    async def test_sends_user_agent_and_follows_redirects(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/old.pdf":
                return httpx.Response(301, headers={"Location": "https://x.test/new.pdf"})
            return httpx.Response(200, content=PDF_BYTES)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        analyzer = make_analyzer(MagicMock(), http_client=http_client, user_agent="formbot-test")

        content = await analyzer.download_pdf("https://x.test/old.pdf")

        assert content == PDF_BYTES
        assert [r.url.path for r in seen] == ["/old.pdf", "/new.pdf"]
        assert seen[0].headers["User-Agent"] == "formbot-test"

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self):
        analyzer = make_analyzer(MagicMock(), http_client=make_http_client(status_code=404))

        with pytest.raises(DocumentRetrievalError, match="404 Not Found"):
            await analyzer.download_pdf("https://x.test/missing.pdf")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        analyzer = make_analyzer(MagicMock(), http_client=http_client)

        with pytest.raises(DocumentRetrievalError, match="connection refused"):
            await analyzer.download_pdf("https://x.test/a.pdf")


class TestWaitUntilProcessed:

    @pytest.mark.asyncio
    async def test_polls_while_processing(self):
        client = make_client(states=("PROCESSING", "PROCESSING", "ACTIVE"))
        analyzer = make_analyzer(client)

        result = await analyzer.wait_until_processed(make_file())

        assert result.state == "ACTIVE"
        assert client.files.get.call_count == 3

    @pytest.mark.asyncio
    async def test_failed_state_raises(self):
        analyzer = make_analyzer(make_client(states=("PROCESSING", "FAILED")))

        with pytest.raises(OracleProcessingError, match="processing failed"):
            await analyzer.wait_until_processed(make_file())

    @pytest.mark.asyncio
    async def test_poll_bound_raises_timeout(self):
        client = make_client(states=("PROCESSING",) * 4)
        analyzer = make_analyzer(client, poll_max_attempts=3)

        with pytest.raises(OracleTimeoutError):
            await analyzer.wait_until_processed(make_file())

        # initial get plus one per attempt
        assert client.files.get.call_count == 4

    @pytest.mark.asyncio
    async def test_enum_like_state_is_supported(self):
        state = MagicMock()
        state.name = "ACTIVE"
        client = MagicMock()
        client.files.get.return_value = make_file(state=state)

        result = await make_analyzer(client).wait_until_processed(make_file())

        assert result.state is state

    @pytest.mark.asyncio
    async def test_missing_uri_raises(self):
        processed = make_file()
        processed.uri = None
        client = MagicMock()
        client.files.get.return_value = processed

        with pytest.raises(OracleProcessingError, match="missing URI"):
            await make_analyzer(client).wait_until_processed(make_file())


class TestAnalyzePdf:

    @pytest.mark.asyncio
    async def test_successful_analysis(self):
        client = make_client()
        analyzer = make_analyzer(client)

        record = await analyzer.analyze_pdf("https://x.test/forms/OVSform.pdf")

        assert record.error_message is None
        assert record.url == "https://x.test/forms/OVSform.pdf"
        assert record.is_form == IsForm.YES
        assert record.form_type == FormType.FILLABLE_PDF
        assert record.raw_form_type == "Fillable PDF"
        assert record.sensitivity == SensitivityFlags(ssn=True, financial=True)
        assert record.confidence == 0.9
        assert record.page_count == 3
        assert record.file_size_kb == 4
        assert record.model == "gemini-test"

        upload_kwargs = client.files.upload.call_args.kwargs
        assert upload_kwargs["config"].display_name == "OVSform.pdf"
        assert upload_kwargs["config"].mime_type == "application/pdf"

        generate_kwargs = client.models.generate_content.call_args.kwargs
        assert generate_kwargs["model"] == "gemini-test"
        assert generate_kwargs["contents"][1] == FORM_ANALYSIS_PROMPT

        client.files.delete.assert_called_once_with(name="files/abc123")

    @pytest.mark.asyncio
    async def test_custom_prompt_is_sent_verbatim(self):
        client = make_client()
        analyzer = make_analyzer(client)
        analyzer.prompt = "Just answer in JSON."

        await analyzer.analyze_pdf("https://x.test/a.pdf")

        assert client.models.generate_content.call_args.kwargs["contents"][1] == "Just answer in JSON."

    @pytest.mark.asyncio
    async def test_download_404_produces_error_record(self):
        client = make_client()
        analyzer = make_analyzer(client, http_client=make_http_client(status_code=404))

        record = await analyzer.analyze_pdf("https://x.test/missing.pdf")

        assert record.error_message == "Failed to download: 404 Not Found"
        assert record.is_form == IsForm.ERROR
        assert record.form_type == FormType.NOT_APPLICABLE
        assert not record.sensitivity.any()
        assert record.confidence is None
        client.files.upload.assert_not_called()
        client.files.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_unparseable_reply_produces_error_record_and_cleans_up(self):
        client = make_client(reply="Sorry, I cannot help with that.")
        analyzer = make_analyzer(client)

        record = await analyzer.analyze_pdf("https://x.test/a.pdf")

        assert record.is_form == IsForm.ERROR
        assert "Could not parse JSON" in record.error_message
        client.files.delete.assert_called_once()

    @pytest.mark.asyncio
    async def test_processing_failure_produces_error_record(self):
        analyzer = make_analyzer(make_client(states=("FAILED",)))

        record = await analyzer.analyze_pdf("https://x.test/a.pdf")

        assert record.error_message == "Gemini file processing failed"

    @pytest.mark.asyncio
    async def test_sdk_exception_produces_error_record(self):
        client = make_client()
        client.models.generate_content.side_effect = RuntimeError("quota exceeded")

        record = await make_analyzer(client).analyze_pdf("https://x.test/a.pdf")

        assert record.error_message == "quota exceeded"
        client.files.delete.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_failure_is_swallowed(self):
        client = make_client()
        client.files.delete.side_effect = RuntimeError("already gone")

        record = await make_analyzer(client).analyze_pdf("https://x.test/a.pdf")

        assert record.error_message is None
        assert record.is_form == IsForm.YES

    @pytest.mark.asyncio
    async def test_reply_without_fence_is_parsed(self):
        client = make_client(reply='{"isForm": "No", "formType": "N/A", "notes": "Meeting minutes"}')

        record = await make_analyzer(client).analyze_pdf("https://x.test/minutes.pdf")

        assert record.is_form == IsForm.NO
        assert record.form_type == FormType.NOT_APPLICABLE
        assert record.notes == "Meeting minutes"
        assert record.confidence is None
