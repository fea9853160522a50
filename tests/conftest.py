"""
Test configuration and fixtures for the PDF Chat application.
"""
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch, MagicMock

import fitz
import pytest
from langchain_core.messages import AIMessage

from pdf_chat.models.subscription import Subscription
from pdf_chat.services.heuristic_responder import HeuristicResponder
from pdf_chat.services.model_responder import ModelResponder
from pdf_chat.services.response_orchestrator import ResponseOrchestrator
from pdf_chat.services.subscription_service import InMemorySubscriptionStore
from pdf_chat.services.usage_store import InMemoryUsageStore
from pdf_chat.services.usage_tracker import UsageTracker


def make_pdf(*pages: str) -> bytes:
    """Build a PDF with one page per text argument."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def heuristic_responder():
    """Fixture to provide a HeuristicResponder without the simulated delay."""
    return HeuristicResponder(delay_range=(0, 0))


@pytest.fixture
def mock_chat_llm():
    """Patch ChatLiteLLM and yield the mocked class."""
    with patch('pdf_chat.services.model_responder.ChatLiteLLM') as mock_cls:
        mock_instance = MagicMock()
        mock_instance.invoke.return_value = AIMessage(content="The document says the answer is 42.")
        mock_cls.return_value = mock_instance
        yield mock_cls


@pytest.fixture
def model_responder(mock_chat_llm):
    """Fixture to provide a ModelResponder backed by the mocked ChatLiteLLM."""
    return ModelResponder()


@pytest.fixture
def orchestrator(heuristic_responder, model_responder):
    return ResponseOrchestrator(heuristic_responder, model_responder)


@pytest.fixture
def subscriptions():
    return InMemorySubscriptionStore()


@pytest.fixture
def usage_store():
    return InMemoryUsageStore()


@pytest.fixture
def tracker(usage_store, subscriptions):
    return UsageTracker(usage_store, subscriptions)


@pytest.fixture
def premium_subscription():
    return Subscription(status="active", plan_key="premium")


@pytest.fixture
def research_text() -> str:
    """Fixture to provide a short research-style document."""
    return (
        "The study found that X increased by 40% in 2020. "
        "The method used was survey-based analysis."
    )


@pytest.fixture
def pdf_factory():
    """Fixture to provide the PDF builder."""
    return make_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    return make_pdf(
        "The study found that X increased by 40% in 2020.\n"
        "The method used was survey-based analysis."
    )


class _CompletionHandler(BaseHTTPRequestHandler):
    """Answers every completion request with the server's configured error status."""

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        self.rfile.read(length)
        self.server.hits.append(self.path)

        body = json.dumps({
            "error": {"message": "stub failure", "type": "error", "code": None}
        }).encode()
        self.send_response(self.server.status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def completion_server(monkeypatch):
    """Local OpenAI-compatible endpoint that records each request it receives."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")

    server = ThreadingHTTPServer(("127.0.0.1", 0), _CompletionHandler)
    server.hits = []
    server.status = 500
    server.url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
