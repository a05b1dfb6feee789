"""
Unit tests for startup health checks.
"""

import httpx
import pytest

from sciencedao.config import load_config
from sciencedao.core.exceptions import HealthCheckFailedError
from sciencedao.workflow.health import HealthChecker


def client_returning(status_code, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, text="<feed></feed>")

    return httpx.Client(transport=httpx.MockTransport(handler))


def failing_client():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def config():
    return load_config(env={"OPENAI_API_KEY": "sk-test"})


class TestLLMCredentials:
    """Test LLM credential check."""

    def test_key_configured(self, config):
        ok, detail = HealthChecker(config).check_llm_credentials()

        assert ok is True
        assert "configured" in detail

    def test_key_missing(self):
        ok, _ = HealthChecker(load_config(env={})).check_llm_credentials()

        assert ok is False

    def test_local_model_needs_no_key(self):
        config = load_config(env={"SCIENCEDAO_LLM_MODEL": "ollama/llama3"})

        ok, _ = HealthChecker(config).check_llm_credentials()

        assert ok is True


class TestArxivCheck:
    """Test arXiv endpoint probe."""

    def test_reachable(self, config):
        seen = []
        checker = HealthChecker(config, http_client=client_returning(200, seen))

        ok, _ = checker.check_arxiv()

        assert ok is True
        assert seen[0].url.params["search_query"] == "test"
        assert seen[0].url.params["max_results"] == "1"

    def test_bad_status(self, config):
        checker = HealthChecker(config, http_client=client_returning(503))

        ok, detail = checker.check_arxiv()

        assert ok is False
        assert "503" in detail

    def test_connection_error(self, config):
        checker = HealthChecker(config, http_client=failing_client())

        ok, detail = checker.check_arxiv()

        assert ok is False
        assert "arXiv check failed" in detail

    def test_malformed_url(self, config):
        config.research.arxiv_api_url = "http://[not-a-host"
        checker = HealthChecker(config, http_client=client_returning(200))

        ok, detail = checker.check_arxiv()

        assert ok is False
        assert "arXiv check failed" in detail

    def test_malformed_url_fails_require_healthy(self, config):
        config.research.arxiv_api_url = "http://[not-a-host"
        checker = HealthChecker(config, http_client=client_returning(200))

        with pytest.raises(HealthCheckFailedError) as exc_info:
            checker.require_healthy()

        assert exc_info.value.errors[0].startswith("arXiv check failed")


class TestHealthChecker:
    """Test combined checks."""

    def test_all_healthy(self, config):
        status = HealthChecker(config, http_client=client_returning(200)).check()

        assert status.healthy
        assert status.errors == []

    def test_collects_errors(self):
        checker = HealthChecker(load_config(env={}), http_client=client_returning(500))

        status = checker.check()

        assert not status.healthy
        assert status.llm is False
        assert status.arxiv is False
        assert len(status.errors) == 2

    def test_require_healthy_raises(self):
        checker = HealthChecker(load_config(env={}), http_client=client_returning(200))

        with pytest.raises(HealthCheckFailedError) as exc_info:
            checker.require_healthy()

        assert exc_info.value.errors == ["OpenAI API key not configured"]

    def test_require_healthy_returns_status(self, config):
        status = HealthChecker(config, http_client=client_returning(200)).require_healthy()

        assert status.llm and status.arxiv
