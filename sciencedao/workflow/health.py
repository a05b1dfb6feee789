"""
Startup health checks.

Verifies that LLM credentials are configured and that the arXiv API answers
before the operation loop does any work.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from sciencedao.config import ScienceDAOConfig
from sciencedao.core.exceptions import HealthCheckFailedError

logger = logging.getLogger(__name__)

LOCAL_MODEL_PREFIXES = ("ollama/", "lm_studio/")


class HealthStatus(BaseModel):
    """Result of a health check round."""
    llm: bool = False
    arxiv: bool = False
    last_check: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    errors: List[str] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.llm and self.arxiv


class HealthChecker:
    """
    Checks the services the research agent cannot run without.

    Example:
        ```python
        checker = HealthChecker(get_config())
        status = checker.check()
        if not status.healthy:
            print(status.errors)
        ```
    """

    def __init__(
        self,
        config: ScienceDAOConfig,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 5.0
    ):
        """
        Initialize the checker.

        Args:
            config: Application configuration
            http_client: Client used for endpoint probes (tests inject one
                with a mock transport)
            timeout: Probe timeout in seconds
        """
        self.config = config
        self.http_client = http_client
        self.timeout = timeout

    def check_llm_credentials(self) -> Tuple[bool, str]:
        """LLM API key is configured (local models need none)."""
        if self.config.llm.model.lower().startswith(LOCAL_MODEL_PREFIXES):
            return True, f"Local model {self.config.llm.model} needs no API key"
        if self.config.llm.openai_api_key:
            return True, "OpenAI API key configured"
        return False, "OpenAI API key not configured"

    def check_arxiv(self) -> Tuple[bool, str]:
        """arXiv API answers a minimal query."""
        url = self.config.research.arxiv_api_url
        params = {"search_query": "test", "max_results": 1}
        try:
            if self.http_client is not None:
                response = self.http_client.get(url, params=params, timeout=self.timeout)
            else:
                response = httpx.get(url, params=params, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return False, f"arXiv check failed: {e}"

        if response.status_code == 200:
            return True, "arXiv API accessible"
        return False, f"arXiv check failed: HTTP {response.status_code}"

    def check(self) -> HealthStatus:
        """Run all checks."""
        logger.debug("Performing health check...")
        status = HealthStatus()

        status.llm, detail = self.check_llm_credentials()
        if not status.llm:
            status.errors.append(detail)
        logger.debug(f"{'✓' if status.llm else '✗'} {detail}")

        status.arxiv, detail = self.check_arxiv()
        if not status.arxiv:
            status.errors.append(detail)
        logger.debug(f"{'✓' if status.arxiv else '✗'} {detail}")

        return status

    def require_healthy(self) -> HealthStatus:
        """
        Run all checks and fail if a required service is unavailable.

        Raises:
            HealthCheckFailedError: If any check fails
        """
        status = self.check()
        if not status.healthy:
            raise HealthCheckFailedError(status.errors)
        return status
