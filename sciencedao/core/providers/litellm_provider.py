"""
LiteLLM provider.

Thin synchronous wrapper over ``litellm.completion`` so the peer reviewer can
talk to OpenAI, Anthropic, Ollama and other backends with one interface.

Model Format Examples:
    OpenAI: "gpt-4"
    Anthropic: "claude-3-5-sonnet-20241022"
    Ollama: "ollama/llama3.1:8b"
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from sciencedao.core.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """Unified completion response."""
    content: str
    model: str
    finish_reason: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0


class LiteLLMProvider:
    """
    LiteLLM-based provider.

    Example usage:
        ```python
        provider = LiteLLMProvider({
            'model': 'gpt-4',
            'api_key': 'sk-...'
        })
        response = provider.generate("Hello!", system="Be brief.")
        print(response.content)
        ```
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize LiteLLM provider.

        Args:
            config: Configuration dictionary with:
                - model: Model identifier (e.g., "gpt-4", "ollama/llama3.1")
                - api_key: API key (optional for local models)
                - api_base: Custom API base URL
                - max_tokens: Default max tokens
                - temperature: Default temperature
                - timeout: Request timeout in seconds
        """
        # Import litellm here so importing sciencedao stays cheap
        try:
            import litellm
            self.litellm = litellm
        except ImportError:
            raise ImportError(
                "LiteLLM is required for LiteLLMProvider. "
                "Install it with: pip install litellm"
            )

        self.model = config.get('model', 'gpt-4')
        self.api_key = config.get('api_key') or None
        self.api_base = config.get('api_base')
        self.max_tokens_default = config.get('max_tokens', 1000)
        self.temperature_default = config.get('temperature', 0.7)
        self.timeout = config.get('timeout', 60)

        logger.info(f"LiteLLM provider initialized: model={self.model}, api_base={self.api_base}")

    def _build_messages(self, prompt: str, system: Optional[str] = None) -> List[Dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _parse_response(self, response) -> LLMResponse:
        """Parse LiteLLM response into unified format."""
        choice = response.choices[0]
        usage = getattr(response, 'usage', None)
        return LLMResponse(
            content=choice.message.content or "",
            model=getattr(response, 'model', None) or self.model,
            finish_reason=getattr(choice, 'finish_reason', None),
            input_tokens=getattr(usage, 'prompt_tokens', 0) or 0,
            output_tokens=getattr(usage, 'completion_tokens', 0) or 0,
        )

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate text from a prompt.

        Args:
            prompt: The user prompt
            system: Optional system prompt
            max_tokens: Maximum tokens to generate (default from config)
            temperature: Sampling temperature (default from config)
            **kwargs: Additional LiteLLM parameters

        Returns:
            LLMResponse

        Raises:
            ProviderAPIError: If the completion call fails
        """
        try:
            response = self.litellm.completion(
                model=self.model,
                messages=self._build_messages(prompt, system),
                max_tokens=max_tokens or self.max_tokens_default,
                temperature=temperature if temperature is not None else self.temperature_default,
                api_key=self.api_key,
                api_base=self.api_base,
                timeout=self.timeout,
                **kwargs
            )
            return self._parse_response(response)

        except Exception as e:
            logger.error(f"LiteLLM generation failed: {e}")
            raise ProviderAPIError(
                "litellm",
                f"Generation failed: {e}",
                raw_error=e
            )
