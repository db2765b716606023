import asyncio

from anthropic import Anthropic
from anthropic.types import TextBlock

from chronicle.ai_core.providers.base import BaseChangelogProvider


class AnthropicProvider(BaseChangelogProvider):
    name = "anthropic"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str, temperature=None, max_tokens=None):
        super().__init__(model, temperature, max_tokens)
        self.client = Anthropic(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = await asyncio.to_thread(
            self.client.messages.create,
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
