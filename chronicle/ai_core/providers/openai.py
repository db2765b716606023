import asyncio

from openai import OpenAI

from chronicle.ai_core.providers.base import BaseChangelogProvider


class OpenAIProvider(BaseChangelogProvider):
    name = "openai"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str, temperature=None, max_tokens=None):
        super().__init__(model, temperature, max_tokens)
        self.client = OpenAI(api_key=api_key)

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = await asyncio.to_thread(
            self.client.chat.completions.create,
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""
