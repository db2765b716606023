"""
SAP Generative AI Hub provider (langchain ChatOpenAI over the AI Core proxy).
"""

from gen_ai_hub.proxy.langchain.openai import ChatOpenAI
from gen_ai_hub.proxy.core.proxy_clients import get_proxy_client
from langchain_core.messages import HumanMessage, SystemMessage

from chronicle.ai_core.providers.base import BaseChangelogProvider


class GenAIHubProvider(BaseChangelogProvider):
    name = "gen_ai_hub"

    def __init__(self, model: str, temperature=None, max_tokens=None):
        super().__init__(model, temperature, max_tokens)
        # Credentials come from the AI Core service key, no API key needed
        self.proxy_client = get_proxy_client("gen-ai-hub")
        self.llm = ChatOpenAI(
            proxy_model_name=self.model,
            proxy_client=self.proxy_client,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        response = await self.llm.ainvoke(messages)
        return response.content
