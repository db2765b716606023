# AI Core module

"""
AI Core Module - customer-facing copy for changelog entries.

Key responsibilities:
- Prompt construction for new and regenerated entries
- Provider abstraction (gen_ai_hub, OpenAI, Anthropic)
- Primary/fallback orchestration with timeouts and placeholder drafts
"""
