from chronicle.ai_core.generation.changelog_generator import (
    ChangelogGenerator,
    GenerationResult,
)

__all__ = ["ChangelogGenerator", "GenerationResult"]
