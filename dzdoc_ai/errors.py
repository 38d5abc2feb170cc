"""Exception taxonomy for the AI skill pipeline."""


class AIPipelineError(Exception):
    """Base class for errors raised inside the skill pipeline."""


class NoProviderConfiguredError(AIPipelineError):
    def __init__(self) -> None:
        super().__init__(
            "AI service not configured. Please start Ollama or configure an Anthropic API key."
        )


class AllProvidersFailedError(AIPipelineError):
    def __init__(self, failures: list[str]) -> None:
        self.failures = failures
        super().__init__("All AI providers failed: " + "; ".join(failures))


class UnknownSkillError(AIPipelineError):
    def __init__(self, skill: str) -> None:
        self.skill = skill
        super().__init__(f"Unknown skill: {skill}")
