"""Base class for agents that talk to the completion API."""

from config.defaults import DEFAULTS
from utils.llm import TextCompletionClient
from utils.template_engine import render_prompt


class BaseAgent:
    """Holds the shared completion client and per-phase model settings.

    Subclasses set `phase` (key into DEFAULTS["models"] / ["temperatures"])
    and `system_prompt` (name of a template under agents/prompts/).
    """

    name = "base"
    phase = "builder"
    system_prompt = ""

    def __init__(self, client=None, model=None, temperature=None):
        self.client = client or TextCompletionClient()
        self.model = model or DEFAULTS["models"][self.phase]
        self.temperature = DEFAULTS["temperatures"][self.phase] if temperature is None else temperature

    def render(self, template, **variables):
        return render_prompt(template, variables)

    async def _call_llm(self, user_prompt, on_chunk=None, system_prompt=None, temperature=None):
        """Send user_prompt with this agent's system prompt and return the full text."""
        system = system_prompt if system_prompt is not None else render_prompt(self.system_prompt)
        return await self.client.collect(
            system,
            user_prompt,
            self.model,
            self.temperature if temperature is None else temperature,
            on_chunk=on_chunk,
        )
