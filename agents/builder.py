"""Builder agent — single-shot code generation for the retry loop."""

from agents.base import BaseAgent
from agents.patch_composer import PatchComposer
from utils.llm import extract_code_block


class BuilderAgent(BaseAgent):
    """Generates one complete file for a request, guided by the previous attempt's errors."""

    name = "builder"
    phase = "builder"
    system_prompt = "builder_system"

    def __init__(self, client=None, composer=None, **kwargs):
        super().__init__(client=client, **kwargs)
        self.composer = composer or PatchComposer()

    async def build(self, request, plan="", relevant_files=None, constraints=(), error_context=None,
                    streamer=None, file_name="Component.tsx"):
        files = relevant_files or {}
        user_prompt = self.render(
            "builder",
            request=request,
            plan=plan or "(no plan)",
            constraints="\n".join(f"- {c}" for c in constraints) or "(none)",
            relevant_files="\n\n".join(f"--- {path}\n{content}" for path, content in files.items()) or "(none)",
            error_context=self.composer.format_instructions(error_context),
        )
        if streamer:
            streamer.start_file_generation(file_name)
        response = await self._call_llm(
            user_prompt,
            on_chunk=streamer.update_file_generation if streamer else None,
        )
        return extract_code_block(response)
