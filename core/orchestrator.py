"""Multi-phase pipeline: intent -> context -> plan -> surgical edits -> validation."""

import asyncio
import logging
import time

from agents.builder import BuilderAgent
from agents.editor import SurgicalEditor
from agents.error_detector import ErrorDetector
from agents.intent import IntentClassifier
from agents.planner import StrategicPlanner
from agents.retriever import ContextRetriever
from agents.summarizer import format_summaries
from config.defaults import DEFAULTS
from core.conversation import extract_component_names
from core.retry import RetryOrchestrator
from core.state import CodebaseContext, ReasoningPhase, ReasoningResult
from manager.classifier import analyze_task, generate_constraints
from utils.llm import TextCompletionClient

logger = logging.getLogger(__name__)

PHASE_NAMES = (
    "Intent Analysis",
    "Context Search",
    "Strategic Planning",
    "Surgical Execution",
    "Validation",
)
PLAN_PHASE_NAMES = PHASE_NAMES[:3]

DUPLICATE_WARNING = "Similar request detected - adapting approach based on previous interactions"


class ValidationError(Exception):
    """The pipeline finished without producing a usable result."""


class _Run:
    """Mutable state of one orchestration run."""

    def __init__(self, names):
        self.phases = [ReasoningPhase(name=name) for name in names]
        self.result = ReasoningResult(phases=self.phases)
        self.started = time.monotonic()

    def phase(self, name):
        return next(p for p in self.phases if p.name == name)

    def finish(self, success, error=None):
        self.result.success = success
        self.result.error = error
        self.result.total_duration = time.monotonic() - self.started
        return self.result


class MultiPhaseOrchestrator:
    """Runs the reasoning phases strictly in order for one request.

    The first failing phase is marked failed, later phases stay pending and
    the result carries the error. Cancellation marks the running phase
    failed and propagates.
    """

    def __init__(self, client=None, classifier=None, retriever=None, planner=None, editor=None,
                 detector=None, builder=None, phase_timeout=None):
        client = client or TextCompletionClient()
        self.classifier = classifier or IntentClassifier(client)
        self.retriever = retriever or ContextRetriever()
        self.planner = planner or StrategicPlanner(client)
        self.editor = editor or SurgicalEditor(client)
        self.detector = detector or ErrorDetector()
        self.builder = builder or BuilderAgent(client)
        self.phase_timeout = DEFAULTS["phase_timeout"] if phase_timeout is None else phase_timeout

    async def _execute_phase(self, run, name, step):
        phase = run.phase(name)
        phase.start()
        logger.info("Phase %s started", name)
        try:
            if self.phase_timeout:
                value = await asyncio.wait_for(step(), timeout=self.phase_timeout)
            else:
                value = await step()
        except asyncio.CancelledError:
            phase.fail("cancelled")
            raise
        except asyncio.TimeoutError:
            message = f"{name} timed out after {self.phase_timeout}s"
            phase.fail(message)
            raise asyncio.TimeoutError(message) from None
        except Exception as e:
            phase.fail(e)
            raise
        phase.complete(value)
        logger.info("Phase %s completed in %.2fs", name, phase.duration)
        return value

    def _codebase_context(self, files, session):
        components = list(session.get_components()) if session else []
        for name in extract_component_names(files):
            if name not in components:
                components.append(name)
        recent = [f"{e.edit_type}: {e.file_name}" for e in session.get_recent_edits(5)] if session else []
        return CodebaseContext(
            files=files,
            file_structure="\n".join(files),
            component_list=components,
            recent_changes=recent,
        )

    def _open_session(self, prompt, files, session, streamer, run):
        if session is None:
            return
        if session.is_duplicate_request(prompt):
            run.result.warnings.append(DUPLICATE_WARNING)
            if streamer:
                streamer.add_warning(DUPLICATE_WARNING)
        session.add_message("user", prompt)
        session.update_context(files)

    async def _analyze(self, prompt, files, session, streamer, run):
        codebase = self._codebase_context(files, session)

        async def intent_step():
            if streamer:
                streamer.start_intent_analysis(prompt)
            intent = await self.classifier.analyze_intent(prompt, codebase)
            if streamer:
                streamer.complete_intent_analysis(intent)
            return intent

        intent = await self._execute_phase(run, "Intent Analysis", intent_step)
        run.result.intent = intent

        async def context_step():
            if streamer:
                streamer.update_status("Context Search", f"Searching for: {', '.join(intent.search_terms)}")
                streamer.start_context_building(len(files))
            self.retriever.index(files, streamer)
            query = " ".join([prompt] + intent.search_terms)
            context = self.retriever.retrieve(intent, query, files)
            if streamer:
                streamer.complete_context_building(
                    f"{len(context.relevant_files)} relevant file(s), confidence {context.confidence:.0%}"
                )
            return context

        run.result.context = await self._execute_phase(run, "Context Search", context_step)
        return codebase

    async def run(self, prompt, files, session=None, streamer=None):
        """Run all five phases. Returns a ReasoningResult; only cancellation raises."""
        run = _Run(PHASE_NAMES)
        self._open_session(prompt, files, session, streamer, run)
        try:
            codebase = await self._analyze(prompt, files, session, streamer, run)
            intent, context = run.result.intent, run.result.context

            async def plan_step():
                if streamer:
                    streamer.update_status("Strategic Planning", "Creating execution strategy...")
                return await self.planner.create_plan(
                    intent,
                    context,
                    project_summary=session.get_project_summary() if session else "",
                    user_preferences=session.get_preferred_patterns() if session else {},
                    file_count=len(files),
                    streamer=streamer,
                )

            plan = await self._execute_phase(run, "Strategic Planning", plan_step)
            run.result.plan = plan

            async def edit_step():
                return await self.editor.perform_edit(
                    intent, plan, files, streamer, components=codebase.component_list,
                )

            edits = await self._execute_phase(run, "Surgical Execution", edit_step)
            run.result.edits = edits

            async def validate_step():
                return self._validate(edits, run, streamer)

            await self._execute_phase(run, "Validation", validate_step)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Pipeline failed: %s", e)
            return run.finish(False, str(e) or type(e).__name__)

        if session is not None:
            for edit in run.result.edits:
                session.record_file_edit(
                    edit.file_path,
                    run.result.intent.edit_type,
                    edit.change_description,
                    extract_component_names({edit.file_path: edit.modified_content}),
                )
            session.add_message(
                "assistant",
                f"Applied {len(run.result.edits)} edit(s) using {run.result.plan.approach}",
                {"files": [e.file_path for e in run.result.edits]},
            )
        return run.finish(True)

    def _validate(self, edits, run, streamer):
        if not edits:
            raise ValidationError("Validation failed: No edits produced for user request")
        for edit in edits:
            if not edit.modified_content:
                message = f"Empty content produced for {edit.file_path}"
                run.result.warnings.append(message)
                if streamer:
                    streamer.add_warning(message)
                continue
            errors = self.detector.detect(edit.modified_content)
            if errors:
                run.result.diagnostics[edit.file_path] = errors
                message = f"{len(errors)} potential issue(s) in {edit.file_path}"
                run.result.warnings.append(message)
                if streamer:
                    streamer.add_warning(message)
        return {"edits": len(edits), "diagnostics": sum(len(e) for e in run.result.diagnostics.values())}

    async def plan(self, prompt, files, session=None, streamer=None):
        """Intent, context and a markdown plan only; nothing is edited."""
        run = _Run(PLAN_PHASE_NAMES)
        self._open_session(prompt, files, session, streamer, run)
        try:
            await self._analyze(prompt, files, session, streamer, run)

            async def plan_step():
                return await self.planner.create_enhanced_plan(
                    prompt,
                    run.result.intent,
                    files,
                    conversation_context=session.get_conversation_context() if session else "",
                    project_summary=session.get_project_summary() if session else "",
                    user_preferences=session.get_preferred_patterns() if session else {},
                    streamer=streamer,
                )

            run.result.plan = await self._execute_phase(run, "Strategic Planning", plan_step)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Planning failed: %s", e)
            return run.finish(False, str(e) or type(e).__name__)
        return run.finish(True)

    async def run_agentic(self, request, files=None, max_retries=None, streamer=None, summarizer=None):
        """Generate one file through the build/detect/fix retry loop.

        summarizer: optional FileSummarizer; its index is refreshed from
        files and its project context and relevant summaries go into the plan.
        Returns (TaskAnalysis, RetryResult).
        """
        files = files or {}
        task = analyze_task(request)
        constraints = generate_constraints(request)
        if streamer:
            streamer.update_status(
                "Task analysis", f"{task.category} task, {task.complexity} complexity",
            )

        relevant = {}
        if files:
            self.retriever.index(files)
            for analysis in self.retriever.find_relevant_files(request, max_files=3):
                relevant[analysis.file_path] = analysis.content

        plan = (
            f"Category: {task.category}\n"
            f"Complexity: {task.complexity} ({task.estimated_steps} step(s))\n"
            f"Tools: {', '.join(task.required_tools) or 'none'}"
        )

        if summarizer is not None and files:
            if streamer:
                streamer.update_status("Context analysis", f"Summarizing {len(files)} files")
            await summarizer.update_index(files)
            summaries = summarizer.find_relevant_files(request, max_files=3)
            for summary in summaries:
                if summary.path in files:
                    relevant.setdefault(summary.path, files[summary.path])
            plan += "\n\n" + summarizer.get_context_summary()
            if summaries:
                plan += "\n\nRELEVANT FILE SUMMARIES:\n" + format_summaries(summaries)
        retry = RetryOrchestrator(self.builder, self.detector, max_retries=max_retries)
        result = await retry.run(
            request,
            plan=plan,
            relevant_files=relevant,
            constraints=constraints,
            task=task,
            streamer=streamer,
        )
        return task, result
