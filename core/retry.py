"""Bounded build -> detect -> auto-fix retry loop."""

import asyncio
import logging

from agents.error_detector import ErrorDetector
from agents.patch_composer import PatchComposer
from config.defaults import DEFAULTS
from core.quality import validate_code
from core.state import RetryResult

logger = logging.getLogger(__name__)


def clamp_retries(max_retries):
    """Clamp a requested retry count to [0, hard_max_retries]."""
    if max_retries is None:
        max_retries = DEFAULTS["max_retries"]
    return max(0, min(int(max_retries), DEFAULTS["hard_max_retries"]))


class RetryOrchestrator:
    """Runs the builder up to max_retries + 1 times until its output is clean.

    Each attempt is checked by the ErrorDetector; fixable defects are
    rewritten and the result re-validated. What is left over becomes the
    error context of the next attempt. Never raises for build failures.
    """

    def __init__(self, builder, detector=None, composer=None, max_retries=None, backoff=None, sleep=asyncio.sleep):
        self.builder = builder
        self.detector = detector or ErrorDetector()
        self.composer = composer or PatchComposer()
        self.max_retries = clamp_retries(max_retries)
        self.backoff = DEFAULTS["retry_backoff_seconds"] if backoff is None else backoff
        self._sleep = sleep

    async def run(self, request, plan="", relevant_files=None, constraints=(), task=None, streamer=None):
        total = self.max_retries + 1
        applied = []
        last_error = None

        for attempt in range(1, total + 1):
            if attempt > 1 and self.backoff:
                await self._sleep(self.backoff * (attempt - 1))
            if streamer:
                streamer.update_status("Building", f"Attempt {attempt}/{total}")

            try:
                code = await self.builder.build(
                    request,
                    plan=plan,
                    relevant_files=relevant_files,
                    constraints=constraints,
                    error_context=last_error,
                    streamer=streamer,
                )
            except Exception as e:
                logger.warning("Build attempt %d/%d failed: %s", attempt, total, e)
                last_error = self.composer.failure_context(e, attempt)
                if streamer:
                    streamer.attempt_error_recovery(str(e), attempt)
                continue

            errors = self.detector.detect(code, task)
            if not errors:
                logger.info("Attempt %d/%d produced clean code", attempt, total)
                return RetryResult(success=True, code=code, attempts=attempt, applied_fixes=applied)

            fix = self.detector.auto_fix(code, errors)
            applied.extend(fix.applied_fixes)
            if fix.success and not fix.remaining_errors and validate_code(fix.fixed_code).is_valid:
                logger.info("Attempt %d/%d fixed automatically (%d fix(es))", attempt, total, len(fix.applied_fixes))
                return RetryResult(success=True, code=fix.fixed_code, attempts=attempt, applied_fixes=applied)

            last_error = self.composer.create_error_context(code, errors, fix, attempt=attempt)
            logger.info("Attempt %d/%d left %d unresolved error(s)", attempt, total, len(fix.remaining_errors))
            if streamer:
                streamer.attempt_error_recovery(
                    "; ".join(last_error.remaining_issues) or "validation failed", attempt,
                )

        return RetryResult(
            success=False,
            code=None,
            attempts=total,
            applied_fixes=applied,
            last_error=last_error,
            error="Max retries exceeded",
        )
