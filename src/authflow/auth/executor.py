"""Run several auth flows in order until one yields a token."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..models.result import FlowResult
from .base import AuthFlow

logger = logging.getLogger(__name__)


@dataclass
class ExecutorResult:
    """Result of running a sequence of auth flows."""

    success: Optional[FlowResult] = None
    attempts: list[FlowResult] = field(default_factory=list)
    duration: float = 0.0


class AuthFlowExecutor:
    """Tries auth flows in order and stops at the first token."""

    def __init__(self, flows: Sequence[AuthFlow]):
        self.flows = list(flows)

    async def get_token(
        self,
        hint: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ExecutorResult:
        """
        Run the configured flows.

        Args:
            hint: Optional account hint passed to every flow
            cancel: Optional cancellation event passed to every flow

        Returns:
            ExecutorResult with the successful FlowResult (if any) and every
            FlowResult produced along the way
        """
        result = ExecutorResult()
        start = time.monotonic()

        for flow in self.flows:
            if cancel is not None and cancel.is_set():
                logger.info("Cancelled, skipping remaining auth flows")
                break

            logger.debug(f"Starting auth flow '{flow.name}'")
            flow_result = await flow.get_token(hint=hint, cancel=cancel)
            result.attempts.append(flow_result)

            if flow_result.success:
                logger.info(f"Auth flow '{flow.name}' succeeded")
                result.success = flow_result
                break

            logger.info(
                f"Auth flow '{flow.name}' did not return a token "
                f"({len(flow_result.errors)} error(s))"
            )

        result.duration = time.monotonic() - start
        return result
