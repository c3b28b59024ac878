"""
Pipeline Hook System

Before/after hooks around the ingestion stages ("analyze", "match"),
used for metrics and custom observers without touching pipeline code.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("media_match.hooks")


class PipelineHookManager:
    """
    Manages async hooks for pipeline stages.

    Stage-specific hooks receive the context dict; wildcard ("*") hooks
    receive the stage name and the context. A failing hook is logged
    and never interrupts the pipeline or the remaining hooks.

    Example:
        >>> hooks = PipelineHookManager()
        >>>
        >>> @hooks.after("analyze")
        >>> async def on_analyzed(context):
        >>>     print(context["item_id"], context["state"])
    """

    def __init__(self):
        self.before_hooks: Dict[str, List[Callable]] = {}
        self.after_hooks: Dict[str, List[Callable]] = {}

    def register_before(self, stage: str, hook: Callable) -> None:
        self.before_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered before hook for stage: {stage}")

    def register_after(self, stage: str, hook: Callable) -> None:
        self.after_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered after hook for stage: {stage}")

    def before(self, stage: str):
        """Decorator for registering before hooks."""
        def decorator(func: Callable) -> Callable:
            self.register_before(stage, func)
            return func
        return decorator

    def after(self, stage: str):
        """Decorator for registering after hooks."""
        def decorator(func: Callable) -> Callable:
            self.register_after(stage, func)
            return func
        return decorator

    async def execute_before(self, stage: str, context: Dict[str, Any]) -> None:
        """Run before hooks. Wildcard hooks run first."""
        await self._run(self.before_hooks.get("*", []), stage, context, wildcard=True)
        await self._run(self.before_hooks.get(stage, []), stage, context)

    async def execute_after(self, stage: str, context: Dict[str, Any]) -> None:
        """Run after hooks. Stage-specific hooks run before wildcards."""
        await self._run(self.after_hooks.get(stage, []), stage, context)
        await self._run(self.after_hooks.get("*", []), stage, context, wildcard=True)

    def clear_hooks(self, stage: Optional[str] = None) -> None:
        """Clear hooks for one stage, or all hooks when stage is None."""
        if stage:
            self.before_hooks.pop(stage, None)
            self.after_hooks.pop(stage, None)
        else:
            self.before_hooks.clear()
            self.after_hooks.clear()

    async def _run(
        self,
        hooks: List[Callable],
        stage: str,
        context: Dict[str, Any],
        wildcard: bool = False,
    ) -> None:
        for hook in hooks:
            try:
                if wildcard:
                    await hook(stage, context)
                else:
                    await hook(context)
            except Exception as e:
                logger.error(f"Hook failed for stage '{stage}': {e}", exc_info=True)
