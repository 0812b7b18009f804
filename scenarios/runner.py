"""
Scenario Runner - runs a scenario end to end on one browsing session.
"""

import logging
from typing import Any, Callable, Dict, Optional

from puppet.config import PuppetConfig
from puppet.controller import PuppetManager
from puppet.errors import PuppetError
from telemetry.tracing import RunTracer

from .base import Scenario
from .router import StepRouter

logger = logging.getLogger(__name__)

ManagerFactory = Callable[[PuppetConfig, RunTracer], PuppetManager]


class ScenarioRunner:
    """
    Runs scenarios, one browsing session per run.

    The session is always closed at the end, whether the run succeeded or not.
    Results are plain dictionaries:

        {"success": True, "scenario": ..., "outputs": {...}, "trace": {...}}
        {"success": False, "scenario": ..., "failed_step": 2,
         "error": {...envelope...}, "outputs": {...}, "trace": {...}}
    """

    def __init__(
        self,
        config: Optional[PuppetConfig] = None,
        tracer: Optional[RunTracer] = None,
        manager_factory: Optional[ManagerFactory] = None,
    ):
        self.config = config or PuppetConfig()
        self.tracer = tracer or RunTracer()
        self.manager_factory = manager_factory or PuppetManager

    async def run(self, scenario: Scenario) -> Dict[str, Any]:
        config = self.config.with_overrides(
            debug=scenario.debug, proxy_mode=scenario.proxy_mode
        )
        self.tracer.start_run(scenario.name)
        self.tracer.add_metadata(proxy_mode=config.proxy_mode, debug=config.debug)

        manager = self.manager_factory(config, self.tracer)
        router = StepRouter(manager)
        result: Dict[str, Any] = {"success": True, "scenario": scenario.name}

        try:
            try:
                await manager.start(scenario.start_url)
            except PuppetError as e:
                logger.error(f"Could not open {scenario.start_url}: {e}")
                result.update(success=False, failed_step=None, error=e.to_dict())
                return result

            for index, step in enumerate(scenario.steps):
                step_result = await router.execute(step.action, step.args, step.save_as)
                if not step_result["success"]:
                    result.update(
                        success=False, failed_step=index, error=step_result["error"]
                    )
                    break
                if step.save_as is None and step.action in ("get_text", "screenshot", "find_link", "search"):
                    router.variables[f"{step.action}_{index}"] = step_result["value"]

            return result
        finally:
            await manager.close()
            result["outputs"] = dict(router.variables)
            result["trace"] = self.tracer.end_run()
            logger.info(
                f"Scenario '{scenario.name}' "
                f"{'succeeded' if result['success'] else 'failed'}"
            )
