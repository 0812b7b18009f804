"""
Step Router - Routes scenario steps to PuppetManager operations.
"""

import asyncio
import logging
from typing import Dict, Any, Optional, TYPE_CHECKING

from puppet.errors import PuppetError
from puppet.generators import get_generator

if TYPE_CHECKING:
    from puppet.controller import PuppetManager

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "{n}"


class StepRouter:
    """
    Routes scenario steps to the browser session.

    Handles:
    - Resolving "$name" arguments from earlier results
    - Executing the matching PuppetManager operation
    - Turning failures into result dictionaries
    """

    def __init__(self, manager: 'PuppetManager'):
        self.manager = manager
        self.variables: Dict[str, Any] = {}

    def _resolve(self, value: Any) -> Any:
        if isinstance(value, str) and value.startswith("$"):
            name = value[1:]
            if name not in self.variables:
                raise KeyError(f"Unknown variable: {value}")
            return self.variables[name]
        return value

    def _resolve_args(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return {key: self._resolve(value) for key, value in arguments.items()}

    async def execute(
        self,
        action: str,
        arguments: Dict[str, Any],
        save_as: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute one step.

        Args:
            action: Step action name
            arguments: Step arguments, "$name" values resolved first
            save_as: Store the step's value under this variable name

        Returns:
            Result dictionary with success status and the step's value
        """
        logger.info(f"Executing step: {action} with args: {arguments}")

        try:
            args = self._resolve_args(arguments)
            value = await self._dispatch(action, args)
        except PuppetError as e:
            logger.error(f"Step {action} failed: {e}")
            return {"success": False, "action": action, "error": e.to_dict()}
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Invalid step {action}: {e}")
            return {
                "success": False,
                "action": action,
                "error": {"kind": "InvalidStep", "status": "failure", "message": str(e)},
            }

        if save_as:
            self.variables[save_as] = value
        return {"success": True, "action": action, "value": value}

    async def _dispatch(self, action: str, args: Dict[str, Any]) -> Any:
        puppet = self.manager

        if action == "goto":
            await puppet.goto(args["url"])
            return args["url"]

        elif action == "write":
            await puppet.write(args["selector"], str(args["value"]))
            return None

        elif action == "click":
            await puppet.simple_click(args["selector"])
            return None

        elif action == "click_and_wait":
            await puppet.click_and_wait_for_redirect(args["selector"])
            return puppet.current_url()

        elif action == "hover":
            await puppet.hovering(args["selector"])
            return None

        elif action == "find_link":
            return await puppet.find_one_link(args["selector"], args["includes"])

        elif action == "search":
            factory = get_generator(args.get("generator", "int"), args.get("start"))
            return await puppet.search_until_match(
                args["template"],
                args.get("placeholder", DEFAULT_PLACEHOLDER),
                factory,
                str(args["target"]),
            )

        elif action == "get_text":
            return await puppet.get_text_content(args["selector"])

        elif action == "check_exists":
            return await puppet.unkind_check_selector_exists(args["selector"])

        elif action == "screenshot":
            return await puppet.take_screenshot(
                args.get("x", 0),
                args.get("y", 0),
                args.get("path"),
            )

        elif action == "wait":
            await asyncio.sleep(args.get("ms", 1000) / 1000)
            return None

        raise ValueError(f"Unknown action: {action}")
