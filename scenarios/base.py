"""
Scenario definition - a scripted sequence of browser steps.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json

# Actions a step may use, see scenarios.router.StepRouter
STEP_ACTIONS = (
    "goto",
    "write",
    "click",
    "click_and_wait",
    "hover",
    "find_link",
    "search",
    "get_text",
    "check_exists",
    "screenshot",
    "wait",
)


@dataclass
class Step:
    """
    One browser step.

    Example:
        Step("search", {"template": "#row-{n}", "generator": "even",
                        "target": "Invoice"}, save_as="invoice_row")

    String arguments written as "$name" are replaced by the value saved
    earlier under that name.
    """
    action: str
    args: Dict[str, Any] = field(default_factory=dict)
    save_as: Optional[str] = None

    def __post_init__(self):
        if self.action not in STEP_ACTIONS:
            raise ValueError(
                f"Unknown step action: {self.action} (expected one of {', '.join(STEP_ACTIONS)})"
            )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"action": self.action, "args": self.args}
        if self.save_as:
            data["save_as"] = self.save_as
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Step':
        if not isinstance(data, dict):
            raise ValueError(f"Step must be an object, got {type(data).__name__}")
        args = data.get("args", {})
        if not isinstance(args, dict):
            raise ValueError(f"Step args must be an object, got {type(args).__name__}")
        save_as = data.get("save_as")
        if save_as is not None and not isinstance(save_as, str):
            raise ValueError("Step save_as must be a string")
        return cls(
            action=data.get("action", ""),
            args=dict(args),
            save_as=save_as,
        )


@dataclass
class Scenario:
    """
    A scripted run: open start_url, then perform steps in order.

    debug and proxy_mode override the global configuration when set.
    """

    name: str
    start_url: str
    steps: List[Step] = field(default_factory=list)
    description: str = ""

    # Per-scenario overrides (None keeps the configured value)
    debug: Optional[bool] = None
    proxy_mode: Optional[bool] = None

    def to_dict(self) -> Dict:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "start_url": self.start_url,
            "steps": [s.to_dict() for s in self.steps],
        }
        if self.debug is not None:
            data["debug"] = self.debug
        if self.proxy_mode is not None:
            data["proxy_mode"] = self.proxy_mode
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Scenario':
        if not isinstance(data, dict):
            raise ValueError(f"Scenario must be a JSON object, got {type(data).__name__}")
        if not data.get("start_url") or not isinstance(data["start_url"], str):
            raise ValueError("Scenario needs a start_url")
        steps = data.get("steps", [])
        if not isinstance(steps, list):
            raise ValueError(f"Scenario steps must be a list, got {type(steps).__name__}")
        return cls(
            name=data.get("name", "scenario"),
            description=data.get("description", ""),
            start_url=data["start_url"],
            steps=[Step.from_dict(s) for s in steps],
            debug=data.get("debug"),
            proxy_mode=data.get("proxy_mode"),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> 'Scenario':
        """Load a scenario from a JSON file."""
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def save_to_json(self, file_path: str) -> None:
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
