"""
Puppet configuration - browser launch, proxy and navigation settings.

Values come from environment variables (a .env file is loaded by the CLI)
and can be overridden per run.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class ProxyConfig:
    """Local forwarding proxy the browser is pointed at in proxy mode."""
    bind_ip: str = field(default_factory=lambda: os.getenv("PUPPET_PROXY_HOST", "127.0.0.1"))
    bind_port: int = field(default_factory=lambda: _env_int("PUPPET_PROXY_PORT", "3128"))
    # Proxied navigations are slower, allow 90s instead of the default 60s
    navigation_timeout_ms: int = 90 * 1000

    @property
    def server(self) -> str:
        return f"{self.bind_ip}:{self.bind_port}"


@dataclass
class PuppetConfig:
    """Settings for one browsing session."""

    # Headful browser, slow typing and verbose logs
    debug: bool = field(default_factory=lambda: _env_flag("PUPPET_DEBUG", "false"))
    proxy_mode: bool = field(default_factory=lambda: _env_flag("PUPPET_PROXY", "true"))
    proxy: ProxyConfig = field(default_factory=ProxyConfig)

    viewport_width: int = 1920
    viewport_height: int = 1080
    ignore_https_errors: bool = True
    navigation_timeout_ms: int = 60 * 1000

    # Delay between typed characters in debug mode (ms)
    debug_typing_delay_ms: int = 100

    screenshot_dir: Path = field(
        default_factory=lambda: Path(os.getenv("PUPPET_SCREENSHOT_DIR", "./screenshots"))
    )

    @property
    def headless(self) -> bool:
        return not self.debug

    @property
    def wait_until(self) -> str:
        """
        Load state a navigation waits for.

        Plain mode waits until the network is idle; behind the proxy that can
        take too long, so navigation completes on the load event instead.
        """
        return "load" if self.proxy_mode else "networkidle"

    @property
    def typing_delay_ms(self) -> int:
        return self.debug_typing_delay_ms if self.debug else 0

    @property
    def effective_navigation_timeout_ms(self) -> int:
        if self.proxy_mode:
            return self.proxy.navigation_timeout_ms
        return self.navigation_timeout_ms

    def launch_args(self) -> List[str]:
        args = [f"--window-size={self.viewport_width},{self.viewport_height}"]
        if self.proxy_mode:
            args.append(f"--proxy-server={self.proxy.server}")
        return args

    def viewport(self) -> Dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}

    def with_overrides(
        self,
        debug: Optional[bool] = None,
        proxy_mode: Optional[bool] = None,
    ) -> "PuppetConfig":
        """Copy with the given flags replaced (None keeps the current value)."""
        changes = {}
        if debug is not None:
            changes["debug"] = debug
        if proxy_mode is not None:
            changes["proxy_mode"] = proxy_mode
        return replace(self, **changes)
