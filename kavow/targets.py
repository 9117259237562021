from __future__ import annotations

import logging
from typing import Callable, Dict

from .config_store import ConfigStore
from .installation import InstallResult
from .lib.brew import Homebrew, extract_package_info
from .lib.command import Runner, run_cmd, which
from .lib.mise import Mise, tool_spec

logger = logging.getLogger(__name__)

PostInstallHook = Callable[[], None]


def disable_claude_code_autoupdates(runner: Runner = run_cmd) -> None:
    # Self-updates fight with Homebrew's copy.
    if which("claude") is None:
        logger.warning("Claude command not found in PATH after installation")
        return
    if runner(["claude", "config", "set", "-g", "autoUpdates", "false"], check=False).ok:
        logger.info("Disabled Claude Code auto-updates")
    else:
        logger.warning("Could not disable Claude Code auto-updates")


DEFAULT_POST_INSTALL: Dict[str, PostInstallHook] = {
    "claude-code": disable_claude_code_autoupdates,
}


class AppTarget:
    kind = "apps"
    noun = "applications"
    selected_key = "selected_apps"
    installed_key = "installed_apps"
    failed_key = "failed_apps"

    def __init__(
        self,
        config: ConfigStore,
        brew: Homebrew,
        post_install: Dict[str, PostInstallHook] | None = None,
    ) -> None:
        self.config = config
        self.brew = brew
        self.post_install = DEFAULT_POST_INSTALL if post_install is None else post_install

    def describe(self, key: str) -> str:
        return self.config.display_name(self.kind, key)

    def is_satisfied(self, key: str) -> bool:
        kind, name = extract_package_info(self.config.get_application(key).action)
        return bool(name) and self.brew.is_installed(name, kind)

    def apply(self, key: str) -> InstallResult:
        return self.brew.install(self.config.get_application(key).action)

    def after_install(self, key: str) -> None:
        hook = self.post_install.get(key)
        if hook is not None:
            hook()

    def remediation(self, key: str) -> str:
        try:
            return self.config.get_application(key).action
        except KeyError:
            return f"brew install {key}"


class LanguageTarget:
    kind = "languages"
    noun = "programming languages"
    selected_key = "selected_languages"
    installed_key = "installed_languages"
    failed_key = "failed_languages"

    def __init__(self, config: ConfigStore, mise: Mise) -> None:
        self.config = config
        self.mise = mise

    def describe(self, key: str) -> str:
        return self.config.display_name(self.kind, key)

    def _version(self, key: str) -> str:
        return self.config.get_language(key).version

    def is_satisfied(self, key: str) -> bool:
        return self.mise.is_installed(key, self._version(key))

    def apply(self, key: str) -> InstallResult:
        version = self._version(key)
        result = self.mise.install(key, version)
        if result.ok and not self.mise.use(key, version):
            logger.warning("Installed %s but could not activate it globally", tool_spec(key, version))
        return result

    def after_install(self, key: str) -> None:
        return None

    def remediation(self, key: str) -> str:
        try:
            version = self._version(key)
        except KeyError:
            version = None
        return f"mise install {tool_spec(key, version)}"
