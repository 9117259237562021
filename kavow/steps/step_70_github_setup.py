from __future__ import annotations

import logging
from datetime import date

from ..context import SetupContext
from ..errors import SetupAbort, UserDeclined
from ..lib.gh import KEY_SCOPE
from ..lib.git import is_valid_email
from ..pipeline import Stage

logger = logging.getLogger(__name__)


class GitHubSetupStep:
    """GitHub CLI login is required; SSH key setup and upload are best effort."""

    stage = Stage.GITHUB_SETUP

    def _ensure_gh(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        if ctx.gh.is_available():
            ui.info(f"GitHub CLI version {ctx.gh.version()} detected")
            return
        ui.info("Installing GitHub CLI...")
        result = ctx.brew.install_package("gh")
        if not result.ok:
            raise SetupAbort("Failed to install GitHub CLI", remediation="brew install gh")
        ui.success("GitHub CLI installed successfully")

    def _authenticate(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        gh = ctx.gh
        if gh.is_authenticated():
            ui.success(f"Already authenticated with GitHub as {gh.current_user()}")
            if not ui.confirm("Re-authenticate with GitHub?", default=False):
                ctx.store.set_value("github_authenticated", True)
                return
            gh.logout()

        ui.info("GitHub authentication opens your browser to complete the login")
        if not ui.confirm("Authenticate with GitHub now?"):
            raise UserDeclined("GitHub authentication is required", remediation="gh auth login --web")
        if not gh.authenticate(ctx.settings.github_scopes):
            raise SetupAbort("GitHub authentication failed", remediation="gh auth login --web")

        missing = gh.missing_scopes(ctx.settings.github_scopes)
        if missing:
            ui.warning(f"Token is missing scopes: {', '.join(missing)}")
        ui.success(f"Authenticated with GitHub as {gh.current_user()}")
        ctx.store.set_value("github_authenticated", True)

    def _key_email(self, ctx: SetupContext) -> str:
        _, email = ctx.git.identity()
        while not is_valid_email(email or ""):
            email = ctx.ui.prompt_text("Email address for the SSH key")
            if not is_valid_email(email):
                ctx.ui.error("Please enter a valid email address")
        return email or ""

    def _setup_key(self, ctx: SetupContext) -> bool:
        ui = ctx.ui
        ssh = ctx.ssh
        ui.header("SSH Key Setup", "Generating an SSH key for GitHub")
        ssh.ensure_dir()

        valid = ssh.exists() and ssh.verify()
        if valid and ui.confirm(f"Use the existing SSH key at {ssh.key_path}?"):
            ui.success(f"Using existing SSH key: {ssh.key_path}")
        else:
            if ssh.exists():
                if not valid:
                    ui.warning("Existing SSH key is not a valid ED25519 key")
                if not ui.confirm("Back up the existing key and generate a new one?"):
                    ui.warning("Skipping SSH key setup")
                    return False
                ssh.backup()
            elif not ui.confirm("Generate a new SSH key?"):
                ui.warning("Skipping SSH key setup")
                return False
            if not ssh.generate(self._key_email(ctx)):
                ui.error("Failed to generate SSH key")
                ui.info(f'Generate one manually: ssh-keygen -t ed25519 -f {ssh.key_path}')
                return False
            ui.success("SSH key generated successfully")

        if ssh.write_config():
            ui.success("SSH config updated for GitHub")
        else:
            ui.info("SSH config already has a GitHub entry")

        if not ssh.start_agent() or not ssh.add_to_agent():
            ui.warning("Could not add the key to ssh-agent")
            ui.info(f"Add it manually: ssh-add {ssh.key_path}")

        ctx.store.set_value("ssh_key_generated", True)
        return True

    def _upload_key(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        gh = ctx.gh
        ssh = ctx.ssh
        title = f"kavow - {date.today().isoformat()}"
        manual = f'gh ssh-key add {ssh.pub_path} --title "{title}"'

        ui.panel(ssh.public_key(), title="Public key")
        if not ui.confirm("Upload this SSH key to GitHub?"):
            ui.info(f"Upload it later with: {manual}")
            return

        if not gh.can_manage_keys():
            ui.warning(f"The GitHub token lacks the {KEY_SCOPE} scope")
            if not (ui.confirm("Grant the extra scope now?") and gh.refresh_scopes(KEY_SCOPE)):
                ui.info(f"Run: gh auth refresh -h github.com -s {KEY_SCOPE}")
                ui.info(f"Then: {manual}")
                return

        result = gh.add_public_key(ssh.pub_path, title)
        if result.ok:
            ui.success("SSH key uploaded to GitHub")
        else:
            logger.warning("gh ssh-key add failed: %s", result.output.strip())
            ui.warning("Could not upload SSH key; it may already be registered")
            ui.info(f"Upload it manually with: {manual}")

        if ssh.test_connection():
            ui.success("SSH connection to GitHub works")
            if result.ok and ctx.git.use_ssh_for_github():
                ui.success("Git now uses SSH for GitHub URLs")
        else:
            ui.warning("SSH connection test to GitHub failed")
            ui.info("Test it manually: ssh -T git@github.com")

    def run(self, ctx: SetupContext) -> None:
        ui = ctx.ui
        ui.header("GitHub Setup", "Authenticating the GitHub CLI and registering your SSH key")
        self._ensure_gh(ctx)
        self._authenticate(ctx)
        if self._setup_key(ctx):
            self._upload_key(ctx)
        ui.step_complete("GitHub Setup")
