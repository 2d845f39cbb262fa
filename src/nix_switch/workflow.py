"""The switch workflow: review, stage, rebuild, commit, push."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .commands import CommandError, CommandRunner
from .config import SwitchSettings, get_settings
from .generation import detect_generation
from .platforms import PlatformLoadError, PlatformProfile, load_platform
from .prompts import ConsolePrompter, Prompter
from .session import SessionContext, SessionError, resolve_session
from .vcs import GitRepository

logger = logging.getLogger(__name__)


class WorkflowExit(Exception):
    """Ends the workflow early; ``exit_code`` becomes the process status."""

    exit_code = 0

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class WorkflowStopped(WorkflowExit):
    """The operator declined to continue. Nothing went wrong."""

    exit_code = 0


class WorkflowAborted(WorkflowExit):
    """A step that must succeed failed. Later steps are not attempted."""

    exit_code = 1


class SwitchWorkflow:
    """Runs the rebuild workflow once, strictly one step after another.

    Advisory steps log a warning and carry on with an empty result. Fatal
    steps raise ``WorkflowAborted``; early exits the operator chose raise
    ``WorkflowStopped``. ``run`` is the only place either is turned into an
    exit status.
    """

    def __init__(
        self,
        settings: SwitchSettings | None = None,
        *,
        platform: PlatformProfile | None = None,
        runner: CommandRunner | None = None,
        prompter: Prompter | None = None,
        console: Console | None = None,
        error_console: Console | None = None,
    ) -> None:
        self._settings = settings
        self._platform = platform
        self._runner = runner
        self._console = console or Console()
        self._error_console = error_console or Console(stderr=True)
        self._prompter = prompter or ConsolePrompter(self._console)
        self._session: SessionContext | None = None

    @property
    def session(self) -> SessionContext | None:
        return self._session

    async def run(self) -> int:
        try:
            await self._execute()
        except WorkflowStopped as stop:
            self._console.print(escape(stop.message))
            return stop.exit_code
        except WorkflowAborted as abort:
            self._error_console.print(f"[bold red]{escape(abort.message)}[/bold red]")
            return abort.exit_code

        self._console.print("\n[green]Switch completed successfully![/green]")
        return 0

    async def _execute(self) -> None:
        session = self.resolve()
        git = GitRepository(self._runner)

        diff_changes = await self.show_diff(git)
        status_changes = await self.show_status(git)
        if diff_changes or status_changes:
            await self.stage(git)

        await self.rebuild(session)
        generation = await detect_generation(self._runner, session.platform)
        await self.show_short_status(git)

        message = self.choose_commit_message(generation)
        await self.commit(git, message)

        await self.show_last_commit(git)
        await self.push(git)

    def resolve(self) -> SessionContext:
        settings = self._settings or get_settings()
        try:
            platform = self._platform or load_platform(settings.platform_paths)
            session = resolve_session(settings, platform)
        except (PlatformLoadError, SessionError) as exc:
            raise WorkflowAborted(str(exc)) from exc

        self._session = session
        if self._runner is None:
            self._runner = CommandRunner(session.config_dir)
        self._console.print(f"Using nix directory: {escape(str(session.config_dir))}", highlight=False)
        logger.debug(
            "Resolved session",
            extra={"user": session.user, "family": session.platform.family},
        )
        return session

    async def show_diff(self, git: GitRepository) -> bool:
        self._header("Git Diff")
        try:
            diff = await git.diff()
        except CommandError as exc:
            logger.warning("git diff failed: %s", exc)
            return False

        if not diff.strip():
            return False
        self._console.print(Text.from_ansi(diff), soft_wrap=True)
        return True

    async def show_status(self, git: GitRepository) -> bool:
        self._header("Git Status")
        try:
            changed = await git.has_changes()
            await git.show_status()
        except CommandError as exc:
            logger.warning("git status failed: %s", exc)
            return False
        return changed

    async def stage(self, git: GitRepository) -> None:
        self._console.print()
        if not self._prompter.confirm("Stage all files?"):
            raise WorkflowStopped("Staging cancelled. Exiting.")

        try:
            await git.stage_all()
        except CommandError as exc:
            raise WorkflowAborted(f"Failed to stage files: {exc}") from exc
        self._console.print("Staged all files (including untracked).")

    async def rebuild(self, session: SessionContext) -> None:
        self._header("Rebuilding System")
        args = session.platform.rebuild_args(session.flake_target)
        try:
            (await self._runner.stream(*args)).check()
        except CommandError as exc:
            logger.debug("Rebuild failed: %s", exc)
            raise WorkflowAborted("Build failed, not committing or pushing changes.") from exc

    async def show_short_status(self, git: GitRepository) -> None:
        self._header("Git Status", style="bold")
        try:
            await git.show_status(short=True)
        except CommandError as exc:
            logger.warning("git status failed: %s", exc)

    def choose_commit_message(self, generation: str) -> str:
        self._console.print(f'\nCommit message: "{escape(generation)}"', highlight=False)
        message = self._prompter.choose_commit_message(generation)
        if not message or not message.strip():
            raise WorkflowStopped("Skipping commit and push.")
        return message

    async def commit(self, git: GitRepository, message: str) -> None:
        try:
            await git.commit_all(message)
        except CommandError as exc:
            raise WorkflowAborted(f"Failed to commit changes: {exc}") from exc

    async def show_last_commit(self, git: GitRepository) -> None:
        self._header("Ready to Push", style="bold")
        try:
            summary = await git.last_commit()
        except CommandError as exc:
            logger.warning("could not show last commit: %s", exc)
            return
        self._console.print(f"Last commit: {escape(summary)}", highlight=False)

    async def push(self, git: GitRepository) -> None:
        self._console.print()
        if not self._prompter.confirm("Push changes to remote?"):
            raise WorkflowStopped("Skipping push. Changes are committed locally.")

        try:
            await git.push()
        except CommandError as exc:
            raise WorkflowAborted(f"Failed to push changes: {exc}") from exc

    def _header(self, title: str, *, style: str = "bold red") -> None:
        self._console.print(f"[{style}]=== {title} ===[/{style}]")


__all__ = ["SwitchWorkflow", "WorkflowAborted", "WorkflowExit", "WorkflowStopped"]
