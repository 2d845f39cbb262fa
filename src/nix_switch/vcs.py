"""Git operations on the flake checkout."""

from __future__ import annotations

from .commands import CommandRunner

# Lock files churn on every input update and drown out the real diff.
DIFF_PATHSPEC = (".", ":!*.lock")


class GitRepository:
    """The git invocations used by the switch workflow.

    Every method raises ``CommandError`` when git cannot be run or exits
    with a non-zero status.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    async def diff(self) -> str:
        """Return colored, context-free changes against HEAD."""

        result = await self._runner.capture(
            "git", "--no-pager", "diff", "--color=always", "HEAD", "-U0", "--", *DIFF_PATHSPEC
        )
        return result.check().stdout

    async def has_changes(self) -> bool:
        result = await self._runner.capture("git", "status", "--short")
        return bool(result.check().stdout.strip())

    async def show_status(self, *, short: bool = False) -> None:
        args = ("git", "status", "--short") if short else ("git", "status")
        (await self._runner.run(*args)).check()

    async def stage_all(self) -> None:
        """Stage tracked and untracked changes."""

        (await self._runner.run("git", "add", "-A")).check()

    async def commit_all(self, message: str) -> None:
        (await self._runner.run("git", "commit", "-am", message)).check()

    async def last_commit(self) -> str:
        result = await self._runner.capture("git", "log", "-1", "--oneline")
        return result.check().stdout.strip()

    async def push(self) -> None:
        (await self._runner.run("git", "push")).check()


__all__ = ["DIFF_PATHSPEC", "GitRepository"]
