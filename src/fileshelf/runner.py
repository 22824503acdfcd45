"""Runner — the single choke point every mutating operation passes through.

Hooks are registered per trigger (``before_<action>`` / ``after_<action>``)
and fire strictly around the wrapped operation, in registration order.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import FileshelfError, HookError, classify_os_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from .users import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACTIONS = ("delete", "upload", "rename", "copy")


@dataclass(frozen=True, slots=True)
class HookEvent:
    """Immutable record handed to every hook.

    Attributes:
        trigger: ``before_<action>`` or ``after_<action>``.
        action: The wrapped operation, one of ``ACTIONS``.
        src: Scoped source path.
        dst: Scoped destination path, empty when not applicable.
        user: The acting user.
    """

    trigger: str
    action: str
    src: str
    dst: str
    user: User


@dataclass
class RunOutcome(Generic[T]):
    """The wrapped operation's value plus any hook failures around it."""

    value: T
    hook_errors: list[HookError] = field(default_factory=list)


class Runner:
    """Runs an operation exactly once between its before and after hooks.

    A failing before-hook does not stop the operation.  After-hooks only
    fire when the operation succeeded.  Hook failures are logged and
    returned with the outcome (or attached to the raised error); they never
    replace the operation's own result.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[Callable[[HookEvent], Awaitable[Any]]]] = {}

    def register(self, trigger: str, hook: Callable[[HookEvent], Awaitable[Any]]) -> None:
        """Append *hook* to the list for *trigger*."""
        self._hooks.setdefault(trigger, []).append(hook)

    def unregister(self, trigger: str, hook: Callable[[HookEvent], Awaitable[Any]]) -> bool:
        """Remove first occurrence of *hook*. Return True if found."""
        hooks = self._hooks.get(trigger, [])
        try:
            hooks.remove(hook)
            return True
        except ValueError:
            return False

    @property
    def hook_count(self) -> int:
        """Total number of registered hooks across all triggers."""
        return sum(len(h) for h in self._hooks.values())

    def clear(self) -> None:
        """Remove all registered hooks."""
        self._hooks.clear()

    @classmethod
    def from_commands(cls, commands: Mapping[str, list[str]]) -> Runner:
        """Build a runner firing external commands, keyed by trigger."""
        runner = cls()
        for trigger, lines in commands.items():
            for line in lines:
                runner.register(trigger, CommandHook(line))
        return runner

    async def _fire(self, trigger: str, event: HookEvent) -> list[HookError]:
        errors: list[HookError] = []
        for hook in self._hooks.get(trigger, []):
            try:
                await hook(event)
            except Exception as e:
                logger.warning(
                    "Hook %r failed for %s on %s",
                    hook,
                    trigger,
                    event.src,
                    exc_info=True,
                )
                errors.append(HookError(trigger, e))
        return errors

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        action: str,
        src: str,
        dst: str,
        user: User,
    ) -> RunOutcome[T]:
        """Execute *fn* once, wrapped by the hooks registered for *action*.

        Raises:
            FileshelfError: the operation's own failure, classified, with
                any before-hook errors attached as ``hook_errors``.
        """
        before = HookEvent(f"before_{action}", action, src, dst, user)
        errors = await self._fire(before.trigger, before)

        try:
            value = await fn()
        except FileshelfError as e:
            e.hook_errors.extend(errors)
            raise
        except OSError as e:
            err = classify_os_error(e)
            err.hook_errors.extend(errors)
            raise err from e

        after = HookEvent(f"after_{action}", action, src, dst, user)
        errors.extend(await self._fire(after.trigger, after))
        return RunOutcome(value, errors)


def _host_path(user: User, path: str) -> str:
    """Join a scoped path onto the user's scope; empty paths stay empty."""
    if not path:
        return ""
    return os.path.normpath(os.path.join(user.scope, path.lstrip("/")))


class CommandHook:
    """Hook that runs an external command line.

    The command receives ``FILE``, ``SCOPE``, ``TRIGGER``, ``USERNAME`` and
    ``DESTINATION`` in its environment, with ``FILE`` and ``DESTINATION`` as
    host paths under the scope.  It only runs when the acting user
    has ``execute`` and the command name is in its ``commands`` allow-list.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        self.argv = shlex.split(command)
        if not self.argv:
            raise ValueError("empty hook command")

    def __repr__(self) -> str:
        return f"CommandHook({self.command!r})"

    async def __call__(self, event: HookEvent) -> None:
        user = event.user
        name = self.argv[0]
        if not user.perm.execute or name not in user.perm.commands:
            raise PermissionError(f"{user.username} may not run {name!r}")

        env = {
            **os.environ,
            "FILE": _host_path(user, event.src),
            "SCOPE": user.scope,
            "TRIGGER": event.trigger,
            "USERNAME": user.username,
            "DESTINATION": _host_path(user, event.dst),
        }
        proc = await asyncio.create_subprocess_exec(
            *self.argv,
            env=env,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise RuntimeError(
                f"{name} exited with {proc.returncode}: {stderr.decode(errors='replace').strip()}"
            )
