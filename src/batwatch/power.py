"""Power-management helpers (system suspend with fallbacks)."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol, Sequence, runtime_checkable

from batwatch.common.enums import SuspendMethod
from batwatch.errors import AllMethodsFailed

logger: Final = logging.getLogger(__name__)

# Seconds to wait for a suspend command before treating it as failed
COMMAND_TIMEOUT: Final = 30.0

SUSPEND_COMMANDS: Final[dict[SuspendMethod, list[str]]] = {
    SuspendMethod.SYSTEMD: ["systemctl", "suspend"],
    SuspendMethod.PM_UTILS: ["pm-suspend"],
    SuspendMethod.DBUS: [
        "dbus-send",
        "--system",
        "--print-reply",
        "--dest=org.freedesktop.login1",
        "/org/freedesktop/login1",
        "org.freedesktop.login1.Manager.Suspend",
        "boolean:true",
    ],
}

KERNEL_POWER_STATE: Final = Path("/sys/power/state")


@dataclass(frozen=True)
class SuspendAttempt:
    """Outcome of invoking one suspend method."""

    method: SuspendMethod
    ok: bool
    exit_code: int | None = None
    detail: str = ""

    @property
    def exit_indicator(self) -> str:
        """Exit code if the method ran, otherwise the failure detail."""
        if self.exit_code is not None:
            return str(self.exit_code)
        return self.detail or "error"


@runtime_checkable
class SuspendInvoker(Protocol):
    """Protocol for the capability to invoke a suspend method."""

    def invoke(self, method: SuspendMethod) -> SuspendAttempt:
        """Invoke a suspend method once.

        Args:
            method: The method to invoke

        Returns:
            SuspendAttempt describing the outcome; never raises
        """
        ...


class CommandSuspendInvoker:
    """Invokes suspend through external commands or the kernel interface."""

    def __init__(
        self,
        commands: dict[SuspendMethod, list[str]] | None = None,
        power_state_path: Path = KERNEL_POWER_STATE,
        timeout: float = COMMAND_TIMEOUT,
    ) -> None:
        """Initialize with the command table.

        Args:
            commands: Argument vectors per method (default: SUSPEND_COMMANDS)
            power_state_path: Kernel power-state file for KERNEL_DIRECT
            timeout: Seconds to wait for a command
        """
        self.commands = commands if commands is not None else dict(SUSPEND_COMMANDS)
        self.power_state_path = power_state_path
        self.timeout = timeout

    def invoke(self, method: SuspendMethod) -> SuspendAttempt:
        if method is SuspendMethod.KERNEL_DIRECT:
            return self._write_power_state(method)

        cmd = self.commands.get(method)
        if not cmd:
            return SuspendAttempt(method, ok=False, detail="no command configured")

        logger.info("Using suspend method: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            logger.warning("Suspend command not found: %s", cmd[0])
            return SuspendAttempt(method, ok=False, detail="not found")
        except subprocess.TimeoutExpired:
            logger.warning("Suspend command timed out after %.0fs: %s", self.timeout, cmd[0])
            return SuspendAttempt(method, ok=False, detail="timeout")
        except OSError as exc:
            logger.warning("Suspend command %s failed to start: %s", cmd[0], exc)
            return SuspendAttempt(method, ok=False, detail=str(exc))

        if result.returncode != 0:
            logger.warning(
                "Suspend command %s exited with %d: %s",
                cmd[0],
                result.returncode,
                (result.stderr or "").strip(),
            )
        return SuspendAttempt(method, ok=result.returncode == 0, exit_code=result.returncode)

    def _write_power_state(self, method: SuspendMethod) -> SuspendAttempt:
        logger.info("Using suspend method: echo mem > %s", self.power_state_path)
        try:
            with open(self.power_state_path, "w", encoding="utf-8") as f:
                f.write("mem")
        except OSError as exc:
            logger.warning("Failed to write %s: %s", self.power_state_path, exc)
            return SuspendAttempt(method, ok=False, detail=exc.strerror or str(exc))
        return SuspendAttempt(method, ok=True, exit_code=0)


class SuspendExecutor:
    """Suspends the system, falling back through every known method."""

    def __init__(
        self,
        invoker: SuspendInvoker | None = None,
        methods: Sequence[SuspendMethod] | None = None,
    ) -> None:
        """Initialize with an invoker and the fallback table.

        Args:
            invoker: Capability used to run each method
            methods: Fallback table, in order (default: every SuspendMethod)
        """
        self.invoker = invoker or CommandSuspendInvoker()
        self.methods = list(methods) if methods is not None else list(SuspendMethod)

    def fallback_order(self, method: SuspendMethod) -> list[SuspendMethod]:
        """Return the configured method followed by the rest of the table."""
        return [method] + [m for m in self.methods if m != method]

    def suspend(self, method: SuspendMethod) -> SuspendAttempt:
        """Suspend the system, trying the configured method first.

        Tries each method in fallback order until one succeeds. Failed
        attempts are not rolled back.

        Args:
            method: The preferred suspend method

        Returns:
            The successful attempt

        Raises:
            AllMethodsFailed: If every method failed
        """
        attempts: list[SuspendAttempt] = []
        for candidate in self.fallback_order(method):
            if attempts:
                logger.info("Trying fallback suspend method: %s", candidate.name)
            attempt = self.invoker.invoke(candidate)
            attempts.append(attempt)
            if attempt.ok:
                return attempt

        logger.error("All suspend methods failed: %s", [a.method.name for a in attempts])
        raise AllMethodsFailed(attempts)

    def test_suspend(self, method: SuspendMethod) -> SuspendAttempt:
        """Invoke only the given method, once, without fallbacks.

        Args:
            method: The method to verify

        Returns:
            The attempt, successful or not
        """
        logger.info("Testing suspend method: %s", method.name)
        return self.invoker.invoke(method)
