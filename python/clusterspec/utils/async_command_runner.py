"""
clusterspec/utils/async_command_runner.py

Provides an asynchronous command runner for the cloud CLIs clusterspec shells
out to. Optionally, allows passing a custom error_parser callback that can parse
stderr for known errors (e.g. expired credentials) and return a short
user-friendly message.

Commands run exactly once; callers decide on retries. If the awaiting task is
cancelled (for example by asyncio.wait_for), the child process is killed.

Usage example:
    from clusterspec.utils.async_command_runner import run_command, CommandError

    try:
        output = await run_command(["aws", "route53", "list-hosted-zones"])
    except CommandError as err:
        print(f"Command failed: {err}")
"""

from __future__ import annotations

import asyncio
import os
from typing import Callable, Dict, List, Optional, Sequence


class CommandError(Exception):
    """Represents a failure when executing a shell command.

    Attributes:
        message (str): The error message describing the command failure.
        return_code (Optional[int]): The exit code if available.
    """

    def __init__(self, message: str, return_code: Optional[int] = None) -> None:
        """
        Initialize a CommandError.

        Args:
            message (str): The error message describing the command failure.
            return_code (Optional[int]): The exit code if known.
        """
        super().__init__(message)
        self.return_code = return_code


async def run_command(
    command: List[str],
    *,
    sensitive: bool = True,
    env: Optional[Dict[str, str]] = None,
    cwd: Optional[str] = None,
    successful_return_codes: Sequence[int] = (0,),
    error_parser: Optional[Callable[[str], Optional[str]]] = None,
) -> str:
    """
    Executes a local command in a subprocess, asynchronously.

    If the command fails (return code not in successful_return_codes), we raise
    CommandError. If `error_parser` is given, we pass stderr to it, and if it returns
    a non-None string, we raise that as a short user-friendly message. Otherwise, we
    raise the usual "Command failed" message.

    When `sensitive=True`, we omit the command, stdout, and stderr from the final error
    message.

    Args:
        command (List[str]):
            The command and arguments to execute.
        sensitive (bool):
            If True, hides command details in the raised error.
        env (Optional[Dict[str, str]]):
            Additional environment variables to add or override.
        cwd (Optional[str]):
            Working directory for the command.
        successful_return_codes (Sequence[int]):
            Which return codes won't be treated as errors. Defaults to (0,).
        error_parser (Optional[Callable[[str], Optional[str]]]):
            A callback that receives stderr (as a string). If it returns a non-None
            value, we raise a short CommandError with that message.

    Returns:
        str: The captured stdout of the command on success.

    Raises:
        CommandError: If the executable cannot be started, or it returns a code
            not in `successful_return_codes`.
    """
    proc_env = None
    if env:
        proc_env = os.environ.copy()
        proc_env.update(env)

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=proc_env,
            cwd=cwd,
        )
    except OSError as e:
        raise CommandError(f"Could not start '{command[0]}': {e}") from e

    try:
        stdout_bytes, stderr_bytes = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    stdout_str = stdout_bytes.decode(errors="replace").strip()
    stderr_str = stderr_bytes.decode(errors="replace").strip()

    if proc.returncode not in successful_return_codes:
        short_message = error_parser(stderr_str) if error_parser else None
        if short_message is not None:
            raise CommandError(short_message, proc.returncode)

        detail = ""
        if not sensitive:
            detail = (
                f"\nCommand: {' '.join(command)}"
                f"\nStdout: {stdout_str}"
                f"\nStderr: {stderr_str}"
            )
        raise CommandError(
            f"Command failed with return code {proc.returncode}.{detail}",
            proc.returncode,
        )

    return stdout_str
