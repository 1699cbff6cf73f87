"""Tests for the subprocess runner used by the Route53 provider."""

from __future__ import annotations

import asyncio

import pytest

from clusterspec.utils.async_command_runner import CommandError, run_command


@pytest.mark.asyncio
async def test_returns_stripped_stdout() -> None:
    assert await run_command(["sh", "-c", "echo '  hello  '"]) == "hello"


@pytest.mark.asyncio
async def test_failure_hides_details_when_sensitive() -> None:
    with pytest.raises(CommandError) as exc_info:
        await run_command(["sh", "-c", "echo secret >&2; exit 3"])
    assert exc_info.value.return_code == 3
    assert "secret" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_failure_shows_details_when_not_sensitive() -> None:
    with pytest.raises(CommandError, match="Stderr: boom"):
        await run_command(["sh", "-c", "echo boom >&2; exit 1"], sensitive=False)


@pytest.mark.asyncio
async def test_error_parser_short_message() -> None:
    def parser(stderr: str):
        return "credentials missing" if "Unable to locate credentials" in stderr else None

    with pytest.raises(CommandError, match="^credentials missing$"):
        await run_command(
            ["sh", "-c", "echo 'Unable to locate credentials' >&2; exit 255"],
            error_parser=parser,
        )


@pytest.mark.asyncio
async def test_extra_return_codes_and_env() -> None:
    output = await run_command(
        ["sh", "-c", 'echo "$CLUSTERSPEC_TEST"; exit 2'],
        env={"CLUSTERSPEC_TEST": "set"},
        successful_return_codes=(0, 2),
    )
    assert output == "set"


@pytest.mark.asyncio
async def test_missing_executable() -> None:
    with pytest.raises(CommandError, match="Could not start"):
        await run_command(["clusterspec-no-such-binary"])


@pytest.mark.asyncio
async def test_timeout_cancels_the_command() -> None:
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(run_command(["sleep", "10"]), timeout=0.2)
