"""Unit tests for the action executor."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from dotstrap.core.errors import ActionFailure, FatalActionError, HomeNotWritableError
from dotstrap.core.executor import execute, execute_all
from dotstrap.core.models import Action, ActionKind, ActionStatus
from dotstrap.system.command import CommandError
from dotstrap.system.http import DownloadError


class FlagAction:
    """An action whose state is a single boolean."""

    def __init__(self, satisfied: bool = False, effect: AsyncMock | None = None) -> None:
        self.satisfied = satisfied
        self.effect = effect or AsyncMock(side_effect=self._satisfy)
        self.checks = 0

    async def _satisfy(self) -> None:
        self.satisfied = True

    async def check(self) -> bool:
        self.checks += 1
        return self.satisfied

    def build(self, target: str = "vim", fatal: bool = False, credential=None) -> Action:
        return Action(
            kind=ActionKind.INSTALL_PACKAGE,
            target=target,
            check=self.check,
            apply=self.effect,
            fatal=fatal,
            credential=credential,
        )


class TestExecute:
    """Tests for execute function."""

    @pytest.mark.asyncio
    async def test_skip_when_satisfied(self) -> None:
        """Test that a satisfied action is not applied."""
        state = FlagAction(satisfied=True)

        result = await execute(state.build(), verify_wait=0)
        assert result.status is ActionStatus.SKIPPED
        state.effect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_apply_when_unsatisfied(self) -> None:
        """Test that an unsatisfied action is applied and verified."""
        state = FlagAction()

        result = await execute(state.build(), verify_wait=0)
        assert result.status is ActionStatus.APPLIED
        assert result.reason == ""
        state.effect.assert_awaited_once()
        # Precondition, then postcondition
        assert state.checks == 2

    @pytest.mark.asyncio
    async def test_postcondition_not_reached(self) -> None:
        """Test that an effect that changes nothing is a failure."""
        state = FlagAction(effect=AsyncMock())

        result = await execute(state.build(), verify_attempts=2, verify_wait=0)
        assert result.status is ActionStatus.FAILED
        assert "still not reached" in result.reason
        assert state.checks == 3

    @pytest.mark.asyncio
    async def test_postcondition_polled(self) -> None:
        """Test that state appearing late still counts as applied."""
        answers = iter([False, False, True])

        async def check() -> bool:
            return next(answers)

        action = Action(
            kind=ActionKind.CREATE_USER, target="mg", check=check, apply=AsyncMock()
        )
        result = await execute(action, verify_attempts=3, verify_wait=0)
        assert result.status is ActionStatus.APPLIED

    @pytest.mark.asyncio
    async def test_command_error_reason_verbatim(self) -> None:
        """Test that the tool's output becomes the failure reason."""
        error = CommandError("yum install -y nosuchpkg", 1, "No match for argument: nosuchpkg\n")
        state = FlagAction(effect=AsyncMock(side_effect=error))

        result = await execute(state.build(target="nosuchpkg"), verify_wait=0)
        assert result.status is ActionStatus.FAILED
        assert result.reason == "No match for argument: nosuchpkg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ActionFailure("install-package vim", "boom"),
            DownloadError("https://example.com/install.sh", 404, "Not Found"),
            OSError("disk full"),
            ValueError("bad value"),
        ],
    )
    async def test_recorded_failures(self, error: Exception) -> None:
        """Test that expected failure types are recorded, not raised."""
        state = FlagAction(effect=AsyncMock(side_effect=error))

        result = await execute(state.build(), verify_wait=0)
        assert result.status is ActionStatus.FAILED
        assert result.reason

    @pytest.mark.asyncio
    async def test_failure_in_check(self) -> None:
        """Test that a failing precondition is recorded too."""

        async def check() -> bool:
            raise CommandError("rpm -q vim", 2, "rpmdb open failed")

        action = Action(kind=ActionKind.INSTALL_PACKAGE, target="vim", check=check, apply=AsyncMock())
        result = await execute(action, verify_wait=0)
        assert result.status is ActionStatus.FAILED
        assert result.reason == "rpmdb open failed"

    @pytest.mark.asyncio
    async def test_fatal_failure_raises(self) -> None:
        """Test that a failing fatal action stops the run."""
        error = CommandError("/bin/bash -c ...", 1, "Need sudo access")
        state = FlagAction(effect=AsyncMock(side_effect=error))

        with pytest.raises(FatalActionError, match="Need sudo access") as exc_info:
            await execute(state.build(target="homebrew", fatal=True), verify_wait=0)
        assert exc_info.value.failure.reason == "Need sudo access"

    @pytest.mark.asyncio
    async def test_home_not_writable_is_fatal(self) -> None:
        """Test that an unwritable home directory stops the run."""
        error = HomeNotWritableError(Path("/home/dev/.vimrc"), "Permission denied")
        state = FlagAction(effect=AsyncMock(side_effect=error))

        with pytest.raises(FatalActionError, match="Permission denied"):
            await execute(state.build(), verify_wait=0)

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self) -> None:
        """Test that programming errors are not swallowed."""
        state = FlagAction(effect=AsyncMock(side_effect=KeyError("oops")))

        with pytest.raises(KeyError):
            await execute(state.build(), verify_wait=0)

    @pytest.mark.asyncio
    async def test_credential_on_apply_and_skip(self) -> None:
        """Test that credentials are surfaced whether or not the action ran."""
        credential = AsyncMock(return_value="ssh-ed25519 AAAA dev")

        applied = await execute(FlagAction().build(credential=credential), verify_wait=0)
        skipped = await execute(
            FlagAction(satisfied=True).build(credential=credential), verify_wait=0
        )
        assert applied.credential == "ssh-ed25519 AAAA dev"
        assert skipped.credential == "ssh-ed25519 AAAA dev"


class TestExecuteAll:
    """Tests for execute_all function."""

    @pytest.mark.asyncio
    async def test_continues_past_failures(self) -> None:
        """Test that a non-fatal failure doesn't stop later actions."""
        failing = FlagAction(effect=AsyncMock(side_effect=CommandError("x", 1, "nope")))
        later = FlagAction()

        results = await execute_all(
            [failing.build("a"), later.build("b")], verify_wait=0
        )
        assert [r.status for r in results] == [ActionStatus.FAILED, ActionStatus.APPLIED]

    @pytest.mark.asyncio
    async def test_stops_at_fatal_failure(self) -> None:
        """Test that nothing runs after a fatal failure."""
        fatal = FlagAction(effect=AsyncMock(side_effect=CommandError("x", 1, "nope")))
        later = FlagAction()

        with pytest.raises(FatalActionError):
            await execute_all([fatal.build("a", fatal=True), later.build("b")], verify_wait=0)
        later.effect.assert_not_awaited()
        assert later.checks == 0

    @pytest.mark.asyncio
    async def test_in_order(self) -> None:
        """Test that actions are executed one after another in plan order."""
        order = []

        def recorder(name: str) -> Action:
            async def check() -> bool:
                return name in order

            async def apply() -> None:
                order.append(name)

            return Action(kind=ActionKind.COPY_FILE, target=name, check=check, apply=apply)

        await execute_all([recorder("one"), recorder("two"), recorder("three")], verify_wait=0)
        assert order == ["one", "two", "three"]
