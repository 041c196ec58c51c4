"""Action executor: applies actions one at a time, skipping satisfied ones."""

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_fixed

from dotstrap.core.errors import ActionFailure, FatalActionError, HomeNotWritableError
from dotstrap.core.logging import get_logger
from dotstrap.core.models import Action, ActionStatus, ExecutionResult
from dotstrap.system.command import CommandError
from dotstrap.system.http import DownloadError

logger = get_logger(__name__)

# Postcondition polling only; the effect itself is never retried
VERIFY_ATTEMPTS = 3
VERIFY_WAIT_SECONDS = 0.5


async def _verify(action: Action, attempts: int, wait: float) -> bool:
    """Re-check an action's precondition after applying it.

    Polls briefly because some state (the passwd database behind nscd,
    freshly linked Homebrew kegs) can take a moment to become visible.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait),
        retry=retry_if_result(lambda satisfied: not satisfied),
        retry_error_callback=lambda retry_state: False,
        reraise=True,
    )
    return await retrying(action.check)


async def _read_credential(action: Action) -> str:
    if action.credential is None:
        return ""
    return await action.credential()


async def _run(action: Action, verify_attempts: int, verify_wait: float) -> ActionStatus:
    if await action.check():
        logger.info("Already satisfied", action=action.description)
        return ActionStatus.SKIPPED

    logger.info("Applying", action=action.description)
    await action.apply()

    if not await _verify(action, verify_attempts, verify_wait):
        raise ActionFailure(action.description, "desired state still not reached after applying")

    return ActionStatus.APPLIED


async def execute(
    action: Action,
    *,
    verify_attempts: int = VERIFY_ATTEMPTS,
    verify_wait: float = VERIFY_WAIT_SECONDS,
) -> ExecutionResult:
    """Execute a single action.

    The precondition is evaluated now, never reused from planning time.

    Args:
        action: Action to execute
        verify_attempts: How many times to check the postcondition
        verify_wait: Seconds between postcondition checks

    Returns:
        Applied, skipped or failed result

    Raises:
        FatalActionError: If a fatal action fails or a home directory is not writable
    """
    try:
        status = await _run(action, verify_attempts, verify_wait)
        credential = await _read_credential(action)
    except HomeNotWritableError as e:
        raise FatalActionError(ActionFailure(action.description, str(e))) from e
    except ActionFailure as e:
        failure = e
    except CommandError as e:
        failure = ActionFailure(action.description, e.reason)
    except (DownloadError, OSError, ValueError) as e:
        failure = ActionFailure(action.description, str(e))
    else:
        if status is ActionStatus.APPLIED:
            logger.info("Applied", action=action.description)
        return ExecutionResult(action=action, status=status, credential=credential)

    if action.fatal:
        logger.error("Fatal action failed", action=action.description, reason=failure.reason)
        raise FatalActionError(failure)

    logger.error("Action failed", action=action.description, reason=failure.reason)
    return ExecutionResult(action=action, status=ActionStatus.FAILED, reason=failure.reason)


async def execute_all(
    actions: list[Action],
    *,
    verify_attempts: int = VERIFY_ATTEMPTS,
    verify_wait: float = VERIFY_WAIT_SECONDS,
) -> list[ExecutionResult]:
    """Execute actions in order, continuing past non-fatal failures.

    Raises:
        FatalActionError: As soon as a fatal failure occurs
    """
    results = []
    for action in actions:
        result = await execute(action, verify_attempts=verify_attempts, verify_wait=verify_wait)
        results.append(result)
    return results
