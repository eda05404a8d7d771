"""
Post-Commit Hooks
=================

Secondary effects of a lifecycle action (SLA evaluation, notification
fanout, event log) run only after the primary mutation is committed.
Each hook gets its own transaction: a failing hook is logged and rolled
back on its own, and never reverts the primary change or stops the hooks
after it.
"""

from typing import Awaitable, Callable, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

Hook = Callable[[], Awaitable[object]]
NamedHook = Tuple[str, Hook]


class PostCommitRunner:
    """Commits the session, then runs named hooks one transaction each."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def commit_then_run(self, *hooks: NamedHook) -> int:
        """
        Commit the pending work and run the hooks in order.

        Returns:
            Number of hooks that failed
        """
        await self._session.commit()

        failures = 0
        for name, hook in hooks:
            try:
                await hook()
                await self._session.commit()
            except Exception as e:
                failures += 1
                await self._session.rollback()
                logger.error(
                    "Post-commit hook failed",
                    extra={"hook": name, "error": str(e), "error_type": type(e).__name__},
                    exc_info=True
                )
        return failures
