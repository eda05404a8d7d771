"""Post-commit hook runner tests."""

from uuid import uuid4

from servicedesk.directory.domain import Role
from servicedesk.shared.infrastructure.hooks import PostCommitRunner


class TestPostCommitRunner:
    async def test_failing_hook_keeps_primary_change_and_later_hooks(self, container, session):
        await container.roles.save(Role(id=uuid4(), name="Primary", permissions=frozenset()))

        async def broken():
            await container.roles.save(Role(id=uuid4(), name="Half written", permissions=frozenset()))
            raise RuntimeError("mail server unreachable")

        async def later():
            await container.roles.save(Role(id=uuid4(), name="Later", permissions=frozenset()))

        failures = await PostCommitRunner(session).commit_then_run(("broken", broken), ("later", later))

        assert failures == 1
        names = {r.name for r in await container.roles.list()}
        assert names == {"Primary", "Later"}

    async def test_no_hooks_only_commits(self, container, session):
        await container.roles.save(Role(id=uuid4(), name="Solo", permissions=frozenset()))
        assert await PostCommitRunner(session).commit_then_run() == 0

        await session.rollback()
        assert await container.roles.get_by_name("Solo") is not None
