"""Suggestion workflow tests."""

import pytest

from servicedesk.core import AuthorizationException, InvalidTransitionException, ValidationException

from tests.conftest import actor_for, user_id


async def submit(container, world, login="client"):
    author = await actor_for(container, world, login)
    return await container.suggestion_service.create(author, "Add dark mode to the portal")


class TestSuggestionWorkflow:
    async def test_developers_hear_about_new_suggestions(self, container, world):
        await submit(container, world)

        inbox = await container.notifications.list_for_recipient(user_id(world, "developer"))
        assert [n.type for n in inbox] == ["suggestion_new"]
        assert "Add dark mode" in inbox[0].content

    async def test_authors_see_only_their_own(self, container, world):
        suggestion = await submit(container, world)
        await submit(container, world, login="client2")

        client = await actor_for(container, world, "client")
        assert [s.id for s in await container.suggestion_service.list_suggestions(client)] == [suggestion.id]

        manager = await actor_for(container, world, "manager")
        assert len(await container.suggestion_service.list_suggestions(manager)) == 2

        other = await actor_for(container, world, "client2")
        with pytest.raises(AuthorizationException):
            await container.suggestion_service.get(other, suggestion.id)

    async def test_assign_test_and_deploy(self, container, world):
        suggestion = await submit(container, world)
        manager = await actor_for(container, world, "manager")
        developer_id = user_id(world, "developer")

        suggestion = await container.suggestion_service.assign(manager, suggestion.id, developer_id)
        assert suggestion.status == "assigned"

        suggestion = await container.suggestion_service.record_test(manager, suggestion.id, passed=True)
        assert suggestion.status == "ready_for_deployment"

        suggestion = await container.suggestion_service.deploy(manager, suggestion.id)
        assert suggestion.status == "deployed"

        inbox = await container.notifications.list_for_recipient(user_id(world, "client"))
        assert [n.type for n in inbox] == ["suggestion_deployed"]

    async def test_deploy_requires_passed_test(self, container, world):
        suggestion = await submit(container, world)
        manager = await actor_for(container, world, "manager")

        with pytest.raises(InvalidTransitionException):
            await container.suggestion_service.deploy(manager, suggestion.id)

    async def test_failed_test_goes_back_to_developer(self, container, world):
        suggestion = await submit(container, world)
        manager = await actor_for(container, world, "manager")
        await container.suggestion_service.assign(manager, suggestion.id, user_id(world, "developer"))

        suggestion = await container.suggestion_service.record_test(
            manager, suggestion.id, passed=False, notes="Contrast too low"
        )

        assert suggestion.status == "needs_revision"
        assert suggestion.test_notes == "Contrast too low"
        inbox = await container.notifications.list_for_recipient(user_id(world, "developer"))
        assert "suggestion_test_failed" in [n.type for n in inbox]

    async def test_needs_info_notifies_author(self, container, world):
        suggestion = await submit(container, world)
        manager = await actor_for(container, world, "manager")

        await container.suggestion_service.change_status(
            manager, suggestion.id, "needs_info", additional_info="Which pages?"
        )

        inbox = await container.notifications.list_for_recipient(user_id(world, "client"))
        assert inbox[0].content == "Your suggestion needs more information: Which pages?"

    async def test_unknown_status_is_rejected(self, container, world):
        suggestion = await submit(container, world)
        manager = await actor_for(container, world, "manager")
        with pytest.raises(ValidationException):
            await container.suggestion_service.change_status(manager, suggestion.id, "shipped")

    async def test_managing_requires_permission(self, container, world):
        suggestion = await submit(container, world)
        specialist = await actor_for(container, world, "specialist")
        with pytest.raises(AuthorizationException):
            await container.suggestion_service.assign(specialist, suggestion.id, user_id(world, "developer"))
