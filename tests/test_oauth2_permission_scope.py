"""Tests for the exposed API permission scope service."""

import pytest

from msgraph_appreg_tree.models import GraphError, GraphErrorKind, NodeKind, VisualState
from msgraph_appreg_tree.services import OAuth2PermissionScopeService
from msgraph_appreg_tree.services.oauth2_permission_scope import on_scopes


@pytest.fixture
def service(make_service):
    return make_service(OAuth2PermissionScopeService)


@pytest.fixture
async def group(app_node, expand):
    return await expand(app_node, NodeKind.SCOPE_GROUP)


@pytest.fixture
async def files_read(synchronizer, group):
    return (await synchronizer.resolve_children(group))[0]


def test_on_scopes_keeps_other_api_settings():
    api = {"requestedAccessTokenVersion": 2, "oauth2PermissionScopes": [{"id": "a"}]}
    updated = on_scopes(lambda scopes: scopes + [{"id": "b"}])(api)
    assert updated["requestedAccessTokenVersion"] == 2
    assert [s["id"] for s in updated["oauth2PermissionScopes"]] == ["a", "b"]


def test_on_scopes_without_api():
    assert on_scopes(lambda scopes: scopes)(None) == {"oauth2PermissionScopes": []}


class TestAddScope:
    async def test_add_scope(self, service, synchronizer, repository, ui, group):
        ui.inputs.extend(["Files.Write", "Write files", "Allows the app to write files", "", ""])
        ui.picks.extend(["Admins only", "Enabled"])

        assert await service.add(group)

        scopes = repository.apps["obj-1"]["api"]["oauth2PermissionScopes"]
        added = scopes[1]
        assert added["value"] == "Files.Write"
        assert added["type"] == "Admin"
        assert added["adminConsentDisplayName"] == "Write files"
        assert added["userConsentDisplayName"] is None
        assert added["isEnabled"] is True
        assert [c.label for c in synchronizer.find(group.path).children] == ["Files.Read", "Files.Write"]

    async def test_add_writes_whole_api_object(self, service, repository, ui, group):
        repository.apps["obj-1"]["api"]["requestedAccessTokenVersion"] = 2
        ui.inputs.extend(["Files.Write", "Write files", "Allows writes", "Write your files", "Allows writes"])
        ui.picks.extend(["Admins and users", "Enabled"])

        assert await service.add(group)

        written = repository.calls_to("write_fields")[-1][2]
        assert list(written) == ["api"]
        assert written["api"]["requestedAccessTokenVersion"] == 2

    async def test_seven_steps(self, service, ui, group):
        ui.inputs.extend(["Files.Write", "Write files", "Allows writes", "", ""])
        ui.picks.extend(["Admins only", None])
        assert not await service.add(group)
        titles = [o.title for o in ui.input_boxes] + [o.title for o in ui.quick_picks]
        assert "Add Exposed API Permission (1/7)" in titles
        assert "Add Exposed API Permission (7/7)" in titles

    async def test_duplicate_value(self, service, repository, ui, group):
        ui.inputs.append("Files.Read")
        assert not await service.add(group)
        assert ui.errors == ["The value specified already exists."]
        assert repository.calls_to("write_fields") == []

    async def test_value_with_space(self, service, ui, group):
        ui.inputs.append("Files Read")
        assert not await service.add(group)
        assert ui.errors == ["Value cannot contain spaces."]


class TestEditScope:
    async def test_edit_field_consent_type(self, service, repository, ui, files_read):
        ui.picks.append("Admins only")
        assert await service.edit_field(files_read, "type")
        assert repository.apps["obj-1"]["api"]["oauth2PermissionScopes"][0]["type"] == "Admin"

    async def test_edit_field_clears_optional_text(self, service, repository, ui, files_read):
        ui.inputs.append("")
        assert await service.edit_field(files_read, "userConsentDescription")
        assert repository.apps["obj-1"]["api"]["oauth2PermissionScopes"][0]["userConsentDescription"] is None

    async def test_edit_field_unknown(self, service, files_read):
        with pytest.raises(ValueError):
            await service.edit_field(files_read, "isEnabled")

    async def test_edit_prefills_existing_values(self, service, ui, files_read):
        ui.inputs.extend(["Files.Read", "Read all files"])
        ui.picks.append("Admins and users")
        await service.edit(files_read)
        assert ui.input_boxes[0].value == "Files.Read"
        assert ui.input_boxes[1].value == "Read files"

    async def test_change_state(self, service, synchronizer, repository, files_read):
        assert await service.change_state(files_read, False)
        assert repository.apps["obj-1"]["api"]["oauth2PermissionScopes"][0]["isEnabled"] is False
        assert synchronizer.find(files_read.path).description == "Disabled"


class TestDeleteScope:
    async def test_decline(self, service, repository, ui, files_read):
        ui.warning_answers.append("No")
        assert not await service.delete(files_read)
        assert repository.calls_to("write_fields") == []
        assert files_read.visual_state is VisualState.IDLE

    async def test_disable_then_delete(self, service, synchronizer, repository, ui, group, files_read):
        ui.warning_answers.append("Yes")
        assert await service.delete(files_read)
        assert repository.apps["obj-1"]["api"]["oauth2PermissionScopes"] == []
        assert len(repository.calls_to("write_fields")) == 2
        assert synchronizer.find(group.path).children == []

    async def test_write_failure_rolls_back(self, service, synchronizer, repository, ui, files_read):
        repository.failures["write_fields"] = GraphError(GraphErrorKind.UNAUTHORIZED, "Forbidden", 403)

        assert not await service.change_state(files_read, False)

        live = synchronizer.find(files_read.path)
        assert live is files_read
        assert live.visual_state is VisualState.ERROR
        assert live.description == "Read files"
        assert "permission" in ui.errors[0]
