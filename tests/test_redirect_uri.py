"""Tests for the redirect URI service."""

import pytest

from msgraph_appreg_tree.models import NodeKind
from msgraph_appreg_tree.services import RedirectUriService
from msgraph_appreg_tree.services.redirect_uri import on_redirect_uris


@pytest.fixture
def service(make_service):
    return make_service(RedirectUriService)


@pytest.fixture
async def group(app_node, expand):
    return await expand(app_node, NodeKind.REDIRECT_URI_GROUP)


@pytest.fixture
async def signin(synchronizer, group):
    return (await synchronizer.resolve_children(group))[0]


def test_on_redirect_uris_keeps_grant_settings():
    web = {"redirectUris": ["https://a"], "implicitGrantSettings": {"enableIdTokenIssuance": True}}
    updated = on_redirect_uris(lambda uris: uris + ["https://b"])(web)
    assert updated["redirectUris"] == ["https://a", "https://b"]
    assert updated["implicitGrantSettings"] == {"enableIdTokenIssuance": True}


class TestRedirectUris:
    async def test_add_web_uri(self, service, synchronizer, repository, ui, group):
        ui.picks.append("Web")
        ui.inputs.append("https://contoso.com/callback")

        assert await service.add(group)

        web = repository.apps["obj-1"]["web"]
        assert web["redirectUris"] == ["https://contoso.com/signin-oidc", "https://contoso.com/callback"]
        assert "implicitGrantSettings" in web
        labels = [c.label for c in synchronizer.find(group.path).children]
        assert labels == ["https://contoso.com/callback", "https://contoso.com/signin-oidc"]

    async def test_add_spa_uri(self, service, repository, ui, group):
        ui.picks.append("Single-page application")
        ui.inputs.append("http://localhost:3000")
        assert await service.add(group)
        assert repository.apps["obj-1"]["spa"]["redirectUris"] == ["http://localhost:3000"]
        assert repository.calls_to("write_fields")[-1][2] == {"spa": {"redirectUris": ["http://localhost:3000"]}}

    async def test_add_public_client_custom_scheme(self, service, repository, ui, group):
        ui.picks.append("Mobile and desktop applications")
        ui.inputs.append("msal1234://auth")
        assert await service.add(group)
        assert repository.apps["obj-1"]["publicClient"]["redirectUris"] == ["msal1234://auth"]

    async def test_insecure_web_uri_rejected(self, service, repository, ui, group):
        ui.picks.append("Web")
        ui.inputs.append("http://contoso.com/callback")
        assert not await service.add(group)
        assert ui.errors == ["Redirect URI must start with https:// or http://localhost."]
        assert repository.calls_to("write_fields") == []

    async def test_duplicate_rejected(self, service, ui, group):
        ui.picks.append("Web")
        ui.inputs.append("https://contoso.com/signin-oidc")
        assert not await service.add(group)
        assert ui.errors == ["The redirect URI specified already exists."]

    async def test_edit(self, service, synchronizer, repository, ui, group, signin):
        ui.inputs.append("https://contoso.com/signin")

        assert await service.edit(signin)

        assert repository.apps["obj-1"]["web"]["redirectUris"] == ["https://contoso.com/signin"]
        assert ui.input_boxes[0].value == "https://contoso.com/signin-oidc"
        assert [c.label for c in synchronizer.find(group.path).children] == ["https://contoso.com/signin"]

    async def test_edit_unchanged_is_noop(self, service, repository, ui, signin):
        ui.inputs.append("https://contoso.com/signin-oidc")
        assert not await service.edit(signin)
        assert repository.calls_to("write_fields") == []

    async def test_delete(self, service, synchronizer, repository, ui, group, signin):
        ui.warning_answers.append("Yes")
        assert await service.delete(signin)
        assert repository.apps["obj-1"]["web"]["redirectUris"] == []
        assert synchronizer.find(group.path).children == []

    async def test_delete_removed_elsewhere(self, service, repository, ui, signin):
        repository.apps["obj-1"]["web"]["redirectUris"] = []
        ui.warning_answers.append("Yes")
        assert not await service.delete(signin)
        assert repository.calls_to("write_fields") == []
        assert len(ui.errors) == 1
