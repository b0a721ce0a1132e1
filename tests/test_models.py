"""Tests for the data models module."""

import pytest

from msgraph_appreg_tree.models import (
    ROOT_PATH,
    GraphError,
    GraphErrorKind,
    GraphResult,
    NodeKind,
    TreeChangeEvent,
    TreeNode,
    VisualState,
)


class TestGraphResult:
    """Test GraphResult and GraphError."""

    def test_ok_result(self):
        result = GraphResult.ok({"id": "obj-1"})
        assert result.success
        assert result.value == {"id": "obj-1"}
        assert result.error is None

    def test_ok_without_value(self):
        result = GraphResult.ok()
        assert result.success
        assert result.value is None

    def test_fail_result(self):
        error = GraphError(GraphErrorKind.NOT_FOUND, "gone", 404)
        result = GraphResult.fail(error)
        assert not result.success
        assert result.value is None
        assert result.error is error

    def test_error_str_with_status(self):
        assert str(GraphError(GraphErrorKind.UNAUTHORIZED, "Forbidden", 403)) == "Forbidden (HTTP 403)"

    def test_error_str_without_status(self):
        assert str(GraphError(GraphErrorKind.AUTHENTICATION, "Not signed in")) == "Not signed in"


class TestTreeNode:
    """Test TreeNode identity, parent links and derived state."""

    def _tree(self):
        app = TreeNode(kind=NodeKind.APPLICATION, identity="obj-1", label="Contoso")
        group = TreeNode(kind=NodeKind.APP_ROLE_GROUP, identity="obj-1", label="App Roles")
        role = TreeNode(
            kind=NodeKind.APP_ROLE,
            identity="obj-1",
            local_value="role-1",
            label="Reader",
            children=[],
            data={"isEnabled": False},
        )
        app.children = app.adopt([group])
        group.children = group.adopt([role])
        return app, group, role

    def test_new_node_is_unresolved_and_idle(self):
        node = TreeNode(kind=NodeKind.APPLICATION, identity="obj-1")
        assert node.children is None
        assert not node.is_resolved
        assert node.visual_state is VisualState.IDLE
        assert node.parent is None
        assert node.pending is None

    def test_key(self):
        _, _, role = self._tree()
        assert role.key == (NodeKind.APP_ROLE, "obj-1", "role-1")

    def test_path_walks_up_to_root(self):
        app, group, role = self._tree()
        assert app.path == (app.key,)
        assert role.path == (app.key, group.key, role.key)

    def test_parent_is_weak(self):
        app, group, _ = self._tree()
        assert group.parent is app
        del app
        import gc

        gc.collect()
        assert group.parent is None

    def test_is_enabled(self):
        app, _, role = self._tree()
        assert role.is_enabled is False
        assert app.is_enabled is None

    def test_effective_state_inherits_busy_ancestor(self):
        app, group, role = self._tree()
        assert role.effective_state is VisualState.IDLE
        group.visual_state = VisualState.BUSY
        assert role.effective_state is VisualState.BUSY
        assert app.effective_state is VisualState.IDLE

    def test_effective_state_keeps_own_error(self):
        _, _, role = self._tree()
        role.visual_state = VisualState.ERROR
        assert role.effective_state is VisualState.ERROR

    def test_resolved_empty_is_not_unresolved(self):
        node = TreeNode(kind=NodeKind.OWNER_GROUP, identity="obj-1", children=[])
        assert node.is_resolved
        assert node.children == []


class TestTreeChangeEvent:
    def test_whole_tree(self):
        assert TreeChangeEvent().is_whole_tree

    def test_specific_path(self):
        key = (NodeKind.APPLICATION, "obj-1", None)
        event = TreeChangeEvent(path=(key,))
        assert not event.is_whole_tree
        assert event.path == (key,)

    def test_root_path_constant(self):
        assert ROOT_PATH == ()


@pytest.mark.parametrize("kind", list(NodeKind))
def test_node_kinds_are_strings(kind):
    assert isinstance(kind.value, str)
