"""Tests for document migrations."""

import pytest

from appdom._dom import CURRENT_VERSION, ConstValue, Document, Node, NodeType
from appdom._errors import MigrationVersionError
from appdom._io import parse_document
from appdom._migrations import MIGRATIONS, Migration, check_migrations, migrate_up, pending_migrations


def _legacy_document() -> Document:
    """A version 0 document using every legacy shape."""
    return parse_document(
        {
            "root": "app",
            "nodes": {
                "app": {"id": "app", "type": "app", "name": "Application"},
                "page": {
                    "id": "page",
                    "type": "page",
                    "name": "page",
                    "parentId": "app",
                    "namespace": "pages",
                    "attributes": {"urlQuery": {"type": "const", "value": {"id": "1", "tab": "main"}}},
                },
                "title": {
                    "id": "title",
                    "type": "element",
                    "name": "link",
                    "parentId": "page",
                    "namespace": "children",
                    "parentIndex": "a0",
                    "attributes": {"component": {"type": "const", "value": "Typography"}},
                },
                "body": {
                    "id": "body",
                    "type": "element",
                    "name": "typography1",
                    "parentId": "page",
                    "namespace": "children",
                    "attributes": {"component": {"type": "const", "value": "Typography"}},
                },
                "button": {
                    "id": "button",
                    "type": "element",
                    "name": "button",
                    "parentId": "page",
                    "namespace": "children",
                    "attributes": {"component": {"type": "const", "value": "Button"}},
                },
                "users": {
                    "id": "users",
                    "type": "queryState",
                    "name": "users",
                    "parentId": "page",
                    "namespace": "queryStates",
                },
            },
        },
    )


class TestMigrateUp:
    """Tests for migrate_up."""

    def test_missing_version_means_zero(self) -> None:
        assert _legacy_document().version == 0

    def test_reaches_current_version(self) -> None:
        migrated = migrate_up(_legacy_document())
        assert migrated.version == CURRENT_VERSION
        migrated.check_integrity()

    @pytest.mark.parametrize("version", range(CURRENT_VERSION + 1))
    def test_every_intermediate_version_reaches_current(self, version: int) -> None:
        partial = migrate_up(_legacy_document(), version)
        assert partial.version == version
        assert migrate_up(partial).version == CURRENT_VERSION

    def test_current_document_is_returned_unchanged(self) -> None:
        migrated = migrate_up(_legacy_document())
        assert migrate_up(migrated) is migrated

    def test_downgrade_is_rejected(self) -> None:
        migrated = migrate_up(_legacy_document())
        with pytest.raises(MigrationVersionError, match="down to v1") as exc_info:
            migrate_up(migrated, 1)
        assert exc_info.value.from_version == CURRENT_VERSION
        assert exc_info.value.to_version == 1

    def test_unknown_future_version_is_rejected(self) -> None:
        with pytest.raises(MigrationVersionError, match="latest known version"):
            migrate_up(_legacy_document(), CURRENT_VERSION + 1)

    def test_document_newer_than_known_versions_is_rejected(self) -> None:
        future = migrate_up(_legacy_document()).model_copy(update={"version": CURRENT_VERSION + 1})
        with pytest.raises(MigrationVersionError, match=r"Cannot read a v\d+ document") as exc_info:
            migrate_up(future)
        assert exc_info.value.from_version == CURRENT_VERSION + 1

    def test_input_is_not_modified(self) -> None:
        legacy = _legacy_document()
        migrate_up(legacy)
        assert legacy == _legacy_document()


class TestIndividualMigrations:
    """Tests for the effect of each migration."""

    def test_parent_indexes_assigned_after_existing(self) -> None:
        migrated = migrate_up(_legacy_document(), 1)
        children = migrated.get_children("page")
        assert [n.id for n in children] == ["title", "body", "button"]
        assert migrated.get_node("title").parent_index == "a0"
        assert all(n.parent_index is not None for n in migrated.nodes.values() if n.parent_id)

    def test_query_states_become_queries(self) -> None:
        migrated = migrate_up(_legacy_document(), 2)
        users = migrated.get_node("users")
        assert users.type == NodeType.QUERY
        assert users.namespace == "queries"

    def test_url_query_becomes_parameters(self) -> None:
        migrated = migrate_up(_legacy_document(), 3)
        page = migrated.get_node("page")
        assert "urlQuery" not in page.attributes
        assert page.attributes["parameters"] == ConstValue(value=[["id", "1"], ["tab", "main"]])

    def test_typography_becomes_text(self) -> None:
        migrated = migrate_up(_legacy_document(), 4)
        title = migrated.get_node("title")
        body = migrated.get_node("body")
        assert title.const_attribute("component") == "Text"
        assert (title.name, body.name) == ("text", "text1")
        assert migrated.get_node("button").const_attribute("component") == "Button"

    def test_migration_checks_input_version(self) -> None:
        with pytest.raises(MigrationVersionError, match="expects a v1 document, got v0"):
            MIGRATIONS[1].up(_legacy_document())


class TestMigrationRegistry:
    """Tests for the startup consistency check."""

    def test_registry_matches_current_version(self) -> None:
        assert len(MIGRATIONS) == CURRENT_VERSION
        check_migrations(MIGRATIONS, CURRENT_VERSION)

    def test_length_mismatch(self) -> None:
        with pytest.raises(RuntimeError, match="3 migrations are registered"):
            check_migrations(MIGRATIONS[:3], CURRENT_VERSION)

    def test_out_of_order(self) -> None:
        swapped = (MIGRATIONS[1], MIGRATIONS[0], *MIGRATIONS[2:])
        with pytest.raises(RuntimeError, match="targets v2, expected v1"):
            check_migrations(swapped, CURRENT_VERSION)

    def test_from_version(self) -> None:
        migration = Migration(3, "test", lambda d: d)
        assert migration.from_version == 2

    def test_pending_migrations(self) -> None:
        legacy = _legacy_document()
        assert [m.to_version for m in pending_migrations(legacy)] == [1, 2, 3, 4]
        assert [m.to_version for m in pending_migrations(legacy, 2)] == [1, 2]
        assert pending_migrations(migrate_up(legacy)) == []


def test_node_types_survive_as_plain_strings() -> None:
    node = Node(id="x", type="queryState", name="x")
    assert node.type == "queryState"
