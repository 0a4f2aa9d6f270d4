"""End-to-end walkthroughs of the category tree through the services."""
import pytest

from priceguide.exceptions import CircularReference, ConcurrentModification, DuplicateName, HasDependents
from priceguide.models import MeasureSheetItem
from priceguide.schemas import CategoryMove, CategoryUpdate


@pytest.fixture
def windows_tree(make_category):
    windows = make_category("Windows")
    vinyl = make_category("Vinyl", windows)
    double_hung = make_category("Double-Hung", vinyl)
    return windows, vinyl, double_hung


def test_nested_create_and_breadcrumb(service, windows_tree):
    windows, vinyl, double_hung = windows_tree

    assert (windows.depth, vinyl.depth, double_hung.depth) == (0, 1, 2)
    assert [c.name for c in service.breadcrumb(double_hung.id)] == ["Windows", "Vinyl", "Double-Hung"]


def test_moving_root_under_its_grandchild_changes_nothing(service, windows_tree):
    windows, vinyl, double_hung = windows_tree
    before = [(c.id, c.parent_id, c.depth, c.version) for c in service.list_categories()]

    with pytest.raises(CircularReference):
        service.move(windows.id, CategoryMove(parent_id=double_hung.id))

    assert [(c.id, c.parent_id, c.depth, c.version) for c in service.list_categories()] == before


def test_second_vinyl_under_windows_is_rejected(service, make_category, windows_tree):
    windows, _, _ = windows_tree

    with pytest.raises(DuplicateName):
        make_category("Vinyl", windows)

    assert [c.name for c in service.children(windows.id)] == ["Vinyl"]


def test_stale_rename_reports_current_version(service, windows_tree):
    _, vinyl, _ = windows_tree
    service.update(vinyl.id, CategoryUpdate(version=1, name="Vinyl Classic"))
    service.update(vinyl.id, CategoryUpdate(version=2, name="Vinyl"))
    assert service.get(vinyl.id).version == 3

    # both clients loaded version 3
    renamed = service.update(vinyl.id, CategoryUpdate(version=3, name="Vinyl Pro"))
    with pytest.raises(ConcurrentModification) as exc_info:
        service.update(vinyl.id, CategoryUpdate(version=3, name="Vinyl Plus"))

    assert renamed.version == 4
    assert exc_info.value.details["current_version"] == 4
    assert service.get(vinyl.id).name == "Vinyl Pro"


def test_delete_with_items_needs_force(service, windows_tree, add_items, db_session):
    _, vinyl, double_hung = windows_tree
    items = add_items(double_hung, 5)
    item_ids = [item.id for item in items]

    with pytest.raises(HasDependents) as exc_info:
        service.delete(double_hung.id)
    assert exc_info.value.details["item_count"] == 5
    assert exc_info.value.details["child_count"] == 0

    assert service.delete(double_hung.id, force=True) == (0, 5)
    assert service.children(vinyl.id) == []
    linked = db_session.query(MeasureSheetItem).filter(MeasureSheetItem.id.in_(item_ids)).all()
    assert len(linked) == 5
    assert all(item.category_id is None for item in linked)


def test_tree_item_counts_match_recursive_sum(service, make_category, add_items):
    for r in range(3):
        root = make_category(f"Root {r}")
        for c in range(2):
            add_items(make_category(f"Child {r}.{c}", root), 10)

    def recursive_sum(node):
        return node.direct_item_count + sum(recursive_sum(child) for child in node.children)

    tree = service.tree()

    assert len(tree) == 3
    for root in tree:
        assert root.child_count == 2
        assert root.item_count == recursive_sum(root) == 20
        assert all(child.item_count == 10 for child in root.children)
