"""Unit tests for the pure tree decision functions."""
import random
import uuid
from types import SimpleNamespace

from priceguide.core.order_key import keys_after
from priceguide.core.tree import (
    build_forest,
    can_set_category_type,
    compute_depth,
    is_duplicate_sibling,
    would_create_cycle,
)
from priceguide.enums import CategoryType


def make_record(name, parent=None, sort_order="a0", is_active=True):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name=name,
        parent_id=parent.id if parent is not None else None,
        depth=parent.depth + 1 if parent is not None else 0,
        sort_order=sort_order,
        category_type=CategoryType.DEFAULT,
        is_active=is_active,
        version=1,
    )


def lookup(*records):
    by_id = {r.id: r for r in records}
    return by_id.get


class TestWouldCreateCycle:

    def setup_method(self):
        self.a = make_record("A")
        self.b = make_record("B", self.a)
        self.c = make_record("C", self.b)
        self.fetch = lookup(self.a, self.b, self.c)

    def test_moving_under_own_descendant_is_a_cycle(self):
        assert would_create_cycle(self.a.id, self.c.id, self.fetch) is True
        assert would_create_cycle(self.a.id, self.b.id, self.fetch) is True

    def test_moving_under_self_is_a_cycle(self):
        assert would_create_cycle(self.a.id, self.a.id, self.fetch) is True

    def test_moving_under_ancestor_or_root_is_fine(self):
        assert would_create_cycle(self.c.id, self.a.id, self.fetch) is False
        assert would_create_cycle(self.c.id, None, self.fetch) is False

    def test_unrelated_branch_is_fine(self):
        other = make_record("Other")
        fetch = lookup(self.a, self.b, self.c, other)

        assert would_create_cycle(self.b.id, other.id, fetch) is False

    def test_corrupted_parent_loop_is_treated_as_cycle(self):
        x = make_record("X")
        y = make_record("Y", x)
        x.parent_id = y.id
        z = make_record("Z")

        assert would_create_cycle(z.id, x.id, lookup(x, y, z), max_depth=10) is True

    def test_missing_ancestor_ends_the_walk(self):
        orphan = make_record("Orphan", self.a)

        assert would_create_cycle(self.c.id, orphan.id, lookup(orphan)) is False


class TestSmallRules:

    def test_compute_depth(self):
        root = make_record("Root")
        child = make_record("Child", root)

        assert compute_depth(None) == 0
        assert compute_depth(root) == 1
        assert compute_depth(child) == 2

    def test_duplicate_sibling_is_exact_and_case_sensitive(self):
        siblings = [make_record("Roofing"), make_record("Siding")]

        assert is_duplicate_sibling("Roofing", siblings) is True
        assert is_duplicate_sibling("roofing", siblings) is False
        assert is_duplicate_sibling("Gutters", siblings) is False

    def test_inactive_and_excluded_siblings_do_not_count(self):
        inactive = make_record("Roofing", is_active=False)
        active = make_record("Siding")

        assert is_duplicate_sibling("Roofing", [inactive]) is False
        assert is_duplicate_sibling("Siding", [active], exclude_id=active.id) is False

    def test_only_roots_carry_category_type(self):
        assert can_set_category_type(0) is True
        assert can_set_category_type(1) is False
        assert can_set_category_type(5) is False


def brute_force_item_count(record, records, direct):
    """Items on the record plus every record that has it as an ancestor."""
    by_id = {r.id: r for r in records}
    total = 0
    for candidate in records:
        current = candidate
        while current is not None:
            if current.id == record.id:
                total += direct.get(candidate.id, 0)
                break
            current = by_id.get(current.parent_id)
    return total


class TestBuildForest:

    def test_nests_children_in_sort_order(self):
        root = make_record("Roofing", sort_order="a0")
        second = make_record("Shingles", root, sort_order="a1")
        first = make_record("Underlayment", root, sort_order="a0")

        forest = build_forest([second, root, first], {})

        assert [n.name for n in forest] == ["Roofing"]
        assert [n.name for n in forest[0].children] == ["Underlayment", "Shingles"]
        assert forest[0].child_count == 2

    def test_item_counts_cascade_to_ancestors(self):
        root = make_record("Roofing")
        child = make_record("Shingles", root)
        grandchild = make_record("Architectural", child)
        counts = {root.id: 1, child.id: 2, grandchild.id: 4}

        forest = build_forest([root, child, grandchild], counts)

        node = forest[0]
        assert node.direct_item_count == 1
        assert node.item_count == 7
        assert node.children[0].item_count == 6
        assert node.children[0].children[0].item_count == 4

    def test_child_of_filtered_out_parent_is_promoted_to_root(self):
        root = make_record("Roofing", sort_order="a0")
        child = make_record("Shingles", root, sort_order="a1")

        forest = build_forest([child], {})

        assert [n.name for n in forest] == ["Shingles"]

    def test_empty_input(self):
        assert build_forest([], {}) == []

    def test_random_forest_matches_brute_force_counts(self):
        rng = random.Random(42)
        records = []
        keys = keys_after(None, 120)
        for i in range(120):
            parent = rng.choice(records) if records and rng.random() < 0.8 else None
            records.append(make_record(f"cat-{i}", parent, sort_order=keys[rng.randrange(len(keys))]))
        direct = {r.id: rng.randint(0, 5) for r in records if rng.random() < 0.6}

        forest = build_forest(records, direct)

        by_id = {}
        stack = list(forest)
        while stack:
            node = stack.pop()
            by_id[node.id] = node
            stack.extend(node.children)
            orders = [(c.sort_order, str(c.id)) for c in node.children]
            assert orders == sorted(orders)

        assert len(by_id) == len(records)
        for record in records:
            assert by_id[record.id].item_count == brute_force_item_count(record, records, direct)
