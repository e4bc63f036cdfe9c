# tests/services/test_category_service.py
import pytest
from uuid import uuid4

from marketplace.core.exceptions import (
    CategoryNotFoundError,
    CategoryValidationError,
    CycleDetectedError,
    HasDependentsError,
    ParentNotFoundError,
    SlugConflictError,
)
from marketplace.db.models import Category, Product
from marketplace.schemas.category import CategoryCreate, CategoryUpdate
from marketplace.services.category_service import CategoryService


def test_create_root_category(category_service, supplier):
    """Test creating a root category with a derived slug."""
    category = category_service.create_category(
        supplier.id,
        CategoryCreate(name="Eletrônicos", description="Aparelhos", order=3),
    )

    assert category.id is not None
    assert category.owner_id == supplier.id
    assert category.name == "Eletrônicos"
    assert category.slug == "eletronicos"
    assert category.parent_id is None
    assert category.active is True
    assert category.order == 3


def test_create_repeated_name_gets_suffixed_slug(category_service, supplier):
    first = category_service.create_category(supplier.id, {"name": "Eletrônicos"})
    second = category_service.create_category(supplier.id, {"name": "Eletronicos"})

    assert first.slug == "eletronicos"
    assert second.slug == "eletronicos-1"


def test_same_slug_allowed_for_different_suppliers(category_service, supplier, other_supplier):
    mine = category_service.create_category(supplier.id, {"name": "Bebidas"})
    theirs = category_service.create_category(other_supplier.id, {"name": "Bebidas"})

    assert mine.slug == theirs.slug == "bebidas"


def test_create_with_explicit_slug(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas", "slug": "Drinks Frios"})
    assert category.slug == "drinks-frios"

    with pytest.raises(SlugConflictError) as exc_info:
        category_service.create_category(supplier.id, {"name": "Outra", "slug": "drinks-frios"})
    assert exc_info.value.slug == "drinks-frios"


def test_create_child(category_service, supplier):
    parent = category_service.create_category(supplier.id, {"name": "Bebidas"})
    child = category_service.create_category(supplier.id, {"name": "Sucos", "parent_id": parent.id})

    assert child.parent_id == parent.id


def test_create_with_missing_parent(category_service, supplier):
    with pytest.raises(ParentNotFoundError):
        category_service.create_category(supplier.id, {"name": "Sucos", "parent_id": uuid4()})


def test_create_with_parent_of_other_supplier(category_service, supplier, other_supplier):
    foreign = category_service.create_category(other_supplier.id, {"name": "Bebidas"})

    with pytest.raises(ParentNotFoundError):
        category_service.create_category(supplier.id, {"name": "Sucos", "parent_id": foreign.id})


@pytest.mark.parametrize(
    "payload",
    [
        {"name": ""},
        {"name": "   "},
        {"name": "x"},
        {"name": "x" * 101},
        {"name": "Bebidas", "order": -1},
        {"name": "Bebidas", "description": "d" * 501},
        {"name": "Bebidas", "image": "ftp://example.com/a.png"},
        {"name": "Bebidas", "slug": "!!!"},
        {"description": "sem nome"},
    ],
)
def test_create_rejects_malformed_input_before_store_access(payload):
    class UntouchableStore:
        def __getattr__(self, name):
            raise AssertionError(f"store accessed: {name}")

    service = CategoryService(store=UntouchableStore())

    with pytest.raises(CategoryValidationError) as exc_info:
        service.create_category(uuid4(), payload)
    assert exc_info.value.errors


def test_name_whitespace_is_collapsed(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "  Cama   e   Banho "})
    assert category.name == "Cama e Banho"


def test_get_category_is_tenant_scoped(category_service, supplier, other_supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    assert category_service.get_category(category.id, supplier.id).id == category.id
    with pytest.raises(CategoryNotFoundError) as exc_info:
        category_service.get_category(category.id, other_supplier.id)
    # Same message as a missing id
    assert str(exc_info.value) == f"Category {category.id} not found"


def test_get_by_slug(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    assert category_service.get_by_slug("bebidas", supplier.id).id == category.id
    with pytest.raises(CategoryNotFoundError):
        category_service.get_by_slug("nada", supplier.id)


def test_list_and_tree(category_service, supplier, other_supplier, chain):
    a, b, c = chain
    category_service.create_category(other_supplier.id, {"name": "Outro"})

    listed = category_service.list_categories(supplier.id)
    assert {category.id for category in listed} == {a.id, b.id, c.id}

    forest = category_service.get_tree(supplier.id)
    assert [node.id for node in forest] == [a.id]
    assert forest[0].subcategories[0].id == b.id
    assert forest[0].subcategories[0].subcategories[0].id == c.id


def test_tree_of_a_very_deep_branch(category_service, db_session, supplier):
    parent_id = None
    ids = []
    for level in range(2000):
        category = Category(
            id=uuid4(),
            owner_id=supplier.id,
            name=f"Nivel {level}",
            slug=f"nivel-{level}",
            parent_id=parent_id,
        )
        db_session.add(category)
        ids.append(category.id)
        parent_id = category.id
    db_session.commit()

    forest = category_service.get_tree(supplier.id)

    node = forest[0]
    walked = [node.id]
    while node.subcategories:
        node = node.subcategories[0]
        walked.append(node.id)
    assert walked == ids
    assert category_service.get_depth(ids[-1], supplier.id) == 1999


def test_get_path(category_service, supplier, chain):
    a, b, c = chain

    assert [item.id for item in category_service.get_path(c.id, supplier.id)] == [a.id, b.id, c.id]
    assert [item.id for item in category_service.get_path(a.id, supplier.id)] == [a.id]
    with pytest.raises(CategoryNotFoundError):
        category_service.get_path(uuid4(), supplier.id)


def test_descendants_depth_and_children(category_service, supplier, chain):
    a, b, c = chain

    assert category_service.get_descendant_ids(a.id, supplier.id) == [b.id, c.id]
    assert category_service.get_depth(c.id, supplier.id) == 2
    assert [category.id for category in category_service.list_root_categories(supplier.id)] == [a.id]
    assert [category.id for category in category_service.list_subcategories(a.id, supplier.id)] == [b.id]
    with pytest.raises(CategoryNotFoundError):
        category_service.get_depth(uuid4(), supplier.id)


def test_counts_are_computed_on_read(category_service, supplier, chain, add_product):
    a, b, c = chain
    add_product(supplier.id, c.id, "Pilsen")
    add_product(supplier.id, c.id, "Stout")

    detailed = category_service.get_category_with_counts(b.id, supplier.id)
    assert detailed.subcategory_count == 1
    assert detailed.product_count == 0
    assert detailed.parent_name == "Alimentos"

    by_id = {item.id: item for item in category_service.list_categories_with_counts(supplier.id)}
    assert by_id[c.id].product_count == 2
    assert by_id[a.id].subcategory_count == 1
    assert by_id[a.id].parent_name is None

    add_product(supplier.id, c.id, "Weiss")
    assert category_service.get_category_with_counts(c.id, supplier.id).product_count == 3


def test_update_name_regenerates_slug(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    updated = category_service.update_category(category.id, supplier.id, {"name": "Bebidas Geladas"})

    assert updated.name == "Bebidas Geladas"
    assert updated.slug == "bebidas-geladas"


def test_update_keeps_own_slug_when_renamed_to_same_base(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Eletrônicos"})

    updated = category_service.update_category(category.id, supplier.id, {"name": "ELETRONICOS"})

    assert updated.slug == "eletronicos"


def test_update_with_explicit_slug(category_service, supplier):
    category_service.create_category(supplier.id, {"name": "Sucos"})
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    updated = category_service.update_category(
        category.id, supplier.id, CategoryUpdate(name="Drinks", slug="bebidas")
    )
    assert updated.name == "Drinks"
    assert updated.slug == "bebidas"

    with pytest.raises(SlugConflictError):
        category_service.update_category(category.id, supplier.id, {"slug": "sucos"})


def test_update_without_name_keeps_slug(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    updated = category_service.update_category(category.id, supplier.id, {"description": "Geladas"})

    assert updated.slug == "bebidas"
    assert updated.description == "Geladas"


def test_update_rejects_empty_patch(category_service, supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    with pytest.raises(CategoryValidationError):
        category_service.update_category(category.id, supplier.id, {})
    with pytest.raises(CategoryValidationError):
        category_service.update_category(category.id, supplier.id, {"name": None})


def test_update_missing_category(category_service, supplier):
    with pytest.raises(CategoryNotFoundError):
        category_service.update_category(uuid4(), supplier.id, {"name": "Bebidas"})


def test_update_parent_validation(category_service, supplier, other_supplier, chain):
    a, b, c = chain
    foreign = category_service.create_category(other_supplier.id, {"name": "Outro"})

    with pytest.raises(ParentNotFoundError):
        category_service.update_category(a.id, supplier.id, {"parent_id": foreign.id})
    with pytest.raises(CycleDetectedError):
        category_service.update_category(a.id, supplier.id, {"parent_id": c.id})
    with pytest.raises(CycleDetectedError):
        category_service.update_category(b.id, supplier.id, {"parent_id": b.id})

    detached = category_service.update_category(c.id, supplier.id, {"parent_id": None})
    assert detached.parent_id is None


def test_move_under_own_descendant_is_rejected(category_service, supplier, chain):
    a, b, c = chain
    before = {category.id: category.parent_id for category in category_service.list_categories(supplier.id)}

    with pytest.raises(CycleDetectedError):
        category_service.move_category(a.id, supplier.id, c.id)

    after = {category.id: category.parent_id for category in category_service.list_categories(supplier.id)}
    assert after == before


def test_move_category(category_service, supplier, chain):
    a, b, c = chain
    other_root = category_service.create_category(supplier.id, {"name": "Limpeza"})

    moved = category_service.move_category(c.id, supplier.id, other_root.id)
    assert moved.parent_id == other_root.id
    assert category_service.get_depth(c.id, supplier.id) == 1

    to_root = category_service.move_category(b.id, supplier.id, None)
    assert to_root.parent_id is None

    # Moving to the current parent is a no-op
    assert category_service.move_category(c.id, supplier.id, other_root.id).parent_id == other_root.id


def test_move_to_missing_parent(category_service, supplier, chain):
    a, b, c = chain
    with pytest.raises(ParentNotFoundError):
        category_service.move_category(c.id, supplier.id, uuid4())
    with pytest.raises(CategoryNotFoundError):
        category_service.move_category(uuid4(), supplier.id, a.id)


def test_reorder_and_soft_disable(category_service, supplier):
    first = category_service.create_category(supplier.id, {"name": "Zebra"})
    second = category_service.create_category(supplier.id, {"name": "Abacate"})

    category_service.reorder_category(first.id, supplier.id, 0)
    category_service.reorder_category(second.id, supplier.id, 5)
    assert [node.name for node in category_service.get_tree(supplier.id)] == ["Zebra", "Abacate"]

    with pytest.raises(CategoryValidationError):
        category_service.reorder_category(first.id, supplier.id, -2)

    disabled = category_service.deactivate_category(first.id, supplier.id)
    assert disabled.active is False
    # Inactive categories keep their place in the tree
    assert [node.name for node in category_service.get_tree(supplier.id)] == ["Zebra", "Abacate"]
    assert category_service.activate_category(first.id, supplier.id).active is True


def test_delete_leaf(category_service, supplier, chain):
    a, b, c = chain

    category_service.delete_category(c.id, supplier.id)

    with pytest.raises(CategoryNotFoundError):
        category_service.get_category(c.id, supplier.id)


def test_delete_blocked_by_subcategories(category_service, supplier, chain):
    a, b, c = chain

    with pytest.raises(HasDependentsError) as exc_info:
        category_service.delete_category(b.id, supplier.id)

    assert exc_info.value.subcategories == 1
    assert exc_info.value.products == 0
    assert exc_info.value.to_dict()["subcategories"] == 1
    assert category_service.get_category(b.id, supplier.id).id == b.id


def test_delete_blocked_by_products(category_service, supplier, chain, add_product):
    a, b, c = chain
    add_product(supplier.id, c.id)

    with pytest.raises(HasDependentsError) as exc_info:
        category_service.delete_category(c.id, supplier.id)

    assert exc_info.value.products == 1
    assert exc_info.value.subcategories == 0


def test_forced_delete_removes_subtree_and_detaches_products(
    category_service, supplier, chain, add_product, db_session
):
    a, b, c = chain
    product = add_product(supplier.id, c.id)
    sibling = category_service.create_category(supplier.id, {"name": "Doces", "parent_id": a.id})

    category_service.delete_category(b.id, supplier.id, force=True)

    remaining = {category.id for category in category_service.list_categories(supplier.id)}
    assert remaining == {a.id, sibling.id}

    db_session.expire_all()
    assert db_session.get(Product, product.id).category_id is None


def test_delete_is_tenant_scoped(category_service, supplier, other_supplier):
    category = category_service.create_category(supplier.id, {"name": "Bebidas"})

    with pytest.raises(CategoryNotFoundError):
        category_service.delete_category(category.id, other_supplier.id)
    assert category_service.get_category(category.id, supplier.id)


def test_operations_survive_stored_cycle(category_service, supplier, raw_category, db_session):
    """Corrupt data written outside the service never makes reads loop."""
    x = raw_category(supplier.id, "X", "x")
    y = raw_category(supplier.id, "Y", "y", parent_id=x.id)
    x.parent_id = y.id
    db_session.commit()

    report = category_service.check_integrity(supplier.id)
    assert not report.ok
    assert [set(cycle) for cycle in report.cycles] == [{x.id, y.id}]

    assert category_service.get_tree(supplier.id) == []
    assert len(category_service.get_path(y.id, supplier.id)) == 2

    z = category_service.create_category(supplier.id, {"name": "Z"})
    with pytest.raises(CycleDetectedError):
        category_service.move_category(z.id, supplier.id, x.id)


def test_check_integrity_on_clean_tree(category_service, supplier, chain):
    report = category_service.check_integrity(supplier.id)

    assert report.ok
    assert report.total == 3
