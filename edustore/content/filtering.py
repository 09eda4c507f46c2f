"""Content visibility filter.

Pure functions turning a resolved ContentTree into what one caller may
see. Entitled callers get the full tree. Everyone else keeps the whole
category/subcategory skeleton but only free and preview leaves; each node
reports how many leaves it hides so clients can render locked
placeholders.
"""

from edustore.catalog.models import Category, ContentTree, Leaf, Subcategory

from .schemas import (
    AccessType,
    FilteredCategory,
    FilteredLeaf,
    FilteredSubcategory,
    FilteredTree,
)


def filter_leaf(leaf: Leaf, entitled: bool) -> FilteredLeaf | None:
    """Project one leaf, None when it is hidden."""
    if entitled or leaf.is_free:
        payload, preview_payload = leaf.payload, leaf.preview_payload
    elif leaf.is_preview:
        payload, preview_payload = None, leaf.preview_payload
    else:
        return None

    return FilteredLeaf(
        id=leaf.leaf_id,
        kind=leaf.kind,
        title=leaf.title,
        position=leaf.position,
        is_free=leaf.is_free,
        is_preview=leaf.is_preview,
        payload=payload,
        preview_payload=preview_payload,
    )


def _filter_leaves(
    leaves: list[Leaf | None], entitled: bool
) -> tuple[list[FilteredLeaf], int, int]:
    """Filter a leaf list.

    Returns:
        Tuple of (visible leaves, hidden count, resolved leaf count)
    """
    visible: list[FilteredLeaf] = []
    hidden = 0
    total = 0
    for leaf in leaves:
        if leaf is None:
            continue
        total += 1
        projected = filter_leaf(leaf, entitled)
        if projected is None:
            hidden += 1
        else:
            visible.append(projected)
    return visible, hidden, total


def _filter_subcategory(
    subcategory: Subcategory, entitled: bool
) -> tuple[FilteredSubcategory, int]:
    leaves, hidden, total = _filter_leaves(subcategory.leaves, entitled)
    return (
        FilteredSubcategory(
            name=subcategory.name,
            description=subcategory.description,
            leaves=leaves,
            hidden_count=hidden,
        ),
        total,
    )


def _filter_category(category: Category, entitled: bool) -> tuple[FilteredCategory, int]:
    leaves, hidden, total = _filter_leaves(category.leaves, entitled)

    subcategories: list[FilteredSubcategory] = []
    for subcategory in category.subcategories:
        if subcategory is None:
            continue
        filtered, sub_total = _filter_subcategory(subcategory, entitled)
        subcategories.append(filtered)
        hidden += filtered.hidden_count
        total += sub_total

    return (
        FilteredCategory(
            name=category.name,
            description=category.description,
            leaves=leaves,
            subcategories=subcategories,
            hidden_count=hidden,
        ),
        total,
    )


def filter_tree(tree: ContentTree, entitled: bool) -> FilteredTree:
    """Filter a content tree for a caller.

    Args:
        tree: Resolved tree (dangling leaves/nodes are ``None`` and skipped)
        entitled: Whether the caller holds an approved order

    Returns:
        FilteredTree with ``access_type`` full or limited
    """
    categories: list[FilteredCategory] = []
    total_leaves = 0
    total_locked = 0

    for category in tree.categories:
        if category is None:
            continue
        filtered, total = _filter_category(category, entitled)
        categories.append(filtered)
        total_leaves += total
        total_locked += filtered.hidden_count

    return FilteredTree(
        access_type=AccessType.FULL if entitled else AccessType.LIMITED,
        categories=categories,
        total_leaves=total_leaves,
        total_locked=total_locked,
    )
