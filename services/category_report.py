# services/category_report.py

from typing import Dict, List, Sequence

import schemas


def find_dangling_categories(products: Sequence[schemas.Product],
                             categories: Sequence[schemas.Category]) -> schemas.CategoryReport:
    """
    Group product ids by category labels that no longer match a category name.

    Products keep their label when a category is deleted or renamed; this only
    reports them, it never rewrites anything.
    """
    known = sorted(c.name for c in categories)
    known_set = set(known)
    dangling: Dict[str, List[schemas.ProductId]] = {}
    for product in products:
        if product.category not in known_set:
            dangling.setdefault(product.category, []).append(product.id)
    return schemas.CategoryReport(known_categories=known, dangling=dangling)
