import math

ELLIPSIS = "..."


def calculate_total_pages(total_items: int, items_per_page: int) -> int:
    if items_per_page <= 0:
        return 0
    return math.ceil(total_items / items_per_page)


def get_page_range(current_page: int, items_per_page: int) -> tuple[int, int]:
    """Return ``(start, end)`` slice indices for *current_page* (1-based)."""
    start = (current_page - 1) * items_per_page
    return start, start + items_per_page


def normalize_page(page: int, total_pages: int) -> int:
    if page < 1:
        return 1
    if page > total_pages:
        return max(total_pages, 1)
    return int(page)


def get_pagination_info(current_page: int, items_per_page: int, total_items: int) -> str:
    if total_items <= 0:
        return "Showing 0 to 0 of 0 items"
    start = (current_page - 1) * items_per_page + 1
    end = min(current_page * items_per_page, total_items)
    return f"Showing {start} to {end} of {total_items} items"


def get_visible_pages(current_page: int, total_pages: int, visible_count: int = 5) -> list[int | str]:
    """Page numbers to render around *current_page*.

    The first and last page are always included once the window does not
    cover them, with ``"..."`` marking skipped ranges.
    """
    if total_pages <= visible_count:
        return list(range(1, total_pages + 1))

    half = visible_count // 2
    start = max(1, current_page - half)
    end = min(total_pages, start + visible_count - 1)
    if end == total_pages:
        start = max(1, total_pages - visible_count + 1)

    pages: list[int | str] = []
    if start > 1:
        pages.append(1)
        if start > 2:
            pages.append(ELLIPSIS)

    for page in range(start, end + 1):
        if page not in pages:
            pages.append(page)

    if end < total_pages:
        if end < total_pages - 1:
            pages.append(ELLIPSIS)
        if total_pages not in pages:
            pages.append(total_pages)

    return pages
