import math

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def normalize_paging(page=None, page_size=None):
    """Clamp page to >= 1 and page_size to 1..MAX_PAGE_SIZE."""
    page = max(int(page or DEFAULT_PAGE), 1)
    page_size = int(page_size or DEFAULT_PAGE_SIZE)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    return page, page_size


def page_result(data, total, page, page_size):
    return {
        'data': data,
        'total': total,
        'page': page,
        'page_size': page_size,
        'total_pages': math.ceil(total / page_size) if total else 0
    }
