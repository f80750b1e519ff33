from typing import Tuple

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def normalize_page(page: int, page_size: int) -> Tuple[int, int]:
    # page<1 -> 1, page_size<1 -> default, page_size>max -> max
    if page is None or page < 1:
        page = 1
    if page_size is None or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    elif page_size > MAX_PAGE_SIZE:
        page_size = MAX_PAGE_SIZE
    return page, page_size
