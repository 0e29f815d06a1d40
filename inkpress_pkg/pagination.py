from datetime import datetime

from .content import parse_date
from .models import Page, PageNumber, Pagination


def total_pages(total_posts, page_size):
    """Integer ceiling of ``total_posts / page_size``."""
    return (total_posts + page_size - 1) // page_size


def page_link(number):
    return f'/page/{number}'


def paginate_posts(posts, page_number, page_size):
    """
    Slice the date-sorted ``posts`` for listing page ``page_number`` (1-based)
    and compute its navigation.
    """
    pages = total_pages(len(posts), page_size)
    start = (page_number - 1) * page_size
    page_posts = list(posts[start:start + page_size])

    pagination = Pagination(
        current_page=page_number,
        total_pages=pages,
        prev_page=page_link(page_number - 1) if page_number > 1 else None,
        next_page=page_link(page_number + 1) if page_number < pages else None,
        page_numbers=[PageNumber(number=n, is_active=n == page_number) for n in range(1, pages + 1)],
    )
    return Page(number=page_number, posts=page_posts, pagination=pagination)


def iter_pages(posts, page_size):
    """Yield every listing page. An empty post list yields nothing."""
    for page_number in range(1, total_pages(len(posts), page_size) + 1):
        yield paginate_posts(posts, page_number, page_size)


def format_date(value):
    """Format a post date for display, e.g. ``January 05, 2024``."""
    parsed = parse_date(value)
    if parsed == datetime.min:
        return str(value or '')
    return parsed.strftime('%B %d, %Y')
