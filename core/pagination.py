"""
Core — Pagination

@file core/pagination.py
"""

from rest_framework.pagination import PageNumberPagination

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class StandardPagination(PageNumberPagination):
    """?pagina=N&limite=M, capped at MAX_PAGE_SIZE."""

    page_size = DEFAULT_PAGE_SIZE
    page_query_param = 'pagina'
    page_size_query_param = 'limite'
    max_page_size = MAX_PAGE_SIZE
