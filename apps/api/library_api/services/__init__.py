from .pagination import build_meta, build_pagination, coerce_positive_int, paginate

__all__ = ["build_meta", "build_pagination", "coerce_positive_int", "paginate"]
