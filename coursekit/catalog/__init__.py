from coursekit.catalog.models import Course
from coursekit.catalog.service import (
    CatalogService,
    CourseNotFoundError,
    facets,
    filter_courses,
)


__all__ = [
    "CatalogService",
    "Course",
    "CourseNotFoundError",
    "facets",
    "filter_courses",
]
