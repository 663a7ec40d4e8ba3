"""
Generic entity management for the admin resource screens.

Every resource list works the same way: fetch the organization's records,
keep those matching a free-text search and a status filter, sort on one
column, then cut out one page. The pure functions below do the list
processing; ``EntityViewSet`` wires them into a DRF view set together with
the add/edit/delete responses the admin screens expect.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import ProtectedError
from django.http import HttpResponse, HttpResponseBase
from django.urls import path
from django.utils.text import capfirst

from rest_framework import serializers, status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exports import records_to_dataset
from apps.core.permissions import HasModulePermission, HasOrganizationAccess

logger = logging.getLogger(__name__)

ASC = "asc"
DESC = "desc"

STATUS_ALL = "all"
DEFAULT_STATUS_OPTIONS = ["all", "active", "pending", "inactive"]

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class SortConfig:
    """Active sort column and direction."""

    key: str = "name"
    direction: str = ASC

    def toggle(self, key: str) -> "SortConfig":
        """
        Sort config after a click on column ``key``.

        Clicking the active ascending column flips it to descending; any
        other click sorts ascending on the clicked column.
        """
        if self.key == key and self.direction == ASC:
            return SortConfig(key, DESC)
        return SortConfig(key, ASC)

    def as_dict(self) -> Dict[str, str]:
        return {"key": self.key, "direction": self.direction}


@dataclass(frozen=True)
class EntityQuery:
    """List parameters as sent by the resource screens."""

    search: str = ""
    status: str = STATUS_ALL
    sort: SortConfig = field(default_factory=SortConfig)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_params(cls, params, default_sort: Optional[SortConfig] = None) -> "EntityQuery":
        """
        Build a query from request query parameters.

        Unparseable numbers fall back to the defaults; the page is at least 1
        and the page size is kept within 1..100.
        """
        default_sort = default_sort or SortConfig()
        sort_key = params.get("sort") or default_sort.key
        direction = (params.get("direction") or "").lower()
        if direction not in (ASC, DESC):
            direction = default_sort.direction if sort_key == default_sort.key else ASC

        page = _to_int(params.get("page"), 1)
        page_size = _to_int(params.get("page_size"), DEFAULT_PAGE_SIZE)

        return cls(
            search=(params.get("search") or "").strip(),
            status=(params.get("status") or STATUS_ALL).strip() or STATUS_ALL,
            sort=SortConfig(sort_key, direction),
            page=max(1, page),
            page_size=max(1, min(page_size, MAX_PAGE_SIZE)),
        )


@dataclass
class EntityPage:
    """One page of processed records plus the metadata the list view returns."""

    results: List[Dict[str, Any]]
    total_items: int
    total_pages: int
    page: int
    page_size: int
    sort: SortConfig

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def pagination(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "per_page": self.page_size,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
            "next_page": self.page + 1 if self.has_next else None,
            "previous_page": self.page - 1 if self.has_previous else None,
        }


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _flatten_values(value) -> Iterable[Any]:
    if isinstance(value, dict):
        for item in value.values():
            yield from _flatten_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _flatten_values(item)
    else:
        yield value


def matches_search(record: Dict[str, Any], search: str) -> bool:
    """True when any field value of ``record`` contains ``search``, ignoring case."""
    needle = search.lower()
    for value in _flatten_values(record):
        if value is None:
            continue
        if needle in str(value).lower():
            return True
    return False


def filter_entities(
    records: List[Dict[str, Any]], search: str = "", status: str = STATUS_ALL
) -> List[Dict[str, Any]]:
    """
    Records matching the status filter and the free-text search.

    Returns a new list; the records themselves are not touched.
    """
    filtered = list(records)
    if status and status != STATUS_ALL:
        filtered = [record for record in filtered if record.get("status") == status]
    if search:
        filtered = [record for record in filtered if matches_search(record, search)]
    return filtered


def _as_number(value) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            number = Decimal(value)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def sort_entities(records: List[Dict[str, Any]], sort: SortConfig) -> List[Dict[str, Any]]:
    """
    Stable sort on ``sort.key``.

    Missing and null values come first when ascending. When every present
    value is numeric (DRF renders decimals as strings) the column sorts
    numerically, otherwise values compare as case-insensitive text.
    """
    values = [record.get(sort.key) for record in records]
    present = [value for value in values if value is not None]
    numeric = bool(present) and all(_as_number(value) is not None for value in present)

    def sort_key(record):
        value = record.get(sort.key)
        if value is None:
            return (0, 0)
        if numeric:
            return (1, _as_number(value))
        return (1, str(value).casefold())

    return sorted(records, key=sort_key, reverse=sort.direction == DESC)


def paginate_entities(
    records: List[Dict[str, Any]], page: int, page_size: int
) -> List[Dict[str, Any]]:
    """Slice out one page; pages past the end are empty."""
    start = (page - 1) * page_size
    return records[start : start + page_size]


def process_entities(records: List[Dict[str, Any]], query: EntityQuery) -> EntityPage:
    """Filter, sort and paginate ``records`` according to ``query``."""
    filtered = filter_entities(records, query.search, query.status)
    ordered = sort_entities(filtered, query.sort)
    total_items = len(ordered)
    return EntityPage(
        results=paginate_entities(ordered, query.page, query.page_size),
        total_items=total_items,
        total_pages=math.ceil(total_items / query.page_size),
        page=query.page,
        page_size=query.page_size,
        sort=query.sort,
    )


class EntityViewSet(viewsets.ModelViewSet):
    """
    Base view set for the admin resource screens.

    Subclasses set ``queryset``, ``serializer_class``, the entity names and
    ``required_permissions``. The list action returns every matching record
    processed by ``process_entities``; ``?export=csv`` downloads them.
    """

    entity_name = "record"
    entity_name_plural = "records"
    sortable_fields = ("name",)
    default_sort = SortConfig("name", ASC)
    status_options = DEFAULT_STATUS_OPTIONS
    csv_fields = None

    permission_classes = [IsAuthenticated, HasOrganizationAccess, HasModulePermission]
    pagination_class = None

    # Querysets

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if user.is_platform_admin():
            return queryset
        if hasattr(queryset.model, "organization"):
            return queryset.filter(organization_id=user.organization_id)
        return queryset.none()

    def get_write_organization(self):
        """
        Organization new records are saved under.

        Platform admins have no organization of their own and must name one.
        """
        from apps.core.models import Organization

        user = self.request.user
        if user.organization_id:
            return user.organization
        organization_id = self.request.data.get("organization")
        organization = (
            Organization.objects.filter(pk=organization_id).first() if organization_id else None
        )
        if organization is None:
            raise serializers.ValidationError({"organization": ["This field is required."]})
        return organization

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request is not None and self.request.user.is_authenticated:
            context["organization"] = self.request.user.organization
        return context

    # List

    def get_entity_query(self) -> EntityQuery:
        query = EntityQuery.from_params(self.request.query_params, self.default_sort)
        if query.sort.key not in self.sortable_fields:
            query = EntityQuery(
                search=query.search,
                status=query.status,
                sort=self.default_sort,
                page=query.page,
                page_size=query.page_size,
            )
        return query

    def fetch_records(self) -> List[Dict[str, Any]]:
        queryset = self.filter_queryset(self.get_queryset())
        return list(self.get_serializer(queryset, many=True).data)

    def list(self, request, *args, **kwargs):
        query = self.get_entity_query()
        records = self.fetch_records()

        if request.query_params.get("export") == "csv":
            return self.export_csv(records, query)

        entity_page = process_entities(records, query)
        return Response(
            {
                "results": entity_page.results,
                "pagination": entity_page.pagination(),
                "sort": {
                    **query.sort.as_dict(),
                    "columns": {
                        column: query.sort.toggle(column).direction
                        for column in self.sortable_fields
                    },
                },
                "filters": {
                    "search": query.search,
                    "status": query.status,
                    "status_options": self.status_options,
                },
            }
        )

    def export_csv(self, records, query: EntityQuery) -> HttpResponseBase:
        ordered = sort_entities(filter_entities(records, query.search, query.status), query.sort)
        dataset = records_to_dataset(ordered, self.csv_fields)
        response = HttpResponse(dataset.export("csv"), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{self.entity_name_plural}.csv"'
        logger.info(
            "Exported %s %s for user %s", len(ordered), self.entity_name_plural, self.request.user
        )
        return response

    # Mutations

    def failure_response(self, verb, errors=None):
        payload = {"detail": f"Failed to {verb} {self.entity_name}"}
        if isinstance(errors, dict):
            payload.update(errors)
        elif errors:
            payload["errors"] = errors
        return Response(payload, status=status.HTTP_400_BAD_REQUEST)

    @staticmethod
    def _error_detail(exc):
        if isinstance(exc, serializers.ValidationError):
            return exc.detail
        if isinstance(exc, DjangoValidationError):
            return exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return [str(exc)]

    def perform_create(self, serializer):
        model = serializer.Meta.model
        if hasattr(model, "organization") and "organization" not in serializer.validated_data:
            serializer.save(organization=self.get_write_organization())
        else:
            serializer.save()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
            self.perform_create(serializer)
        except (serializers.ValidationError, DjangoValidationError, ValueError) as exc:
            logger.warning("Failed to add %s: %s", self.entity_name, exc)
            return self.failure_response("add", self._error_detail(exc))

        logger.info(
            "%s %s added by %s", capfirst(self.entity_name), serializer.instance.pk, request.user
        )
        return Response(
            {"detail": f"{capfirst(self.entity_name)} added successfully", "data": serializer.data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        try:
            serializer.is_valid(raise_exception=True)
            self.perform_update(serializer)
        except (serializers.ValidationError, DjangoValidationError, ValueError) as exc:
            logger.warning("Failed to update %s %s: %s", self.entity_name, instance.pk, exc)
            return self.failure_response("update", self._error_detail(exc))

        logger.info("%s %s updated by %s", capfirst(self.entity_name), instance.pk, request.user)
        return Response({"detail": "Changes saved successfully", "data": serializer.data})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        pk = instance.pk
        try:
            self.perform_destroy(instance)
        except (ProtectedError, DjangoValidationError, ValueError) as exc:
            logger.warning("Failed to delete %s %s: %s", self.entity_name, pk, exc)
            return self.failure_response(
                "delete", ["This record is referenced by other records and cannot be deleted."]
                if isinstance(exc, ProtectedError)
                else self._error_detail(exc),
            )

        logger.info("%s %s removed by %s", capfirst(self.entity_name), pk, request.user)
        return Response({"detail": f"{capfirst(self.entity_name)} removed successfully"})


LIST_ACTIONS = {"get": "list", "post": "create"}
DETAIL_ACTIONS = {
    "get": "retrieve",
    "put": "update",
    "patch": "partial_update",
    "delete": "destroy",
}


def entity_urlpatterns(prefix, viewset, name, pk_type="uuid"):
    """
    List and detail routes for an entity view set.

    ``entity_urlpatterns("api/branches/", BranchViewSet, "branch")`` gives
    ``branch-list`` and ``branch-detail``.
    """
    return [
        path(prefix, viewset.as_view(LIST_ACTIONS), name=f"{name}-list"),
        path(f"{prefix}<{pk_type}:pk>/", viewset.as_view(DETAIL_ACTIONS), name=f"{name}-detail"),
    ]
