"""
Tests for the generic entity list processing and the entity API behaviour
shared by every resource screen.
"""

from django.urls import reverse

import pytest

from apps.core.entities import (
    ASC,
    DESC,
    EntityQuery,
    SortConfig,
    filter_entities,
    paginate_entities,
    process_entities,
    sort_entities,
)
from apps.core.models import Branch

RECORDS = [
    {"id": 1, "name": "Colombo", "status": "active", "total": "1500.00", "city": None},
    {"id": 2, "name": "kandy", "status": "inactive", "total": "200.50", "city": "Kandy"},
    {"id": 3, "name": "Galle", "status": "active", "total": "75", "city": "Galle"},
    {"id": 4, "name": "Jaffna", "status": "pending", "total": None, "city": "Jaffna"},
]


class TestEntityProcessing:
    def test_filter_by_status_and_search(self):
        assert [r["id"] for r in filter_entities(RECORDS, status="active")] == [1, 3]
        assert [r["id"] for r in filter_entities(RECORDS, search="KAN")] == [2]
        assert [r["id"] for r in filter_entities(RECORDS, search="a", status="active")] == [1, 3]

    def test_filter_all_keeps_every_record(self):
        assert len(filter_entities(RECORDS, status="all")) == len(RECORDS)

    def test_search_reaches_nested_dicts_and_lists(self):
        records = [
            {"id": 1, "supplier": {"name": "Acme"}, "tags": ["x", {"n": "Deep"}]},
            {"id": 2, "supplier": {"name": "Lanka Distributors"}, "tags": []},
        ]

        assert [r["id"] for r in filter_entities(records, search="deep")] == [1]
        assert [r["id"] for r in filter_entities(records, search="lanka")] == [2]
        assert filter_entities(records, search="missing") == []

    def test_mixed_types_compare_as_text(self):
        records = [
            {"id": 1, "code": 10},
            {"id": 2, "code": "apple"},
            {"id": 3, "code": None},
            {"id": 4, "code": "Banana"},
            {"id": 5, "code": 2},
        ]

        ordered = sort_entities(records, SortConfig("code", ASC))

        assert [r["id"] for r in ordered] == [3, 1, 5, 2, 4]

    def test_text_sort_ignores_case(self):
        ordered = sort_entities(RECORDS, SortConfig("name", ASC))
        assert [r["name"] for r in ordered] == ["Colombo", "Galle", "Jaffna", "kandy"]

    def test_numeric_strings_sort_numerically_with_nulls_first(self):
        ordered = sort_entities(RECORDS, SortConfig("total", ASC))
        assert [r["id"] for r in ordered] == [4, 3, 2, 1]
        descending = sort_entities(RECORDS, SortConfig("total", DESC))
        assert [r["id"] for r in descending] == [1, 2, 3, 4]

    def test_sort_is_stable_and_does_not_mutate(self):
        records = [{"id": i, "status": "active"} for i in range(5)]
        ordered = sort_entities(records, SortConfig("status", ASC))
        assert [r["id"] for r in ordered] == [0, 1, 2, 3, 4]
        assert ordered is not records

    def test_pages_past_the_end_are_empty(self):
        assert paginate_entities(RECORDS, 1, 3) == RECORDS[:3]
        assert paginate_entities(RECORDS, 2, 3) == RECORDS[3:]
        assert paginate_entities(RECORDS, 3, 3) == []

    def test_process_entities_pagination_metadata(self):
        query = EntityQuery(page=2, page_size=3)
        page = process_entities(RECORDS, query)
        meta = page.pagination()
        assert meta["total_items"] == 4
        assert meta["total_pages"] == 2
        assert meta["has_next"] is False
        assert meta["has_previous"] is True
        assert meta["previous_page"] == 1

    def test_empty_result_has_zero_pages(self):
        page = process_entities([], EntityQuery())
        assert page.total_pages == 0
        assert page.results == []

    def test_sort_toggle(self):
        sort = SortConfig("name", ASC)
        assert sort.toggle("name") == SortConfig("name", DESC)
        assert sort.toggle("name").toggle("name") == SortConfig("name", ASC)
        assert SortConfig("name", DESC).toggle("city") == SortConfig("city", ASC)

    def test_query_from_params_clamps_values(self):
        query = EntityQuery.from_params(
            {"page": "0", "page_size": "500", "search": "  tea ", "direction": "sideways"}
        )
        assert query.page == 1
        assert query.page_size == 100
        assert query.search == "tea"
        assert query.sort == SortConfig("name", ASC)

    def test_query_from_params_bad_numbers_fall_back(self):
        query = EntityQuery.from_params({"page": "two", "page_size": "x"})
        assert query.page == 1
        assert query.page_size == 10


@pytest.mark.django_db
class TestEntityAPI:
    """Common list and mutation behaviour, exercised through the branch screen."""

    def _make_branches(self, organization):
        organization.is_multi_branch = True
        organization.save()
        for index, city in enumerate(["Negombo", "Matara", "Badulla"]):
            Branch.objects.create(
                organization=organization,
                name=f"{city} Branch",
                code=f"B{index}",
                phone="0112345678",
                address=f"{index} Beach Road",
                city=city,
                is_active=index != 1,
            )

    def test_list_returns_results_pagination_sort_and_filters(
        self, authenticated_client, organization, branch
    ):
        self._make_branches(organization)
        response = authenticated_client.get(
            reverse("core:branch-list"), {"sort": "city", "page_size": 2}
        )

        assert response.status_code == 200
        data = response.json()
        assert [row["city"] for row in data["results"]] == ["Badulla", "Colombo"]
        assert data["pagination"]["total_items"] == 4
        assert data["pagination"]["total_pages"] == 2
        assert data["sort"]["key"] == "city"
        assert data["sort"]["columns"]["city"] == "desc"
        assert data["filters"]["status_options"] == ["all", "active", "pending", "inactive"]

    def test_status_filter_and_search(self, authenticated_client, organization, branch):
        self._make_branches(organization)
        response = authenticated_client.get(reverse("core:branch-list"), {"status": "inactive"})
        assert [row["name"] for row in response.json()["results"]] == ["Matara Branch"]

        response = authenticated_client.get(reverse("core:branch-list"), {"search": "badulla"})
        assert [row["name"] for row in response.json()["results"]] == ["Badulla Branch"]

    def test_unknown_sort_key_falls_back_to_default(self, authenticated_client, branch):
        response = authenticated_client.get(reverse("core:branch-list"), {"sort": "password"})
        assert response.json()["sort"]["key"] == "name"

    def test_csv_export(self, authenticated_client, branch):
        response = authenticated_client.get(reverse("core:branch-list"), {"export": "csv"})
        assert response.status_code == 200
        assert response["Content-Type"] == "text/csv"
        assert 'filename="branches.csv"' in response["Content-Disposition"]
        assert "Main Street" in response.content.decode()

    def test_records_of_other_organizations_are_hidden(
        self, authenticated_client, other_organization
    ):
        foreign = Branch.objects.create(
            organization=other_organization,
            name="Hill Branch",
            code="HB",
            phone="0812345678",
            address="1 Hill Road",
            city="Kandy",
        )
        response = authenticated_client.get(reverse("core:branch-list"))
        assert "Hill Branch" not in [row["name"] for row in response.json()["results"]]

        response = authenticated_client.get(reverse("core:branch-detail", args=[foreign.pk]))
        assert response.status_code == 404

    def test_failed_add_returns_message_and_field_errors(self, authenticated_client, branch):
        response = authenticated_client.post(
            reverse("core:branch-list"), {"name": "X", "code": "MS"}, format="json"
        )
        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "Failed to add branch"
        assert "name" in data
        assert "phone" in data

    def test_unauthenticated_requests_are_rejected(self, api_client):
        response = api_client.get(reverse("core:branch-list"))
        assert response.status_code == 401
