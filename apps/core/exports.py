"""
Tabular export helpers built on django-import-export.
"""

from typing import Any, Dict, List, Optional, Sequence

from import_export import resources
from tablib import Dataset


def _cell(value):
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(_cell(item)) for item in value)
    if isinstance(value, dict):
        return value.get("name") or value.get("id") or ""
    return value


class RecordResource(resources.Resource):
    """
    Resource over already serialized records instead of a queryset.
    """

    def __init__(
        self, records: List[Dict[str, Any]], fields: Optional[Sequence[str]] = None, **kwargs
    ):
        super().__init__(**kwargs)
        self.records = records
        self.field_names = list(fields) if fields else (list(records[0].keys()) if records else [])
        for name in self.field_names:
            self.fields[name] = resources.Field(attribute=name, column_name=name)

    def get_queryset(self):
        return []

    def export(self, queryset=None, *args, **kwargs):
        """Export the records as a Dataset."""
        dataset = Dataset(headers=self.field_names)
        for record in self.records:
            dataset.append([_cell(record.get(name)) for name in self.field_names])
        return dataset


def records_to_dataset(records, fields=None) -> Dataset:
    return RecordResource(records, fields).export()


def rows_to_dataset(
    headers: Sequence[str], rows: Sequence[Sequence[Any]], title=None
) -> Dataset:
    """Dataset with explicit column headers, used by the report exports."""
    dataset = Dataset(headers=list(headers), title=title)
    for row in rows:
        dataset.append([_cell(value) for value in row])
    return dataset
