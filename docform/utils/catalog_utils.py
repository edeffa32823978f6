import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from openpyxl import load_workbook

from docform.forms.models import FieldType, Placeholder, PlaceholderType

logger = logging.getLogger(__name__)

PLACEHOLDER_SHEET = "Placeholders"
FIELD_TYPE_SHEET = "FieldTypes"
PLACEHOLDER_TYPE_SHEET = "PlaceholderTypes"
OPTION_SEPARATOR = ";"

PathLike = Union[str, Path]


def load_rows(catalog_path: PathLike, sheet_name: str) -> List[Dict[str, Any]]:
    """
    Reads catalog rows from a JSON file or an Excel workbook.

    JSON files hold a list of objects. Workbooks hold one sheet per catalog
    with the column names in the first row.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the sheet is missing or the file type is unsupported
    """
    catalog_path = Path(catalog_path)
    if not catalog_path.exists():
        raise FileNotFoundError(f"Catalog not found at {catalog_path}")

    suffix = catalog_path.suffix.lower()
    if suffix == ".json":
        with open(catalog_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get(sheet_name, [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of records in {catalog_path}")
        return [row for row in data if isinstance(row, dict)]

    if suffix not in (".xlsx", ".xlsm"):
        raise ValueError(f"Unsupported catalog format '{suffix}' for {catalog_path}")

    wb = load_workbook(catalog_path, data_only=True, read_only=True)
    try:
        if sheet_name not in wb.sheetnames:
            raise ValueError(f"Sheet '{sheet_name}' not found in {catalog_path}")

        ws = wb[sheet_name]
        rows = []
        header: Optional[List[str]] = None
        for raw in ws.iter_rows(values_only=True):
            if header is None:
                header = [str(cell or "").strip() for cell in raw]
                continue
            # Skip empty rows
            if not any(cell not in (None, "") for cell in raw):
                continue
            rows.append({key: value for key, value in zip(header, raw) if key})
        return rows
    finally:
        wb.close()


def _split_options(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(option) for option in value]
    return [part.strip() for part in str(value).split(OPTION_SEPARATOR) if part.strip()]


def _parse_required(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "y")
    return bool(value)


def load_placeholder_catalog(catalog_path: PathLike) -> List[Placeholder]:
    """Loads the master catalog of previously registered placeholders."""
    placeholders = []
    for row in load_rows(catalog_path, PLACEHOLDER_SHEET):
        tag = str(row.get("full_tag_name") or "").strip()
        if not tag:
            continue
        placeholders.append(
            Placeholder(
                full_tag_name=tag,
                placeholder_type_id=row.get("placeholder_type_id"),
                field_type_id=row.get("field_type_id"),
                name=row.get("name") or "",
                required=_parse_required(row.get("required")),
                options=_split_options(row.get("options")),
                order=row.get("order") or 0,
            )
        )
    logger.info(f"Loaded {len(placeholders)} catalogued placeholders from {catalog_path}")
    return placeholders


def load_field_types(catalog_path: PathLike) -> List[FieldType]:
    return [
        FieldType(id=str(row["id"]), name=str(row.get("name") or ""))
        for row in load_rows(catalog_path, FIELD_TYPE_SHEET)
        if row.get("id") not in (None, "")
    ]


def load_placeholder_types(catalog_path: PathLike) -> List[PlaceholderType]:
    return [
        PlaceholderType(id=str(row["id"]), name=str(row.get("name") or ""))
        for row in load_rows(catalog_path, PLACEHOLDER_TYPE_SHEET)
        if row.get("id") not in (None, "")
    ]


class StaticCatalogSource:
    """Catalog source backed by in-memory lists."""

    def __init__(self,
                 placeholders: Iterable[Placeholder] = (),
                 placeholder_types: Iterable[PlaceholderType] = (),
                 field_types: Iterable[FieldType] = ()):
        self.placeholders = list(placeholders)
        self.placeholder_types = list(placeholder_types)
        self.field_types = list(field_types)

    async def get_placeholders(self) -> List[Placeholder]:
        return list(self.placeholders)

    async def get_placeholder_types(self) -> List[PlaceholderType]:
        return list(self.placeholder_types)

    async def get_field_types(self) -> List[FieldType]:
        return list(self.field_types)


class FileCatalogSource:
    """
    Catalog source backed by JSON or Excel files.

    Each catalog may live in its own file or share one workbook. Files are
    read in a worker thread; a catalog without a path is empty.
    """

    def __init__(self,
                 placeholders_path: Optional[PathLike] = None,
                 placeholder_types_path: Optional[PathLike] = None,
                 field_types_path: Optional[PathLike] = None):
        self.placeholders_path = placeholders_path
        self.placeholder_types_path = placeholder_types_path
        self.field_types_path = field_types_path

    async def get_placeholders(self) -> List[Placeholder]:
        if not self.placeholders_path:
            return []
        return await asyncio.to_thread(load_placeholder_catalog, self.placeholders_path)

    async def get_placeholder_types(self) -> List[PlaceholderType]:
        if not self.placeholder_types_path:
            return []
        return await asyncio.to_thread(load_placeholder_types, self.placeholder_types_path)

    async def get_field_types(self) -> List[FieldType]:
        if not self.field_types_path:
            return []
        return await asyncio.to_thread(load_field_types, self.field_types_path)
