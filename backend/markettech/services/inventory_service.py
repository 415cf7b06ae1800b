"""
Service for catalog spreadsheet export and bulk import.

Export builds an .xlsx with pandas + openpyxl; import reads .xlsx/.xls/.csv
rows and creates products owned by the uploading admin.
"""
import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, ROLE_ADMIN_VENDAS
from markettech.core.cache import clear_product_cache
from markettech.core.database import utcnow
from markettech.core.errors import AppError, CommonErrors, ErrorType
from markettech.domain.base import to_float
from markettech.models import Product
from markettech.repositories.product_repository import ProductRepository
from markettech.services.product_service import generate_manufacturer_code, validate_product_fields

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".xlsx", ".xls", ".csv")

# Spreadsheet column -> Product attribute
IMPORT_COLUMNS = {
    "title": "title",
    "price": "price",
    "description": "description",
    "supplierPrice": "supplier_price",
    "previousPrice": "previous_price",
    "condition": "condition",
    "categories": "categories",
    "stock": "stock",
    "manufacturer": "manufacturer",
    "model": "model",
    "manufacturerCode": "manufacturer_code",
}

EXPORT_COLUMNS = ["id"] + list(IMPORT_COLUMNS) + ["status", "createdAt"]


def _clean(value: Any) -> Optional[Any]:
    """NaN/blank cells -> None, strings stripped"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if pd.isna(value):
        return None
    return value


def _to_number(value: Any) -> Optional[float]:
    value = _clean(value)
    if value is None:
        return None
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return None


class InventoryService:
    """Service for catalog spreadsheet operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)

    def export_products(self, user: TokenUser) -> io.BytesIO:
        """
        Build the catalog spreadsheet.

        ADMIN_VENDAS only exports the products they own.
        """
        owner_id = user.id if user.role == ROLE_ADMIN_VENDAS else None
        products = self.repo.find_for_export(owner_id)

        rows = [
            {
                "id": p.id,
                "title": p.title,
                "price": to_float(p.price),
                "description": p.description,
                "supplierPrice": to_float(p.supplier_price),
                "previousPrice": to_float(p.previous_price),
                "condition": p.condition,
                "categories": p.categories,
                "stock": p.stock,
                "manufacturer": p.manufacturer,
                "model": p.model,
                "manufacturerCode": p.manufacturer_code,
                "status": p.status,
                "createdAt": p.created_at,
            }
            for p in products
        ]
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

        excel_file = io.BytesIO()
        with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Productos")
            ws = writer.sheets["Productos"]

            header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
            header_font = Font(color="FFFFFF", bold=True, size=12)
            for cell in ws[1]:
                cell.fill = header_fill
                cell.font = header_font
                cell.alignment = Alignment(horizontal="center", vertical="center")

            for column, width in zip("ABCDEFGHIJKLMN", (8, 40, 12, 50, 14, 14, 12, 30, 10, 20, 20, 28, 12, 20)):
                ws.column_dimensions[column].width = width
            ws.freeze_panes = "A2"

        excel_file.seek(0)
        logger.info(f"Exported {len(rows)} products for user {user.id}")
        return excel_file

    def _read_file(self, file_content: bytes, filename: str) -> pd.DataFrame:
        name = (filename or "").lower()
        if not name.endswith(ALLOWED_EXTENSIONS):
            raise CommonErrors.INVALID_FILE_TYPE(list(ALLOWED_EXTENSIONS))

        try:
            if name.endswith(".csv"):
                return pd.read_csv(io.BytesIO(file_content), encoding="utf-8")
            return pd.read_excel(io.BytesIO(file_content), sheet_name=0, header=0)
        except Exception as e:
            logger.warning(f"Could not read import file {filename}: {e}")
            raise AppError(ErrorType.FILE_UPLOAD, "No se pudo leer el archivo", 400, {"error": str(e)}, "INVALID_FILE")

    def import_products(self, file_content: bytes, filename: str, user: TokenUser) -> Dict:
        """
        Create products from a spreadsheet.

        A row is skipped when its manufacturerCode already exists (in the
        database or earlier in the file) or its title/price is invalid.

        Returns:
            {importedCount, skippedCount, totalCount, skipped: [{row, reason}]}
        """
        df = self._read_file(file_content, filename)
        missing = [column for column in ("title", "price") if column not in df.columns]
        if missing:
            raise CommonErrors.MISSING_REQUIRED_FIELD(", ".join(missing))

        skipped: List[Dict] = []
        seen_codes = set()
        imported = 0
        now = utcnow()

        # Spreadsheet row numbers start at 2 (row 1 is the header)
        for index, record in enumerate(df.to_dict(orient="records"), start=2):
            values = {attr: _clean(record.get(column)) for column, attr in IMPORT_COLUMNS.items()}
            for attr in ("price", "supplier_price", "previous_price"):
                values[attr] = _to_number(values[attr])
            stock = _to_number(values["stock"])
            values["stock"] = int(stock) if stock is not None and stock >= 0 else 0
            values["condition"] = str(values["condition"]).upper() if values["condition"] else "NEW"
            for attr in ("title", "description", "categories", "manufacturer", "model"):
                if values[attr] is not None:
                    values[attr] = str(values[attr])

            try:
                validate_product_fields(
                    values["title"], values["price"], values["supplier_price"], values["condition"], None
                )
            except AppError as e:
                skipped.append({"row": index, "reason": e.message})
                continue

            code = str(values["manufacturer_code"]) if values["manufacturer_code"] else generate_manufacturer_code()
            if code in seen_codes or self.repo.find_by_manufacturer_code(code):
                skipped.append({"row": index, "reason": f"Código de fabricante duplicado: {code}"})
                continue
            seen_codes.add(code)
            values["manufacturer_code"] = code

            self.db.add(Product(
                user_id=user.id,
                status="ACTIVE",
                published_at=now,
                **values,
            ))
            imported += 1

        self.db.commit()
        if imported:
            clear_product_cache()

        logger.info(f"Import {filename}: {imported} imported, {len(skipped)} skipped (user {user.id})")
        return {
            "importedCount": imported,
            "skippedCount": len(skipped),
            "totalCount": len(df.index),
            "skipped": skipped,
        }
