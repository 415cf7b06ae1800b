"""
Tests for the Products API

Catalog visibility, pagination, related products and management
permissions.

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (storefront catalog)
"""
import io

import pandas as pd
import pytest

from markettech.models import Product


class TestPublicCatalog:
    """Tests for GET /api/v1/products"""

    def test_public_listing_only_shows_active(self, client, make_product):
        # Arrange
        make_product(title="Ativo")
        make_product(title="Inativo", status="INACTIVE")
        make_product(title="Vendido", status="SOLD")

        # Act
        response = client.get("/api/v1/products")

        # Assert
        assert response.status_code == 200
        titles = [p["title"] for p in response.json()["products"]]
        assert titles == ["Ativo"]

    def test_public_listing_ignores_status_filter(self, client, make_product):
        make_product(title="Inativo", status="INACTIVE")

        response = client.get("/api/v1/products?status=INACTIVE")

        assert response.json()["products"] == []

    def test_pagination_math(self, client, make_product):
        for _ in range(5):
            make_product()

        response = client.get("/api/v1/products?page=2&limit=2")

        data = response.json()
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}
        assert len(data["products"]) == 2

    def test_product_includes_images_owner_and_discount(self, client, make_product, seller_user):
        make_product(title="Promo", price=75, previous_price=100, images=["a.jpg", "b.jpg"])

        product = client.get("/api/v1/products").json()["products"][0]

        assert [image["path"] for image in product["images"]] == ["a.jpg", "b.jpg"]
        assert product["user"] == {"id": seller_user.id, "name": "Equipe de Vendas", "email": "vendas@markettech.com"}
        assert product["discountPercentage"] == 25
        assert product["hasDiscount"] is True
        assert product["priceChange"] == {"type": "discount", "percentage": 25}

    def test_filters(self, client, make_product):
        make_product(title="iPhone 15", condition="NEW", categories="Smartphones,Apple")
        make_product(title="Galaxy S24", condition="USED", categories="Smartphones,Samsung", manufacturer="Samsung")
        make_product(title="MacBook", condition="USED", categories="Notebooks")

        used = client.get("/api/v1/products?condition=USED").json()["products"]
        phones = client.get("/api/v1/products?category=Smartphones").json()["products"]
        search = client.get("/api/v1/products?search=macbook").json()["products"]
        samsung = client.get("/api/v1/products?manufacturer=samsung").json()["products"]

        assert {p["title"] for p in used} == {"Galaxy S24", "MacBook"}
        assert {p["title"] for p in phones} == {"iPhone 15", "Galaxy S24"}
        assert [p["title"] for p in search] == ["MacBook"]
        assert [p["title"] for p in samsung] == ["Galaxy S24"]

    def test_admin_listing_requires_token(self, client):
        response = client.get("/api/v1/products?admin=true")

        assert response.status_code == 401

    def test_admin_listing_forbidden_for_client(self, client, client_headers):
        response = client.get("/api/v1/products?admin=true", headers=client_headers)

        assert response.status_code == 403

    def test_admin_sees_all_statuses(self, client, make_product, admin_headers):
        make_product(status="ACTIVE")
        make_product(status="INACTIVE")

        response = client.get("/api/v1/products?admin=true", headers=admin_headers)

        assert response.json()["pagination"]["total"] == 2

    def test_sales_admin_sees_only_own_products(self, client, make_product, seller_headers, other_seller):
        make_product(title="Meu")
        make_product(title="Dele", user_id=other_seller.id)

        response = client.get("/api/v1/products?admin=true", headers=seller_headers)

        assert [p["title"] for p in response.json()["products"]] == ["Meu"]

    def test_manufacturers(self, client, make_product):
        make_product(manufacturer="Apple", model="iPhone 15")
        make_product(manufacturer="Samsung", model="Galaxy S24")
        make_product(manufacturer="Apple", model="iPad")

        data = client.get("/api/v1/products/manufacturers").json()

        assert data["manufacturers"] == ["Apple", "Samsung"]
        assert data["models"] == ["Galaxy S24", "iPad", "iPhone 15"]


class TestProductDetail:
    """Tests for GET /api/v1/products/{id}"""

    def test_get_active_product(self, client, make_product):
        product = make_product(title="Detalhe")

        response = client.get(f"/api/v1/products/{product.id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Detalhe"

    def test_inactive_product_hidden_from_anonymous(self, client, make_product, client_headers):
        product = make_product(status="INACTIVE")

        anonymous = client.get(f"/api/v1/products/{product.id}")
        authenticated = client.get(f"/api/v1/products/{product.id}", headers=client_headers)

        assert anonymous.status_code == 404
        assert authenticated.status_code == 200

    def test_missing_product(self, client):
        response = client.get("/api/v1/products/9999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Product not found"


class TestRelatedProducts:
    """Tests for GET /api/v1/products/related"""

    def test_requires_product_id(self, client):
        response = client.get("/api/v1/products/related")

        assert response.status_code == 400
        assert response.json()["detail"] == "productId es requerido"

    def test_ranking_by_categories_manufacturer_and_price(self, client, make_product):
        # Arrange
        base = make_product(title="Base", categories="Smartphones,Apple", manufacturer="Apple", price=1000)
        make_product(title="Duas categorias", categories="Smartphones,Apple", manufacturer="Apple", price=1000)
        make_product(title="Uma categoria", categories="Smartphones", manufacturer="Samsung", price=1000)
        make_product(title="So fabricante", categories="Audio", manufacturer="Apple", price=1000)
        make_product(title="Inativo", categories="Smartphones,Apple", status="INACTIVE")
        make_product(title="Sem relacao", categories="Games", manufacturer="Sony")

        # Act
        response = client.get(f"/api/v1/products/related?productId={base.id}")

        # Assert
        assert response.status_code == 200
        data = response.json()
        titles = [p["title"] for p in data["relatedProducts"]]
        assert titles == ["Duas categorias", "Uma categoria", "So fabricante"]
        assert data["relatedProducts"][0]["score"] == 6.0
        assert data["total"] == 3

    def test_related_for_missing_product(self, client):
        response = client.get("/api/v1/products/related?productId=9999")

        assert response.status_code == 404


class TestProductManagement:
    """Tests for POST/PUT/DELETE /api/v1/products"""

    def test_create_requires_admin_role(self, client, client_headers):
        response = client.post("/api/v1/products", headers=client_headers, json={"title": "X", "price": 10})

        assert response.status_code == 403

    def test_create_product(self, client, seller_headers, seller_user):
        # Arrange
        body = {
            "title": "  Pixel 8  ",
            "price": 800,
            "supplierPrice": 600,
            "stock": 3,
            "categories": "Smartphones,Google",
            "images": [{"path": "products/pixel.jpg"}, {"path": "products/pixel-2.jpg", "alt": "Traseira"}],
        }

        # Act
        response = client.post("/api/v1/products", headers=seller_headers, json=body)

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Pixel 8"
        assert data["userId"] == seller_user.id
        assert data["manufacturerCode"].startswith("AUTO-")
        assert data["publishedAt"] is not None
        assert [image["filename"] for image in data["images"]] == ["pixel.jpg", "pixel-2.jpg"]
        assert data["images"][1]["alt"] == "Traseira"

    def test_create_validation_errors(self, client, admin_headers):
        no_title = client.post("/api/v1/products", headers=admin_headers, json={"price": 10})
        zero_price = client.post("/api/v1/products", headers=admin_headers, json={"title": "X", "price": 0})
        bad_cost = client.post("/api/v1/products", headers=admin_headers, json={"title": "X", "price": 10, "supplierPrice": 10})

        assert no_title.json()["detail"] == "El título es requerido"
        assert zero_price.json()["detail"] == "El precio debe ser mayor que 0"
        assert bad_cost.json()["detail"] == "El precio del proveedor debe ser menor que el precio de venta"
        assert {r.status_code for r in (no_title, zero_price, bad_cost)} == {400}

    def test_create_too_many_images(self, client, admin_headers):
        images = [{"path": f"img-{i}.jpg"} for i in range(6)]

        response = client.post("/api/v1/products", headers=admin_headers, json={"title": "X", "price": 10, "images": images})

        assert response.status_code == 400

    def test_create_duplicate_manufacturer_code(self, client, admin_headers, make_product):
        make_product(manufacturer_code="DUP-1")

        response = client.post(
            "/api/v1/products", headers=admin_headers,
            json={"title": "X", "price": 10, "manufacturerCode": "DUP-1"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "El código de fabricante ya existe"

    def test_create_invalidates_public_listing_cache(self, client, admin_headers):
        assert client.get("/api/v1/products").json()["pagination"]["total"] == 0

        client.post("/api/v1/products", headers=admin_headers, json={"title": "Novo", "price": 50})

        assert client.get("/api/v1/products").json()["pagination"]["total"] == 1

    def test_sales_admin_cannot_edit_foreign_product(self, client, make_product, seller_headers, other_seller):
        product = make_product(user_id=other_seller.id)

        response = client.put(f"/api/v1/products/{product.id}", headers=seller_headers, json={"price": 5})

        assert response.status_code == 403
        assert response.json()["detail"] == "No tienes permisos para editar este producto"

    def test_update_replaces_image_list(self, client, make_product, seller_headers):
        product = make_product(images=["keep.jpg", "drop.jpg"])

        response = client.put(
            f"/api/v1/products/{product.id}",
            headers=seller_headers,
            json={"title": "Renomeado", "images": ["new.jpg", "keep.jpg"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renomeado"
        assert [image["path"] for image in data["images"]] == ["new.jpg", "keep.jpg"]

    def test_update_validates_against_current_price(self, client, make_product, admin_headers):
        product = make_product(price=100)

        response = client.put(f"/api/v1/products/{product.id}", headers=admin_headers, json={"supplierPrice": 150})

        assert response.status_code == 400

    def test_client_cannot_delete(self, client, make_product, client_headers):
        product = make_product()

        response = client.delete(f"/api/v1/products/{product.id}", headers=client_headers)

        assert response.status_code == 403

    def test_admin_deletes_any_product(self, client, make_product, admin_headers, admin_user, db_session):
        product = make_product()

        response = client.delete(f"/api/v1/products/{product.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["deletedBy"] == {"id": admin_user.id, "email": admin_user.email, "role": "ADMIN"}
        db_session.expire_all()
        assert db_session.query(Product).filter(Product.id == product.id).first() is None


class TestImportExport:
    """Tests for /api/v1/products/export and /import"""

    def test_export_requires_admin(self, client, client_headers):
        response = client.get("/api/v1/products/export", headers=client_headers)

        assert response.status_code == 403

    def test_export_xlsx(self, client, make_product, admin_headers):
        make_product(title="Exportado", price=123.45)

        response = client.get("/api/v1/products/export", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        df = pd.read_excel(io.BytesIO(response.content), sheet_name="Productos")
        assert df["title"].tolist() == ["Exportado"]
        assert df.columns[0] == "id"

    def test_import_csv_skips_invalid_and_duplicate_rows(self, client, make_product, seller_headers, db_session):
        # Arrange
        make_product(manufacturer_code="EXISTE-1")
        csv = (
            "title,price,stock,manufacturerCode,condition\n"
            "Importado A,100,5,IMP-A,NEW\n"
            ",50,1,IMP-B,NEW\n"
            "Importado C,0,1,IMP-C,USED\n"
            "Duplicado,80,1,EXISTE-1,NEW\n"
            "Importado E,80,2,IMP-A,NEW\n"
        )

        # Act
        response = client.post(
            "/api/v1/products/import",
            headers=seller_headers,
            files={"file": ("productos.csv", csv.encode("utf-8"), "text/csv")},
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["importedCount"] == 1
        assert data["skippedCount"] == 4
        assert data["totalCount"] == 5
        assert [entry["row"] for entry in data["skipped"]] == [3, 4, 5, 6]

        assert db_session.query(Product).filter(Product.manufacturer_code == "IMP-A").count() == 1

    def test_import_rejects_other_file_types(self, client, admin_headers):
        response = client.post(
            "/api/v1/products/import",
            headers=admin_headers,
            files={"file": ("productos.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    def test_import_missing_required_columns(self, client, admin_headers):
        response = client.post(
            "/api/v1/products/import",
            headers=admin_headers,
            files={"file": ("productos.csv", b"title,stock\nSem preco,1\n", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_REQUIRED_FIELD"


class TestSearchSuggestions:

    @pytest.fixture
    def catalog(self, make_product):
        make_product(title="iPhone 15 Pro", categories="Smartphones,Apple Store", images=["products/iphone.jpg"])
        make_product(title="iPad Air", categories="Tablets")
        make_product(title="Galaxy S24", categories="Smartphones", manufacturer="Samsung")
        make_product(title="iPhone 11", status="INACTIVE")

    def test_short_query_returns_nothing(self, client, catalog):
        response = client.get("/api/v1/search/suggestions?q=i")

        assert response.status_code == 200
        assert response.json() == {"suggestions": [], "categories": [], "manufacturers": [], "query": "i"}

    def test_matches_active_products_by_title(self, client, catalog):
        data = client.get("/api/v1/search/suggestions?q=ip").json()

        assert [s["title"] for s in data["suggestions"]] == ["iPad Air", "iPhone 15 Pro"]
        assert data["suggestions"][1]["image"] == {"path": "products/iphone.jpg", "alt": None}
        assert data["suggestions"][1]["categories"] == ["Smartphones", "Apple Store"]
        assert data["categories"] == []
        assert data["manufacturers"] == []

    def test_categories_and_manufacturers(self, client, catalog):
        by_manufacturer = client.get("/api/v1/search/suggestions?q=apple").json()
        by_category = client.get("/api/v1/search/suggestions", params={"q": "  Ph "}).json()

        assert [s["title"] for s in by_manufacturer["suggestions"]] == ["iPad Air", "iPhone 15 Pro"]
        assert by_manufacturer["categories"] == ["Apple Store"]
        assert by_manufacturer["manufacturers"] == ["Apple"]
        assert [s["title"] for s in by_category["suggestions"]] == ["Galaxy S24", "iPhone 15 Pro"]
        assert by_category["categories"] == ["Smartphones"]
        assert by_category["query"] == "Ph"

    def test_limit(self, client, catalog):
        data = client.get("/api/v1/search/suggestions?q=apple&limit=1").json()

        assert len(data["suggestions"]) == 1

    def test_product_changes_refresh_suggestions(self, client, admin_headers, catalog):
        galaxy = client.get("/api/v1/search/suggestions?q=galaxy").json()["suggestions"][0]

        client.delete(f"/api/v1/products/{galaxy['id']}", headers=admin_headers)
        data = client.get("/api/v1/search/suggestions?q=galaxy").json()

        assert data["suggestions"] == []
