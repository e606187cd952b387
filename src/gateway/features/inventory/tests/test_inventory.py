import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_inventory_requires_a_token(client: AsyncClient):
    response = await client.get("/api/inventario")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_inventory_summary_covers_every_row(user_client: AsyncClient):
    response = await user_client.get("/api/inventario", params={"limit": 2})
    assert response.status_code == status.HTTP_200_OK, response.text
    data = response.json()

    assert data["success"] is True
    assert data["total"] == 5
    assert data["totalPages"] == 3
    assert data["hasNext"] is True
    assert data["hasPrev"] is False
    assert data["prev"] is None
    assert len(data["data"]) == 2
    assert data["summary"] == {
        "total_existencia": 20,
        "total_valor": 29520000,
        "total_productos": 3,
        "total_bodegas": 3,
    }


@pytest.mark.asyncio
async def test_inventory_filtered_by_city(user_client: AsyncClient):
    response = await user_client.get("/api/inventario", params={"ciudad": "AGUACHICA", "limit": 1})
    data = response.json()

    assert data["total"] == 2
    assert data["filters"] == {"ciudad": "AGUACHICA", "empresa": None, "nom_gru": None}
    assert data["summary"]["total_existencia"] == 12
    assert data["summary"]["total_productos"] == 2
    # Rows come back trimmed
    assert data["data"][0]["COD_ITEM"] == "C9"
    assert data["data"][0]["DES_MAR"] == "SHAFT"
    assert data["next"] == "http://test/api/inventario?ciudad=AGUACHICA&limit=1&page=2"

    second = await user_client.get(data["next"])
    second_data = second.json()
    assert second_data["data"][0]["COD_ITEM"] == "M1"
    assert second_data["next"] is None
    assert second_data["prev"] == "http://test/api/inventario?ciudad=AGUACHICA&limit=1&page=1"


@pytest.mark.asyncio
async def test_inventory_group_filter_ignores_padding(user_client: AsyncClient):
    response = await user_client.get("/api/inventario", params={"nom_gru": "MOTOCICLETAS"})
    data = response.json()
    assert data["total"] == 3
    assert data["summary"]["total_existencia"] == 6


@pytest.mark.asyncio
async def test_inventory_page_past_the_end(user_client: AsyncClient):
    response = await user_client.get("/api/inventario", params={"page": 9, "limit": 2})
    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data["data"] == []
    assert data["total"] == 5
    assert data["hasNext"] is False


@pytest.mark.asyncio
async def test_inventory_limit_is_clamped(user_client: AsyncClient):
    response = await user_client.get("/api/inventario", params={"limit": 50000, "page": 0})
    data = response.json()
    assert data["limit"] == 1000
    assert data["page"] == 1


@pytest.mark.asyncio
async def test_inventory_by_brand(user_client: AsyncClient):
    response = await user_client.get("/api/inventario/marcas")
    assert response.status_code == status.HTTP_200_OK, response.text
    data = response.json()

    assert data["total"] == 3
    assert data["data"] == [
        {"marca": "HONDA", "productos": 1, "existencia": 3, "valor": 15000000},
        {"marca": "SHAFT", "productos": 1, "existencia": 14, "valor": 2520000},
        {"marca": "YAMAHA", "productos": 1, "existencia": 3, "valor": 12000000},
    ]
    assert data["summary"]["total_existencia"] == 20


@pytest.mark.asyncio
async def test_inventory_by_brand_with_filter(user_client: AsyncClient):
    response = await user_client.get("/api/inventario/marcas", params={"empresa": "HKA"})
    data = response.json()
    assert [brand["marca"] for brand in data["data"]] == ["SHAFT"]
    assert data["summary"]["total_bodegas"] == 1
