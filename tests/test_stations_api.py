"""Tests for station API endpoints."""

import uuid
from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

from subway.core.config import settings
from subway.models import Line, Station

STATIONS_URL = f"{settings.API_V1_PREFIX}/stations"


@pytest.mark.asyncio
async def test_create_station(async_client: AsyncClient) -> None:
    """Test creating a station returns 201 with the new station."""
    response = await async_client.post(STATIONS_URL, json={"name": "Gangnam"})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Gangnam"
    assert uuid.UUID(data["id"])
    assert "created_at" in data
    assert "updated_at" in data


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"name": ""}, {"name": "   "}, {}, {"name": "x" * 256}])
async def test_create_station_invalid_name(async_client: AsyncClient, payload: dict[str, str]) -> None:
    """Test that station names are required and not blank."""
    response = await async_client.post(STATIONS_URL, json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_stations(async_client: AsyncClient, stations: dict[str, Station]) -> None:
    """Test listing stations ordered by name."""
    response = await async_client.get(STATIONS_URL)

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["A", "B", "C", "D", "E"]


@pytest.mark.asyncio
async def test_list_stations_empty(async_client: AsyncClient) -> None:
    """Test listing stations when there are none."""
    response = await async_client.get(STATIONS_URL)

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_station(async_client: AsyncClient, stations: dict[str, Station]) -> None:
    """Test fetching a single station."""
    response = await async_client.get(f"{STATIONS_URL}/{stations['C'].id}")

    assert response.status_code == 200
    assert response.json()["name"] == "C"


@pytest.mark.asyncio
async def test_get_station_not_found(async_client: AsyncClient) -> None:
    """Test fetching a missing station returns 404."""
    response = await async_client.get(f"{STATIONS_URL}/{uuid.uuid4()}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_station_invalid_id(async_client: AsyncClient) -> None:
    """Test that station IDs must be UUIDs."""
    response = await async_client.get(f"{STATIONS_URL}/not-a-uuid")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_station(async_client: AsyncClient, stations: dict[str, Station]) -> None:
    """Test deleting a station returns 204 and the station is gone."""
    response = await async_client.delete(f"{STATIONS_URL}/{stations['E'].id}")

    assert response.status_code == 204
    assert (await async_client.get(f"{STATIONS_URL}/{stations['E'].id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_station_in_use(
    async_client: AsyncClient,
    stations: dict[str, Station],
    make_line: Callable[..., Awaitable[Line]],
) -> None:
    """Test that a station on a line cannot be deleted."""
    await make_line("Line 2", [(stations["A"], stations["B"], 10)])

    response = await async_client.delete(f"{STATIONS_URL}/{stations['A'].id}")

    assert response.status_code == 409
