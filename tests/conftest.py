from __future__ import annotations

import pytest

from fiberviability.config.settings import Settings
from fiberviability.core.geo import offset_north_m

# Query point used across tests (Praça da Sé, São Paulo).
SAO_PAULO = (-23.550520, -46.633308)


def node_at(name: str, meters_north: float, *, description: str | None = None) -> dict:
    """A dataset row placed `meters_north` meters due north of SAO_PAULO ([lng, lat] order)."""
    lat, lng = offset_north_m(SAO_PAULO[0], SAO_PAULO[1], meters_north)
    return {
        "nome": name,
        "descricao": description or f"Rua {name}",
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
    }


@pytest.fixture
def settings() -> Settings:
    # Built from model defaults so tests never depend on the developer's env or .env file.
    return Settings()
