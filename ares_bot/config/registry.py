"""
Known clients, equipment and components for entity extraction.

The default table mirrors the installed base the service team handles most.
Deployments can override it with a JSON file shaped like
``{"clients": {"Name": ["alias", ...]}, "equipment": {...}, "components": {...}}``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from ares_bot.models.registry import EntityRegistry
from ares_bot.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_REGISTRY = EntityRegistry(
    clients={
        "Ares Paraguay": ("ares paraguay srl", "ares paraguay", "ares"),
        "Clínica San Roque": ("clinica san roque", "san roque"),
        "Clínica Santa Rita": ("clinica santa rita", "santa rita"),
        "Bibolini": ("bibolini", "biboliny", "bivolini"),
        "Clínica Martínez": ("clinica martinez", "martinez", "martines"),
        "Clínica Rodríguez": ("clinica rodriguez", "rodriguez", "rodrigues"),
        "Clínica González": ("clinica gonzalez", "gonzalez", "gonzales"),
        "Clínica García": ("clinica garcia", "garcia", "garsia"),
    },
    equipment={
        "ND-Elite": ("nd-elite", "nd elite", "ndelite", "nd elyte"),
        "Ultraformer": ("ultraformer mpt", "ultraformer", "ultra former"),
        "Hydrafacial": ("hydrafacial", "hidrafacial", "hydra facial", "hidra facial", "hidrafeisial", "ydrafacial"),
        "HIFU": ("hifu", "hyfu", "haifu", "jifu"),
        "Láser": ("laser", "lazer", "lasser", "lacer"),
        "Ultrasonido": ("ultrasonido", "ultra sonido", "ultrasonico"),
        "Radiofrecuencia": ("radiofrecuencia", "radio frecuencia"),
        "Criolipólisis": ("criolipolisis", "crio lipolisis", "cryo"),
        "Cavitación": ("cavitacion", "cavi"),
        "Nd:YAG": ("nd yag", "ndyag"),
        "IPL": ("ipl", "luz pulsada"),
        "CO2": ("co2", "laser co2"),
        "Soprano": ("soprano",),
        "CoolSculpting": ("coolsculpting", "cool sculpting"),
    },
    components={
        "Pieza de mano": ("pieza de mano", "piesa de mano", "handpiece", "hand piece", "paleta", "aplicador", "punta"),
        "Unidad principal": ("unidad principal", "consola", "torre", "gabinete"),
        "Manguera": ("manguera", "tubo", "conector", "conexion"),
        "Cable": ("cable", "cables"),
        "Filtro": ("filtro", "filtros"),
        "Cartucho": ("cartucho", "cartuchos", "consumible"),
        "Pantalla": ("pantalla", "display", "monitor", "lcd"),
        "Bomba": ("bomba",),
        "Motor": ("motor",),
        "Ventilador": ("ventilador", "cooler"),
        "Sensor": ("sensor", "sonda"),
        "Fuente": ("fuente", "transformador", "placa", "circuito"),
    },
)


def load_registry(path: Optional[Union[str, Path]] = None) -> EntityRegistry:
    """
    Load a registry from JSON, or return the default when no path is given.

    A missing or malformed file is a deployment error and is raised, not
    silently replaced by the default.
    """
    if not path:
        return DEFAULT_REGISTRY

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    registry = EntityRegistry.model_validate(
        {
            kind: {name: tuple(aliases) for name, aliases in payload.get(kind, {}).items()}
            for kind in ("clients", "equipment", "components")
        }
    )
    logger.info(
        "Entity registry loaded",
        extra={
            "path": str(path),
            "clients": len(registry.clients),
            "equipment": len(registry.equipment),
            "components": len(registry.components),
        },
    )
    return registry
