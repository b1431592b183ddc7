"""Tests for service listings: publishing, browsing, editing and status changes."""
from __future__ import annotations

import pytest

from localaid.models import Service

CDMX = [-99.1332, 19.4326]
GUADALAJARA = [-103.3496, 20.6597]


def _set_status(client, service_id: int, headers: dict, estado: str):
    return client.patch(
        f"/api/services/{service_id}/estado", json={"nuevoEstado": estado}, headers=headers
    )


def test_create_service_applies_defaults(client, owner, create_service) -> None:
    user, headers = owner
    service = create_service(headers)
    assert service["estado"] == "pendiente"
    assert service["precio"] == 0
    assert service["moneda"] == "MXN"
    assert service["duracionEstimada"] == 1
    assert service["unidadDuracion"] == "horas"
    assert service["fechaPublicacion"]
    assert service["creadoPor"]["id"] == user["id"]
    assert "ubicacion" not in service


def test_create_service_ignores_client_owner(client, owner, stranger) -> None:
    user, headers = owner
    other, _ = stranger
    response = client.post(
        "/api/services",
        json={
            "titulo": "Clases de guitarra",
            "descripcion": "Nivel principiante",
            "categoria": "educacion",
            "creadoPor": other["id"],
            "estado": "completado",
        },
        headers=headers,
    )
    service = response.get_json()["data"]["service"]
    assert response.status_code == 201
    assert response.get_json()["message"] == "Servicio creado exitosamente"
    assert service["creadoPor"]["id"] == user["id"]
    assert service["estado"] == "pendiente"


def test_create_service_strips_html(client, owner, create_service) -> None:
    _, headers = owner
    service = create_service(headers, titulo="<b>Pintar</b> casa ", descripcion="<script>x</script>Dos cuartos")
    assert service["titulo"] == "Pintar casa"
    assert service["descripcion"] == "xDos cuartos"


def test_create_service_null_terms_use_defaults(client, owner, create_service) -> None:
    _, headers = owner
    service = create_service(headers, precio=None, moneda=None, duracionEstimada=None)
    assert service["precio"] == 0
    assert service["moneda"] == "MXN"
    assert service["duracionEstimada"] == 1


@pytest.mark.parametrize("missing", ["titulo", "descripcion", "categoria"])
def test_create_service_requires_core_fields(client, owner, missing) -> None:
    _, headers = owner
    payload = {"titulo": "Reparar grifo", "descripcion": "Fuga", "categoria": "reparaciones"}
    del payload[missing]
    response = client.post("/api/services", json=payload, headers=headers)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Título, descripción y categoría son obligatorios"
    assert Service.query.count() == 0


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"categoria": "magia"}, "Categoría no válida"),
        ({"precio": -5}, "El precio no puede ser negativo"),
        ({"moneda": "JPY"}, "La moneda debe ser MXN, USD o EUR"),
        ({"duracionEstimada": 0.5}, "La duración debe ser al menos 1 hora"),
        ({"unidadDuracion": "meses"}, "La unidad de duración debe ser horas, dias o semanas"),
        ({"titulo": "x" * 101}, "El título no puede exceder 100 caracteres"),
    ],
)
def test_create_service_schema_violations(client, owner, overrides, expected) -> None:
    _, headers = owner
    payload = {"titulo": "Reparar grifo", "descripcion": "Fuga", "categoria": "reparaciones"}
    payload.update(overrides)
    response = client.post("/api/services", json=payload, headers=headers)
    body = response.get_json()
    assert response.status_code == 400
    assert body["message"] == "Datos de servicio inválidos"
    assert expected in body["errors"]


def test_create_service_rejects_bad_location(client, owner) -> None:
    _, headers = owner
    response = client.post(
        "/api/services",
        json={
            "titulo": "Reparar grifo",
            "descripcion": "Fuga",
            "categoria": "reparaciones",
            "ubicacion": {"type": "Point", "coordinates": [-99.1]},
        },
        headers=headers,
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Las coordenadas de ubicación deben ser [longitud, latitud]"


def test_create_service_requires_token(client) -> None:
    response = client.post(
        "/api/services",
        json={"titulo": "Reparar grifo", "descripcion": "Fuga", "categoria": "reparaciones"},
    )
    assert response.status_code == 401
    assert Service.query.count() == 0


def test_get_service_joins_owner_without_secrets(client, owner, create_service) -> None:
    user, headers = owner
    created = create_service(headers, ubicacion={"type": "Point", "coordinates": CDMX})

    response = client.get(f"/api/services/{created['id']}")
    service = response.get_json()["data"]["service"]
    assert response.status_code == 200
    assert service["ubicacion"] == {"type": "Point", "coordinates": CDMX}
    assert service["creadoPor"]["email"] == user["email"]
    assert set(service["creadoPor"]) <= {"id", "nombre", "email", "telefono", "rol", "ubicacion"}


def test_get_service_not_found(client) -> None:
    response = client.get("/api/services/999")
    assert response.status_code == 404
    assert response.get_json()["message"] == "Servicio no encontrado"


def test_list_services_echoes_filters(client, owner, create_service) -> None:
    _, headers = owner
    create_service(headers)
    data = client.get("/api/services").get_json()["data"]
    assert data["filters"] == {"categoria": None, "estado": None, "ubicacion": None, "radio": 10}
    assert data["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalServices": 1,
        "hasNext": False,
        "hasPrev": False,
    }


def test_list_services_filters_by_category_and_status(client, owner, create_service) -> None:
    _, headers = owner
    grifo = create_service(headers)
    create_service(headers, titulo="Podar jardín", categoria="jardineria")
    _set_status(client, grifo["id"], headers, "en progreso")

    by_category = client.get("/api/services?categoria=jardineria").get_json()["data"]
    assert [s["titulo"] for s in by_category["services"]] == ["Podar jardín"]
    assert by_category["filters"]["categoria"] == "jardineria"

    by_status = client.get("/api/services", query_string={"estado": "en progreso"}).get_json()["data"]
    assert [s["id"] for s in by_status["services"]] == [grifo["id"]]

    # unknown statuses do not filter
    ignored = client.get("/api/services?estado=cancelado").get_json()["data"]
    assert ignored["pagination"]["totalServices"] == 2


def test_list_services_unknown_category_matches_nothing(client, owner, create_service) -> None:
    _, headers = owner
    create_service(headers)
    response = client.get("/api/services?categoria=magia")
    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["services"] == []
    assert data["pagination"]["totalServices"] == 0
    assert data["filters"]["categoria"] == "magia"


def test_list_services_sorts(client, owner, create_service) -> None:
    _, headers = owner
    for precio in (300, 100, 200):
        create_service(headers, titulo=f"Servicio {precio}", precio=precio)

    ascending = client.get("/api/services?ordenarPor=precio&orden=asc").get_json()["data"]["services"]
    assert [s["precio"] for s in ascending] == [100, 200, 300]

    descending = client.get("/api/services?ordenarPor=precio").get_json()["data"]["services"]
    assert [s["precio"] for s in descending] == [300, 200, 100]

    newest_first = client.get("/api/services").get_json()["data"]["services"]
    assert [s["titulo"] for s in newest_first] == ["Servicio 200", "Servicio 100", "Servicio 300"]


def test_list_services_unknown_sort_field_uses_publication_date(client, owner, create_service) -> None:
    _, headers = owner
    for precio in (300, 100, 200):
        create_service(headers, titulo=f"Servicio {precio}", precio=precio)

    for field in ("fechaRegistro", "password_hash"):
        response = client.get(f"/api/services?ordenarPor={field}")
        assert response.status_code == 200
        titles = [s["titulo"] for s in response.get_json()["data"]["services"]]
        assert titles == ["Servicio 200", "Servicio 100", "Servicio 300"]


@pytest.mark.parametrize("page", ["uno", "100000000000000000000"])
def test_list_services_rejects_bad_page(client, page) -> None:
    response = client.get(f"/api/services?page={page}")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Parámetros de paginación inválidos"


def test_list_services_ignores_radius_without_location(client, owner, create_service) -> None:
    _, headers = owner
    create_service(headers)
    response = client.get("/api/services?radio=abc")
    data = response.get_json()["data"]
    assert response.status_code == 200
    assert data["pagination"]["totalServices"] == 1
    assert data["filters"]["radio"] == 10


def test_list_services_paginates(client, owner, create_service) -> None:
    _, headers = owner
    for i in range(5):
        create_service(headers, titulo=f"Servicio {i}")

    data = client.get("/api/services?page=2&limit=2").get_json()["data"]
    assert len(data["services"]) == 2
    assert data["pagination"] == {
        "currentPage": 2,
        "totalPages": 3,
        "totalServices": 5,
        "hasNext": True,
        "hasPrev": True,
    }

    past_the_end = client.get("/api/services?page=9&limit=2").get_json()["data"]
    assert past_the_end["services"] == []
    assert past_the_end["pagination"]["hasNext"] is False


def test_list_services_within_radius(client, owner, create_service) -> None:
    _, headers = owner
    create_service(headers, titulo="En el centro", ubicacion={"coordinates": CDMX})
    create_service(headers, titulo="En Guadalajara", ubicacion={"coordinates": GUADALAJARA})
    create_service(headers, titulo="Sin ubicación")

    data = client.get("/api/services?ubicacion=-99.1332,19.4326&radio=5").get_json()["data"]
    assert [s["titulo"] for s in data["services"]] == ["En el centro"]
    assert data["filters"]["ubicacion"] == "-99.1332,19.4326"
    assert data["filters"]["radio"] == 5

    wide = client.get("/api/services?ubicacion=-99.1332,19.4326&radio=470").get_json()["data"]
    assert {s["titulo"] for s in wide["services"]} == {"En el centro", "En Guadalajara"}


def test_list_services_radius_edge(client, owner, create_service) -> None:
    # one degree of latitude is about 111.19 km on the reference sphere
    _, headers = owner
    create_service(headers, titulo="A 4.9 km", ubicacion={"coordinates": [-99.1332, 19.4767]})
    create_service(headers, titulo="A 5.1 km", ubicacion={"coordinates": [-99.1332, 19.4785]})

    inside = client.get("/api/services?ubicacion=-99.1332,19.4326&radio=5").get_json()["data"]
    assert [s["titulo"] for s in inside["services"]] == ["A 4.9 km"]

    both = client.get("/api/services?ubicacion=-99.1332,19.4326&radio=5.2").get_json()["data"]
    assert {s["titulo"] for s in both["services"]} == {"A 4.9 km", "A 5.1 km"}
    assert both["filters"]["radio"] == 5.2

    none = client.get("/api/services?ubicacion=-99.1332,19.4326&radio=4.8").get_json()["data"]
    assert none["services"] == []


@pytest.mark.parametrize("query", ["ubicacion=abc", "ubicacion=1,2,3", "ubicacion=-99,19&radio=0"])
def test_list_services_rejects_bad_geo_query(client, query) -> None:
    response = client.get(f"/api/services?{query}")
    assert response.status_code == 400


def test_owner_updates_pending_service(client, owner, create_service) -> None:
    _, headers = owner
    created = create_service(headers)
    response = client.put(
        f"/api/services/{created['id']}",
        json={"titulo": "Reparar dos grifos", "precio": 450, "estado": "completado"},
        headers=headers,
    )
    service = response.get_json()["data"]["service"]
    assert response.status_code == 200
    assert service["titulo"] == "Reparar dos grifos"
    assert service["precio"] == 450
    assert service["descripcion"] == created["descripcion"]
    assert service["estado"] == "pendiente"


def test_update_service_sets_and_clears_location(client, owner, create_service) -> None:
    _, headers = owner
    created = create_service(headers)
    url = f"/api/services/{created['id']}"

    placed = client.put(url, json={"ubicacion": {"coordinates": CDMX}}, headers=headers)
    assert placed.get_json()["data"]["service"]["ubicacion"]["coordinates"] == CDMX

    cleared = client.put(url, json={"ubicacion": {"coordinates": []}}, headers=headers)
    assert "ubicacion" not in cleared.get_json()["data"]["service"]


def test_update_service_by_stranger_is_forbidden(client, owner, stranger, create_service) -> None:
    _, headers = owner
    _, stranger_headers = stranger
    created = create_service(headers)
    response = client.put(
        f"/api/services/{created['id']}", json={"titulo": "Mío"}, headers=stranger_headers
    )
    assert response.status_code == 403
    assert response.get_json()["message"] == "No tienes permisos para editar este servicio"


def test_update_started_service_is_rejected(client, owner, create_service) -> None:
    _, headers = owner
    created = create_service(headers)
    _set_status(client, created["id"], headers, "en progreso")
    response = client.put(f"/api/services/{created['id']}", json={"titulo": "Tarde"}, headers=headers)
    assert response.status_code == 400
    assert response.get_json()["message"] == "Solo se pueden editar servicios en estado pendiente"


def test_update_missing_service(client, owner) -> None:
    _, headers = owner
    response = client.put("/api/services/999", json={"titulo": "X"}, headers=headers)
    assert response.status_code == 404


def test_owner_starts_service(client, owner, create_service) -> None:
    _, headers = owner
    created = create_service(headers)
    response = _set_status(client, created["id"], headers, "en progreso")
    body = response.get_json()
    assert response.status_code == 200
    assert body["message"] == 'Estado del servicio cambiado a "en progreso"'
    assert body["data"]["service"]["estado"] == "en progreso"


def test_stranger_cannot_change_status(client, owner, stranger, create_service) -> None:
    _, headers = owner
    _, stranger_headers = stranger
    created = create_service(headers)
    response = _set_status(client, created["id"], stranger_headers, "en progreso")
    assert response.status_code == 403
    assert response.get_json()["message"] == (
        "No tienes permisos para cambiar el estado de este servicio"
    )
    assert client.get(f"/api/services/{created['id']}").get_json()["data"]["service"]["estado"] == (
        "pendiente"
    )


def test_ownership_is_checked_before_transition(client, owner, stranger, create_service) -> None:
    _, headers = owner
    _, stranger_headers = stranger
    created = create_service(headers)
    response = _set_status(client, created["id"], stranger_headers, "completado")
    assert response.status_code == 403


@pytest.mark.parametrize("value", ["cancelado", "", None, 3, ["pendiente"]])
def test_invalid_status_value(client, owner, create_service, value) -> None:
    _, headers = owner
    created = create_service(headers)
    response = _set_status(client, created["id"], headers, value)
    assert response.status_code == 400
    assert response.get_json()["message"] == (
        "Estado inválido. Debe ser: pendiente, en progreso o completado"
    )


def test_status_change_on_missing_service(client, owner) -> None:
    _, headers = owner
    response = _set_status(client, 999, headers, "en progreso")
    assert response.status_code == 404


# path that brings a fresh listing into each state
_PATH_TO = {
    "pendiente": [],
    "en progreso": ["en progreso"],
    "completado": ["en progreso", "completado"],
}
_ALLOWED = {
    ("pendiente", "en progreso"),
    ("en progreso", "completado"),
    ("en progreso", "pendiente"),
}


@pytest.mark.parametrize("actual", list(_PATH_TO))
@pytest.mark.parametrize("nuevo", list(_PATH_TO))
def test_transition_table(client, owner, create_service, actual, nuevo) -> None:
    _, headers = owner
    created = create_service(headers)
    for step in _PATH_TO[actual]:
        assert _set_status(client, created["id"], headers, step).status_code == 200

    response = _set_status(client, created["id"], headers, nuevo)
    current = client.get(f"/api/services/{created['id']}").get_json()["data"]["service"]["estado"]
    if (actual, nuevo) in _ALLOWED:
        assert response.status_code == 200
        assert current == nuevo
    else:
        assert response.status_code == 400
        assert response.get_json()["message"] == (
            f'No se puede cambiar de estado "{actual}" a "{nuevo}"'
        )
        assert current == actual
