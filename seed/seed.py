"""Seed script for demo data.

Running this script populates the database with a demo provider, a
demo requester and a handful of listings around Mexico City, which is
enough to try the radius filter. Execute it with
``python -m seed.seed`` from the repository root.
"""
from __future__ import annotations

from localaid import create_app, db
from localaid.models import User, Service, Rol, Categoria, Estado
from localaid.util.geo import make_point

DEMO_PASSWORD = "localaid123"


def run_seeds() -> None:
    """Insert demo users and listings into the database."""
    app = create_app()
    with app.app_context():
        db.create_all()

        oferente = User(
            nombre="Ana Oferente",
            email="ana@example.com",
            telefono="+52 55 1234 5678",
            rol=Rol.OFERENTE,
            skills=["plomería", "electricidad"],
        )
        oferente.set_password(DEMO_PASSWORD)
        oferente.ubicacion = make_point(-99.1332, 19.4326)

        solicitante = User(
            nombre="Luis Solicitante",
            email="luis@example.com",
            rol=Rol.SOLICITANTE,
        )
        solicitante.set_password(DEMO_PASSWORD)
        solicitante.ubicacion = make_point(-99.1677, 19.4270)

        db.session.add_all([oferente, solicitante])
        db.session.flush()

        services = [
            Service(
                titulo="Reparación de fuga en cocina",
                descripcion="Necesito reparar una fuga bajo el fregadero.",
                categoria=Categoria.REPARACIONES,
                creado_por_id=solicitante.id,
                precio=450,
            ),
            Service(
                titulo="Clases de matemáticas",
                descripcion="Clases particulares de álgebra para secundaria.",
                categoria=Categoria.EDUCACION,
                creado_por_id=oferente.id,
                precio=200,
                estado=Estado.EN_PROGRESO,
            ),
            Service(
                titulo="Poda de jardín",
                descripcion="Poda de árboles y mantenimiento de césped.",
                categoria=Categoria.JARDINERIA,
                creado_por_id=oferente.id,
                precio=800,
            ),
        ]
        coordinates = [(-99.1500, 19.4300), (-99.1332, 19.4326), (-103.3496, 20.6597)]
        for service, (lon, lat) in zip(services, coordinates):
            service.ubicacion = make_point(lon, lat)
        db.session.add_all(services)
        db.session.commit()
        print("Seed data inserted successfully.")


if __name__ == "__main__":
    run_seeds()
