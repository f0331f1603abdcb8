"""
Alta de usuarios del panel de administración.

    python -m betel.create_admin admin@ejemplo.com "Nombre" --password secreto
"""
import argparse
import getpass
import logging

from betel.core.security import get_password_hash
from betel.database import Base, SessionLocal, engine
from betel.models.admin_user import AdminUser

logger = logging.getLogger(__name__)


def create_admin(db, email: str, name: str, password: str) -> AdminUser:
    admin = db.query(AdminUser).filter(AdminUser.email == email).first()
    if admin:
        # Usuario existente: se actualiza la contraseña
        admin.hashed_password = get_password_hash(password)
        admin.name = name
        admin.is_active = True
    else:
        admin = AdminUser(email=email, name=name, hashed_password=get_password_hash(password))
        db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def main(argv=None):
    parser = argparse.ArgumentParser(description="Crea o actualiza un administrador")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("--password", help="Se pide de forma interactiva si se omite")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    password = args.password or getpass.getpass("Contraseña: ")
    if len(password) < 8:
        parser.error("La contraseña debe tener al menos 8 caracteres")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = create_admin(db, args.email, args.name, password)
        logger.info("[ADMIN] Administrador listo: %s (id %s)", admin.email, admin.id)
    finally:
        db.close()


if __name__ == "__main__":
    main()
