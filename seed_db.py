"""Create the schema, sync the permission catalogue and bootstrap an admin.

    ADMIN_USERNAME=admin ADMIN_PASSWORD=... python seed_db.py
"""
import os

from backoffice.core.database import Base, SessionLocal, engine
from backoffice.core.security import get_password_hash
from backoffice.models import Permission, Profile, Role, RolePermission
from backoffice.services.permissions import ADMIN_ROLE, sync_permissions


def seed_db():
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        added = sync_permissions(db)
        print(f"  {added} permission(s) added to the catalogue.")

        role = db.query(Role).filter(Role.name == ADMIN_ROLE).first()
        if not role:
            role = Role(name=ADMIN_ROLE, description="Accès complet", is_system_role=True)
            db.add(role)
            db.flush()
            print("  Role 'admin' created.")

        granted = {
            pid
            for (pid,) in db.query(RolePermission.permission_id)
            .filter(RolePermission.role_id == role.id)
            .all()
        }
        for permission in db.query(Permission).all():
            if permission.id not in granted:
                db.add(RolePermission(role_id=role.id, permission_id=permission.id))

        username = os.environ.get("ADMIN_USERNAME", "admin")
        if not db.query(Profile).filter(Profile.username == username).first():
            password = os.environ.get("ADMIN_PASSWORD")
            if not password:
                raise SystemExit("ADMIN_PASSWORD must be set to create the admin profile")
            db.add(
                Profile(
                    username=username,
                    password_hash=get_password_hash(password),
                    full_name="Administrateur",
                    role_id=role.id,
                )
            )
            print(f"  Admin profile '{username}' created.")

        db.commit()
        print("Done.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_db()
