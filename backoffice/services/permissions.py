"""Permission catalogue and effective-permission lookup.

Codes follow ``module.menu.action``. The catalogue below is the single
source for every code the routers check; ``sync_permissions`` inserts the
missing ones so a fresh database and an old one converge.
"""
import logging
from typing import Dict, List, Set, Tuple

from sqlalchemy.orm import Session

from backoffice.models.auth import Permission, Profile, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
WILDCARD = "*"

PERMISSION_CATALOGUE: Dict[str, Dict[str, List[Tuple[str, str]]]] = {
    "accounting": {
        "users": [
            ("view_page", "Voir les utilisateurs"),
            ("create", "Créer un utilisateur"),
            ("update", "Modifier un utilisateur"),
            ("delete", "Supprimer un utilisateur"),
            ("assign_roles", "Attribuer des rôles"),
        ],
        "roles": [
            ("view_page", "Voir les rôles"),
            ("create", "Créer un rôle"),
            ("update", "Modifier un rôle"),
            ("delete", "Supprimer un rôle"),
        ],
        "projects": [
            ("view_page", "Voir les projets"),
            ("create", "Créer un projet"),
            ("update", "Modifier un projet"),
            ("delete", "Supprimer un projet"),
        ],
        "actions": [
            ("view_page", "Voir les actions"),
            ("create", "Créer une action"),
            ("update", "Modifier une action"),
            ("delete", "Supprimer une action"),
        ],
    },
    "formation": {
        "corps": [
            ("view_page", "Voir les corps de formation"),
            ("create", "Créer un corps de formation"),
            ("update", "Modifier un corps de formation"),
            ("delete", "Supprimer un corps de formation"),
        ],
        "formations": [
            ("view_page", "Voir les formations"),
            ("create", "Créer une formation"),
            ("update", "Modifier une formation"),
            ("delete", "Supprimer une formation"),
        ],
        "students": [
            ("view_page", "Voir les étudiants"),
            ("create", "Créer un étudiant"),
            ("update", "Modifier un étudiant"),
        ],
        "sessions": [
            ("view_page", "Voir les sessions"),
            ("create", "Créer une session"),
            ("update", "Modifier une session"),
            ("delete", "Supprimer une session"),
            ("add_student", "Inscrire un étudiant"),
            ("update_student", "Modifier une inscription"),
            ("remove_student", "Retirer un étudiant"),
            ("record_payment", "Enregistrer un paiement"),
            ("delete_payment", "Annuler un paiement"),
        ],
        "templates": [
            ("view_page", "Voir les templates de certificats"),
            ("create", "Créer un template"),
            ("update", "Modifier un template"),
            ("delete", "Supprimer un template"),
        ],
        "certificates": [
            ("view_page", "Voir les certificats"),
            ("generate", "Générer un certificat"),
            ("update", "Modifier un certificat"),
            ("delete", "Supprimer un certificat"),
        ],
    },
    "hr": {
        "employees": [
            ("view_page", "Voir les employés"),
            ("create", "Créer un employé"),
            ("update", "Modifier un employé"),
            ("delete", "Supprimer un employé"),
        ],
        "contracts": [("manage", "Gérer les contrats")],
        "documents": [("manage", "Gérer les documents")],
        "discipline": [("manage", "Gérer les sanctions")],
        "settings": [
            ("view_page", "Voir les paramètres RH"),
            ("manage", "Modifier les paramètres RH"),
        ],
        "attendance": [
            ("view_page", "Voir les pointages"),
            ("create", "Saisir un pointage"),
            ("edit", "Corriger un pointage"),
        ],
        "leaves": [
            ("view_page", "Voir les congés"),
            ("create", "Créer une demande de congé"),
            ("approve", "Valider les demandes de son équipe"),
            ("approve_all", "Valider toutes les demandes"),
            ("manage_balances", "Ajuster les soldes"),
        ],
        "payroll": [
            ("view_page", "Voir la paie"),
            ("manage", "Calculer et clôturer la paie"),
        ],
        "employee_portal": [("clock_in_out", "Pointer entrée / sortie")],
    },
    "commercialisation": {
        "segments": [
            ("view_page", "Voir les segments"),
            ("create", "Créer un segment"),
            ("update", "Modifier un segment"),
            ("delete", "Supprimer un segment"),
        ],
        "prospects": [
            ("view_page", "Voir les prospects"),
            ("create", "Créer un prospect"),
            ("update", "Modifier un prospect"),
            ("delete", "Supprimer un prospect"),
            ("call", "Appeler un prospect"),
            ("reinject", "Réinjecter un prospect"),
            ("import", "Importer des prospects"),
            ("clean", "Nettoyer les prospects"),
        ],
    },
}


def iter_catalogue():
    for module, menus in PERMISSION_CATALOGUE.items():
        for menu, actions in menus.items():
            for sort_order, (action, label) in enumerate(actions, start=1):
                yield {
                    "code": f"{module}.{menu}.{action}",
                    "module": module,
                    "menu": menu,
                    "action": action,
                    "label": label,
                    "sort_order": sort_order,
                }


def sync_permissions(db: Session) -> int:
    """Insert catalogue codes missing from the database. Returns the count added."""
    existing = {code for (code,) in db.query(Permission.code).all()}
    added = 0
    for entry in iter_catalogue():
        if entry["code"] in existing:
            continue
        db.add(Permission(**entry))
        added += 1
    if added:
        db.commit()
        logger.info("Added %d permission(s) to the catalogue", added)
    return added


def get_user_permissions(db: Session, profile: Profile) -> Set[str]:
    """Effective permission codes of a profile.

    ``user_roles`` is the primary source; a profile without any
    ``user_roles`` row falls back to its own ``role_id``.
    """
    role_ids = [
        role_id
        for (role_id,) in db.query(UserRole.role_id)
        .filter(UserRole.user_id == profile.id)
        .all()
    ]
    if not role_ids and profile.role_id:
        role_ids = [profile.role_id]
    if not role_ids:
        return set()

    rows = (
        db.query(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .filter(RolePermission.role_id.in_(role_ids))
        .distinct()
        .all()
    )
    return {code for (code,) in rows}


def is_admin(db: Session, profile: Profile) -> bool:
    if profile.role and profile.role.name == ADMIN_ROLE:
        return True
    return (
        db.query(UserRole)
        .join(Role, Role.id == UserRole.role_id)
        .filter(UserRole.user_id == profile.id, Role.name == ADMIN_ROLE)
        .first()
        is not None
    )


def has_permission(db: Session, profile: Profile, *codes: str) -> bool:
    if is_admin(db, profile):
        return True
    granted = get_user_permissions(db, profile)
    if WILDCARD in granted:
        return True
    return any(code in granted for code in codes)
