"""seed permission catalogue and system roles

Revision ID: 0002_seed_permissions
Revises: 0001_initial_schema
Create Date: 2026-10-19 09:40:51.602117

"""
from typing import Sequence, Union

from alembic import op

from backoffice.services.permissions import iter_catalogue


# revision identifiers, used by Alembic.
revision: str = '0002_seed_permissions'
down_revision: Union[str, Sequence[str], None] = '0001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _quote(value) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def upgrade() -> None:
    """Upgrade schema."""
    for entry in iter_catalogue():
        op.execute(
            "INSERT INTO permissions (id, code, module, menu, action, label, sort_order) "
            f"VALUES (gen_random_uuid(), {_quote(entry['code'])}, {_quote(entry['module'])}, "
            f"{_quote(entry['menu'])}, {_quote(entry['action'])}, {_quote(entry['label'])}, "
            f"{entry['sort_order']}) ON CONFLICT (code) DO NOTHING"
        )

    op.execute(
        "INSERT INTO roles (id, name, description, is_system_role) VALUES "
        "(gen_random_uuid(), 'admin', 'Accès complet', true), "
        "(gen_random_uuid(), 'employee', 'Portail employé', true) "
        "ON CONFLICT (name) DO NOTHING"
    )

    # admin holds every code; employee can clock and request leave
    op.execute(
        "INSERT INTO role_permissions (id, role_id, permission_id) "
        "SELECT gen_random_uuid(), r.id, p.id FROM roles r CROSS JOIN permissions p "
        "WHERE r.name = 'admin' ON CONFLICT DO NOTHING"
    )
    op.execute(
        "INSERT INTO role_permissions (id, role_id, permission_id) "
        "SELECT gen_random_uuid(), r.id, p.id FROM roles r JOIN permissions p "
        "ON p.code IN ('hr.employee_portal.clock_in_out', 'hr.leaves.view_page', 'hr.leaves.create') "
        "WHERE r.name = 'employee' ON CONFLICT DO NOTHING"
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        "DELETE FROM role_permissions WHERE role_id IN "
        "(SELECT id FROM roles WHERE name IN ('admin', 'employee'))"
    )
    op.execute("DELETE FROM roles WHERE name IN ('admin', 'employee')")
    op.execute("DELETE FROM permissions")
