#!/usr/bin/env python
"""Idempotent seed script for the built-in roles & the initial admin user.

Usage:
    python backend/scripts/seed_roles.py               # seed normally
    python backend/scripts/seed_roles.py --show-roles  # print role -> permission counts (after ensuring seed)
    python backend/scripts/seed_roles.py --dry-run     # run logic then rollback (no DB changes)
    python backend/scripts/seed_roles.py --export-json roles.json
"""
from __future__ import annotations
import os, sys, argparse, textwrap, json, hashlib
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backoffice import create_app, get_db  # type: ignore
from backoffice.constants.permissions import SUPERUSER_ROLE
from backoffice.models.authz import Base, Role, User
from backoffice.services.policy import effective_permissions
from backoffice.services.roles import RoleStore


def ensure_initial_admin(session):
    admin_role = session.execute(select(Role).where(Role.name == SUPERUSER_ROLE)).scalar_one_or_none()
    if not admin_role:
        print('[WARN] admin role missing; skipping admin user creation')
        return False
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    if session.execute(select(User).where(User.email == admin_email)).scalar_one_or_none():
        return False
    user = User(name='Admin', lastname='', email=admin_email, password_hash='', role_id=admin_role.id, status='active')
    user.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
    session.add(user)
    session.flush()
    print(f"[INFO] Created initial admin user {admin_email} with temporary password.")
    return True


def build_role_permission_map(session):
    mapping = {}
    for role in session.execute(select(Role).order_by(Role.id)).scalars().all():
        mapping[role.name] = effective_permissions(role)
    return mapping


def print_role_summary(mapping):
    if not mapping:
        print("[INFO] No roles present.")
        return
    name_w = max(len(n) for n in mapping)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, perms in mapping.items():
        print(f"{name.ljust(name_w)} | {str(len(perms)).rjust(5)} | {', '.join(perms[:8])}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed built-in roles & initial admin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_roles.py\n  dry run: seed_roles.py --dry-run\n  show roles: seed_roles.py --show-roles\n""")
    )
    p.add_argument('--show-roles', action='store_true', help='Print effective role permission counts after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--no-admin', action='store_true', help='Do not create the initial admin user')
    p.add_argument('--export-json', nargs='?', const='-', metavar='FILE', help='Export role->effective permissions JSON (to FILE or stdout if omitted)')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM roles LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        session.commit()

        before = {r.name for r in session.execute(select(Role)).scalars().all()}
        try:
            RoleStore(session).ensure_default_roles()
            created_admin = False if args.no_admin else ensure_initial_admin(session)
            mapping = build_role_permission_map(session)
            created_roles = len(set(mapping) - before)
            if args.dry_run:
                # ensure_default_roles commits per role, so roll those back by hand
                session.rollback()
                for role in session.execute(select(Role).where(Role.name.notin_(before))).scalars().all():
                    session.delete(role)
                session.commit()
                print(f"[DRY-RUN] (rolled back) Roles would create: {created_roles}, admin user: {created_admin}")
            else:
                session.commit()
                print(f"[DONE] Roles created: {created_roles}, admin user: {created_admin}")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary(mapping)
            if args.export_json is not None:
                canonical = json.dumps(mapping, sort_keys=True, separators=(',', ':'))
                payload = {
                    'roles': mapping,
                    'meta': {
                        'roles_checksum_sha256': hashlib.sha256(canonical.encode('utf-8')).hexdigest(),
                        'role_names_sorted': sorted(mapping),
                        'dry_run': args.dry_run,
                    }
                }
                if args.export_json == '-':
                    print(json.dumps(payload, indent=2, sort_keys=True))
                else:
                    with open(args.export_json, 'w', encoding='utf-8') as f:
                        json.dump(payload, f, indent=2, sort_keys=True)
                    print(f"[INFO] Exported JSON to {args.export_json}")
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
