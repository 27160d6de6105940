"""Database seeder for LogiTrack — default warehouses and staff accounts.

Run via: python -m logitrack.seed
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from logitrack.database.engine import sync_engine
from logitrack.models.enums import UserType
from logitrack.models.user import User
from logitrack.models.warehouse import Warehouse
from logitrack.modules.auth.passwords import hash_password
from logitrack.modules.warehouses.service import join_areas
from logitrack.seed_data.users import ADMIN, DRIVER_PASSWORD, DRIVERS
from logitrack.seed_data.warehouses import WAREHOUSES


def seed_warehouses(session: Session) -> int:
    """Insert the default warehouses that do not exist yet (matched by name)."""
    created = 0
    for data in WAREHOUSES:
        exists = session.execute(
            select(Warehouse.id).where(Warehouse.name == data["name"])
        ).first()
        if exists:
            continue
        session.add(Warehouse(**{**data, "areas_served": join_areas(data["areas_served"])}))
        created += 1

    print(f"  Seeded {created} warehouses ({len(WAREHOUSES) - created} already present).")
    return created


def _upsert_user(session: Session, data: dict, password: str, user_type: UserType) -> bool:
    """Create the account or refresh its profile. Returns True when created."""
    user = session.execute(
        select(User).where(func.lower(User.username) == data["username"].lower())
    ).scalar_one_or_none()
    fields = {k: v for k, v in data.items() if k not in ("password", "user_type")}

    if user is None:
        session.add(
            User(**fields, user_type=user_type, password_hash=hash_password(password))
        )
        return True

    for key, value in fields.items():
        setattr(user, key, value)
    user.user_type = user_type
    return False


def seed_users(session: Session) -> int:
    created = int(_upsert_user(session, ADMIN, ADMIN["password"], UserType.ADMIN))
    for driver in DRIVERS:
        created += int(_upsert_user(session, driver, DRIVER_PASSWORD, UserType.DRIVER))

    print(f"  Seeded {created} users ({len(DRIVERS) + 1 - created} updated).")
    return created


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    """Run all seed functions inside a single transaction."""
    print("Seeding LogiTrack database...")

    with Session(sync_engine) as session:
        with session.begin():
            # 1. Warehouses
            seed_warehouses(session)

            # 2. Admin and drivers
            seed_users(session)

    print("Seeding complete.")


if __name__ == "__main__":
    main()
