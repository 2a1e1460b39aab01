from __future__ import annotations

import argparse
from pathlib import Path

from . import achievement_service, demo_data, goal_service, material_service, services
from .auth_service import create_user
from .backup import backup_database
from .config import configure_logging
from .db import init_db
from .errors import NotFoundError
from .seed import seed_base


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("Database initialised and base seed loaded.")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "dentists":
        for d in services.list_dentists():
            state = "active" if d.is_active else "inactive"
            print(f"{d.id} | {d.name} | {d.clinic or '-'} | {state}")
    elif args.entity == "patients":
        for p in services.list_patients():
            print(f"{p.id} | {p.name} | {p.email or '-'}")
    elif args.entity == "goals":
        for g in goal_service.list_goals():
            done = "done" if g.is_completed else "open"
            print(f"{g.id} | {g.title} | {g.goal_type.value} | {g.current_value:g}/{g.target_value:g} | {done}")
    elif args.entity == "materials":
        for m in material_service.list_materials():
            minimum = "-" if m.minimum_stock is None else f"{m.minimum_stock:g}"
            print(f"{m.id} | {m.name} | stock {m.stock_quantity:g} {m.unit} (min {minimum}) | {m.unit_price:.2f}")


def cmd_create_user(args: argparse.Namespace) -> None:
    try:
        user_id = create_user(args.username, args.password, is_admin=args.admin)
    except ValueError as e:
        raise SystemExit(f"Error: {e}")
    print(f"User created: {user_id}{' (admin)' if args.admin else ''}")


def cmd_check_goals(args: argparse.Namespace) -> None:
    result = goal_service.check_goals_progress()
    print(f"Goals updated: {result.updated_goals}, completed: {result.completed_goals}")


def cmd_award(args: argparse.Namespace) -> None:
    try:
        achievement = achievement_service.get_achievement(args.achievement_id)
    except NotFoundError as e:
        raise SystemExit(f"Error: {e}")

    if achievement_service.award_achievement(achievement.id):
        print(f"Awarded: {achievement.title}")
    else:
        print(f"Already awarded: {achievement.title}")


def cmd_low_stock(args: argparse.Namespace) -> None:
    materials = material_service.get_low_stock_materials()
    if not materials:
        print("No material below minimum stock.")
        return
    for m in materials:
        print(f"{m.id} | {m.name} | {m.stock_quantity:g} < {m.minimum_stock:g} {m.unit}")


def cmd_procedure_cost(args: argparse.Namespace) -> None:
    cost = material_service.calculate_procedure_cost(args.procedure_type)
    for pm in cost.materials:
        optional = " (optional)" if pm.is_optional else ""
        print(f"- {pm.material.name}: {pm.quantity_used:g} x {pm.material.unit_price:.2f}{optional}")
    print(f"Total material cost for {cost.procedure_type}: {cost.total_cost:.2f}")


def cmd_backup(args: argparse.Namespace) -> None:
    try:
        target = backup_database(args.target_dir)
    except (ValueError, RuntimeError) as e:
        raise SystemExit(f"Error: {e}")
    print(f"Backup written to {target}")


def cmd_demo_data(args: argparse.Namespace) -> None:
    counts = demo_data.main(reset=not args.keep)
    print(f"Demo data: {counts['procedures']} procedures, {counts['appointments']} upcoming appointments.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="endodelivery", description="Endodelivery CLI (operational commands)")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING... (default: LOG_LEVEL)")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create tables and load the base seed")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List entities")
    p_list.add_argument("entity", choices=["dentists", "patients", "goals", "materials"])
    p_list.set_defaults(func=cmd_list)

    p_user = sub.add_parser("create-user", help="Create an API user")
    p_user.add_argument("--username", required=True)
    p_user.add_argument("--password", required=True)
    p_user.add_argument("--admin", action="store_true", help="Grant administrator privileges")
    p_user.set_defaults(func=cmd_create_user)

    p_goals = sub.add_parser("check-goals", help="Re-evaluate every active financial goal")
    p_goals.set_defaults(func=cmd_check_goals)

    p_award = sub.add_parser("award", help="Award an achievement")
    p_award.add_argument("achievement_id", type=int)
    p_award.set_defaults(func=cmd_award)

    p_low = sub.add_parser("low-stock", help="Materials below minimum stock")
    p_low.set_defaults(func=cmd_low_stock)

    p_cost = sub.add_parser("procedure-cost", help="Material cost of a procedure type")
    p_cost.add_argument("procedure_type", help="es: TREATMENT")
    p_cost.set_defaults(func=cmd_procedure_cost)

    p_backup = sub.add_parser("backup", help="Back up the database into BACKUP_DIR")
    p_backup.add_argument("--target-dir", type=Path, default=None)
    p_backup.set_defaults(func=cmd_backup)

    p_demo = sub.add_parser("demo-data", help="Fill the last 90 days with demo procedures")
    p_demo.add_argument("--keep", action="store_true", help="Do NOT delete existing operational data")
    p_demo.set_defaults(func=cmd_demo_data)

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    init_db()  # garantisce tabelle
    args.func(args)


if __name__ == "__main__":
    main()
