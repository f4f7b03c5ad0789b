import argparse
import datetime
import json
import shutil

from loguru import logger

from algorithms import WeightConverter
from db import Database, NoteRepository, WorkoutRepository
from log_config import setup_logger
from models import Mood, NoteList, SessionList, WorkoutSession
from reachability import resolve_gate
from rest_api import ZenGymAPI


def export_data(db_path: str, what: str, output_dir: str = ".") -> str:
    """Write the workout history or the daily notes to a JSON file."""
    if what == "history":
        data = SessionList.dump_json(WorkoutRepository(db_path).fetch_history(), indent=2)
    else:
        data = NoteList.dump_json(NoteRepository(db_path).fetch_notes(), indent=2)
    out_path = f"{output_dir}/{what}.json"
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(data.decode("utf-8"))
    logger.info(f"Exported {what} to {out_path}")
    return out_path


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, yaml_path: str) -> None:
    """Populate the database with a finished demo workout and a note if empty."""
    api = ZenGymAPI(db_path=db_path, yaml_path=yaml_path)
    if api.workouts.fetch_history():
        print("Database already contains workouts")
        return
    now = datetime.datetime.now()
    template = api.workouts.fetch_templates()[0]
    session = WorkoutSession.from_template(template, now - datetime.timedelta(minutes=30))
    for exercise in session.exercises:
        exercise.completed_sets = exercise.sets
        exercise.is_completed = True
    session.end_time = now
    session.is_completed = True
    api.workouts.append(session)
    note = api.notes.get_or_create(now.date())
    api.notes.upsert(
        note.model_copy(
            update={"mood": Mood.GOOD, "workout_notes": f"Demo: {template.name}"}
        )
    )
    print("Demo data inserted")


def reset_data(db_path: str, yaml_path: str) -> None:
    ZenGymAPI(db_path=db_path, yaml_path=yaml_path).reset_all_data()
    print("All data reset")


def print_stats(db_path: str, yaml_path: str) -> None:
    api = ZenGymAPI(db_path=db_path, yaml_path=yaml_path)
    summary = api.statistics.overview()
    summary["achievements"] = api.gamification.unlocked()
    print(json.dumps(summary, indent=2))


def vacuum_db(db_path: str) -> None:
    """Compact the database file after large deletions."""
    Database(db_path).vacuum()
    logger.info(f"Vacuumed {db_path}")


def convert_weight(weight: float, unit: str) -> str:
    if unit == "kg":
        return f"{weight} kg = {WeightConverter.kg_to_lb(weight)} lb"
    return f"{weight} lb = {WeightConverter.lb_to_kg(weight)} kg"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="ZenGym utility commands")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="zengym.db")
    exp.add_argument("--what", choices=["history", "notes"], default="history")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="zengym.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="zengym.db")

    vac = sub.add_parser("vacuum")
    vac.add_argument("--db", default="zengym.db")

    for name in ("demo", "reset", "stats"):
        cmd = sub.add_parser(name)
        cmd.add_argument("--db", default="zengym.db")
        cmd.add_argument("--yaml", default="settings.yaml")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lb"], required=True)

    link = sub.add_parser("check-link")
    link.add_argument("--url", required=True)
    link.add_argument("--timeout", type=float, default=None)

    serve = sub.add_parser("serve")
    serve.add_argument("--db", default="zengym.db")
    serve.add_argument("--yaml", default="settings.yaml")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    setup_logger(level=args.log_level, log_file=args.log_file)

    if args.cmd == "export":
        export_data(args.db, args.what, args.out)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "vacuum":
        vacuum_db(args.db)
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml)
    elif args.cmd == "reset":
        reset_data(args.db, args.yaml)
    elif args.cmd == "stats":
        print_stats(args.db, args.yaml)
    elif args.cmd == "convert":
        print(convert_weight(args.weight, args.unit))
    elif args.cmd == "check-link":
        print(resolve_gate(args.url, args.timeout).value)
    elif args.cmd == "serve":
        import uvicorn

        api = ZenGymAPI(db_path=args.db, yaml_path=args.yaml, start_timer=True)
        uvicorn.run(api.app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
