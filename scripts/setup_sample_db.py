"""Utility that launches a sample MongoDB Docker container for mongoreg."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mongoreg.config import CONFIG_FILE, AppConfig, TargetConfig, load_config, save_config

DEFAULT_CONTAINER = "mongoreg-sample-db"
DEFAULT_PORT = 27018
DEFAULT_DB = "mongoreg_demo"
DOCKER_IMAGE = "mongo:7"
TARGET_NAME = "Docker Sample"
SAMPLE_COLLECTIONS = ["accounts", "orders"]


def run(cmd: list[str], *, check: bool = True, **kwargs) -> subprocess.CompletedProcess[str]:
    print("$", " ".join(cmd))
    return subprocess.run(cmd, check=check, text=True, **kwargs)


def container_exists(name: str) -> bool:
    result = subprocess.run(
        ["docker", "ps", "-a", "--filter", f"name={name}", "--format", "{{.ID}}"],
        text=True,
        capture_output=True,
    )
    return bool(result.stdout.strip())


def start_container(name: str, port: int) -> None:
    if container_exists(name):
        print(f"Container '{name}' already exists. Reusing it.")
        run(["docker", "start", name], check=False)
    else:
        run(["docker", "run", "-d", "--name", name, "-p", f"{port}:27017", DOCKER_IMAGE])
    wait_for_start(name)


def wait_for_start(name: str, retries: int = 15, delay: float = 1.0) -> None:
    for _ in range(retries):
        result = subprocess.run(
            ["docker", "exec", name, "mongosh", "--quiet", "--eval", "db.runCommand({ping: 1}).ok"],
            text=True,
            capture_output=True,
        )
        if result.returncode == 0 and result.stdout.strip() == "1":
            return
        time.sleep(delay)
    print("Warning: database did not answer ping; continuing anyway.")


def seed_data(name: str, database: str) -> None:
    script = """
    db.accounts.updateOne({email: "anna@example.com"}, {$set: {email: "anna@example.com"}}, {upsert: true});
    db.accounts.updateOne({email: "ben@example.com"}, {$set: {email: "ben@example.com"}}, {upsert: true});
    db.orders.updateOne({ref: "A-1"}, {$set: {ref: "A-1", email: "anna@example.com", total: 42.5}}, {upsert: true});
    """.strip()
    run(["docker", "exec", "-i", name, "mongosh", "--quiet", database], input=script)


def update_config(port: int, database: str) -> None:
    config = load_config()
    if any(target.name == TARGET_NAME for target in config.targets):
        print(f"Target '{TARGET_NAME}' already present in config; leaving as-is.")
        return
    config = config.with_target(
        TargetConfig(
            name=TARGET_NAME,
            uri=f"mongodb://localhost:{port}/{database}",
            collections=SAMPLE_COLLECTIONS,
        )
    )
    save_config(config)
    print(f"Added '{TARGET_NAME}' target to {CONFIG_FILE}.")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--container", default=DEFAULT_CONTAINER, help="Docker container name")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Host port to expose MongoDB on")
    parser.add_argument("--database", default=DEFAULT_DB, help="Database name to seed")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        start_container(args.container, args.port)
        seed_data(args.container, args.database)
    except FileNotFoundError:
        print("Docker is not installed or not on PATH.")
        return 1
    update_config(args.port, args.database)
    print(
        f"Sample database is ready. Run `python -m mongoreg --target '{TARGET_NAME}'` or connect to "
        f"mongodb://localhost:{args.port}/{args.database}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
