"""Fails when the kv_entries migration history has branched into several heads."""

import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory

BACKEND_DIR = Path(__file__).resolve().parents[1]


def alembic_heads(backend_dir: Path = BACKEND_DIR) -> list[str]:
    cfg = Config(str(backend_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    return list(ScriptDirectory.from_config(cfg).get_heads())


def main(backend_dir: Path = BACKEND_DIR) -> int:
    heads = alembic_heads(backend_dir)

    if len(heads) != 1:
        print(f"[FAIL] session-auth migrations have {len(heads)} heads: {heads}", file=sys.stderr)
        return 1

    print(f"[OK] session-auth migrations head: {heads[0]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
