from __future__ import annotations

import argparse

from .cli import run_cli
from .config import ConfigError, load_config
from .controller import ShopController
from .db import open_db
from .errors import StoreUnavailable
from .importers import ImportFailed, import_customers_csv, seed_demo_data
from .logging_config import setup_logging
from .repositories.customer_repo import CustomerRepository
from .repositories.job_repo import JobRepository
from .services.shop_service import ShopService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yellowhut", description="Vehicle service shop records")
    parser.add_argument("-c", "--config", default="config.toml", help="path to the TOML config (default: config.toml)")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("cli", help="interactive terminal UI (default)")
    web = sub.add_parser("web", help="run the web app")
    web.add_argument("--host", default="127.0.0.1")
    web.add_argument("--port", type=int, default=5000)
    web.add_argument("--debug", action="store_true")
    sub.add_parser("init-db", help="create the document table")
    sub.add_parser("seed", help="add demo customers and jobs")
    imp = sub.add_parser("import-customers", help="register customers from a CSV file")
    imp.add_argument("path")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    command = args.command or "cli"
    try:
        cfg = load_config(args.config)
        setup_logging(cfg.log_level, cfg.log_file)
        db = open_db(cfg)
        job_repo = JobRepository()
        service = ShopService(
            customer_repo=CustomerRepository(job_repo),
            job_repo=job_repo,
            service_catalog=cfg.business.services,
            default_job_status=cfg.business.default_job_status,
        )

        if command == "init-db":
            db.init_schema()
            print("Schema ready.")
        elif command == "seed":
            with db.transaction() as store:
                n = seed_demo_data(store, service)
            print(f"Seeded demo customers: {n}")
        elif command == "import-customers":
            with db.transaction() as store:
                n = import_customers_csv(store, args.path, service)
            print(f"Imported customers: {n}")
        elif command == "web":
            from .web_app import configure

            configure(cfg, db).run(debug=args.debug, host=args.host, port=args.port)
        else:
            run_cli(ShopController(db, service), cfg)
        return 0
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2
    except StoreUnavailable as e:
        print(f"[DB ERROR] {e}")
        return 3
    except ImportFailed as e:
        print(f"[IMPORT ERROR] {e}")
        return 4
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
