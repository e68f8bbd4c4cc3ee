from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from xlupload.config.loader import ConfigError, load_config
from xlupload.db.statements import StatementCatalog
from xlupload.db.writers import (
    BulkWriter,
    DryRunWriter,
    Psycopg2BulkWriter,
    SqlAlchemyBulkWriter,
    select_writer,
)
from xlupload.errors import BulkWriteError, ConfigurationError, MappingError, WorkbookLoadError
from xlupload.excel.reader import load_workbook
from xlupload.logging.error_log import ErrorLogBuffer
from xlupload.logging.init import log_summary, setup_logging
from xlupload.models.config_models import DatabaseConfig, UploadConfig
from xlupload.models.error_record import ErrorRecord
from xlupload.models.upload_result import BatchMetrics
from xlupload.services.pipeline import BatchUploadPipeline
from xlupload.services.summary import render_summary_line

"""CLI entrypoint: upload one worksheet into the database.

Flow: load .env -> load config -> open workbook -> run the batch pipeline against
the configured backend -> print SUMMARY.

Exit codes:
- 0: upload finished
- 1: fatal (config, workbook, database URL or connection)
- 2: upload aborted by a mapping or write failure (earlier batches stay committed)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_UPLOAD_FAILED = 2

DEFAULT_CONFIG = Path("config/upload.yml")


def _resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """psycopg2 DSN; DATABASE_URL / PGDSN / PG* environment variables take precedence."""
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _resolve_sqlalchemy_url(db_cfg: DatabaseConfig) -> str | URL:
    url = os.getenv("DATABASE_URL") or db_cfg.url
    if url:
        return url
    return URL.create(
        "postgresql+psycopg2",
        username=os.getenv("PGUSER", db_cfg.user or "postgres"),
        password=os.getenv("PGPASSWORD", db_cfg.password or "") or None,
        host=os.getenv("PGHOST", db_cfg.host or "localhost"),
        port=int(os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")),
        database=os.getenv("PGDATABASE", db_cfg.database or "postgres"),
    )


@contextmanager
def _open_writer(cfg: UploadConfig, catalog: StatementCatalog) -> Iterator[BulkWriter]:
    """Yield the configured writer backend and release its connection afterwards.

    DISABLE_DB_CONNECT=1 yields a DryRunWriter (no database access).
    """
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        yield DryRunWriter()
        return

    if cfg.backend == "modern":
        engine = create_engine(_resolve_sqlalchemy_url(cfg.database))
        try:
            # unreachable database -> connection error, before any row is read
            with engine.connect():
                pass
            yield select_writer(modern=SqlAlchemyBulkWriter(engine, catalog))
        finally:
            engine.dispose()
    else:
        conn = psycopg2.connect(_resolve_dsn(cfg.database))
        conn.autocommit = False  # the writer commits once per batch
        try:
            yield select_writer(legacy=Psycopg2BulkWriter(conn, catalog, page_size=cfg.page_size))
        finally:
            conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _sheet_arg(value: str) -> int | str:
    return int(value) if value.isdigit() else value


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="xlupload", description="Excel -> database chunked bulk uploader")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheets & first rows then exit")
    p.add_argument("--sheet", type=_sheet_arg, default=None, help="Sheet index or name (overrides config)")
    p.add_argument("--start-row", type=int, default=None, help="First row to upload (overrides config)")
    p.add_argument("--commit-count", type=int, default=None, help="Rows per batch, 0 = single batch")
    return p.parse_args(argv)


def _apply_overrides(cfg: UploadConfig, args: argparse.Namespace) -> UploadConfig:
    changes: dict[str, object] = {}
    if args.sheet is not None:
        changes["sheet"] = args.sheet
    if args.start_row is not None:
        changes["start_row"] = args.start_row
    if args.commit_count is not None:
        changes["commit_count"] = args.commit_count
    return dataclasses.replace(cfg, **changes) if changes else cfg


def _inspect_data(cfg: UploadConfig) -> int:
    try:
        workbook = load_workbook(cfg.source, keep_na_strings=cfg.keep_na_strings)
    except WorkbookLoadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    with workbook:
        print(f"FILE: {workbook.source_name}")
        for name in workbook.sheet_names:
            ws = workbook.sheet_by_name(name)
            count = ws.physical_row_count()
            sample = [ws.row_at(i) for i in range(min(count, 3))]
            print(f"  SHEET: {name} physical_rows={count}")
            for row in sample:
                print(f"    {row!r}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # argv=[] must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = _apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    source_name = Path(cfg.source).name
    sheet_label = str(cfg.sheet)
    error_log = ErrorLogBuffer()
    checkpoints: list[BatchMetrics] = []

    def _record(row: int, error_type: str, message: str) -> None:
        committed = checkpoints[-1].total_affected_rows if checkpoints else 0
        error_log.append(
            ErrorRecord.create(source_name, sheet_label, cfg.operation_id, row, error_type, message, committed)
        )

    logger.info(f"Uploading {cfg.source} sheet={cfg.sheet} op={cfg.operation_id} backend={cfg.backend}")
    exit_code = EXIT_SUCCESS
    try:
        catalog = StatementCatalog.from_config(cfg.operations)
        with _open_writer(cfg, catalog) as writer:
            pipeline = BatchUploadPipeline(writer, cfg.mapper, instantiation=cfg.mapper_instantiation)
            result = pipeline.execute_workbook(
                cfg.operation_id,
                cfg.source,
                cfg.sheet,
                cfg.start_row,
                cfg.commit_count,
                keep_na_strings=cfg.keep_na_strings,
                on_batch=checkpoints.append,
            )
        log_summary(render_summary_line(result)[len("SUMMARY "):])
    except ConfigurationError as e:
        logger.error(f"config: {e}")
        _record(-1, "CONFIGURATION_ERROR", str(e))
        exit_code = EXIT_FATAL
    except WorkbookLoadError as e:
        logger.error(f"workbook: {e}")
        _record(-1, "WORKBOOK_LOAD_ERROR", str(e))
        exit_code = EXIT_FATAL
    except (psycopg2.Error, SQLAlchemyError) as e:
        logger.error(f"database connection failed: {e}")
        _record(-1, "DB_CONNECTION_ERROR", str(e))
        exit_code = EXIT_FATAL
    except MappingError as e:
        logger.error(f"mapping: {e}")
        _record(e.row_index, "MAPPING_ERROR", str(e))
        exit_code = EXIT_UPLOAD_FAILED
    except BulkWriteError as e:
        resume_at = checkpoints[-1].end_row if checkpoints else cfg.start_row
        logger.error(f"write: {e} (resume with --start-row {resume_at})")
        _record(resume_at, "DATABASE_INSERT_ERROR", str(e))
        exit_code = EXIT_UPLOAD_FAILED
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"error log written: {path}")

    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
