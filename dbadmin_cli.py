#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SQLite admin command line

Commands:
  init                Create the database data directory
  upload              Copy a local SQLite file into the data directory
  create-db           Create an empty database file in the data directory
  dbs                 List stored database files
  tables              List tables of a stored database
  schema              Show column metadata of a table
  rows                Print one page of a table (sort / filter / paginate)
  export              Export a (filtered) table to CSV
  insights            Table and row counts across databases

Notes:
- Database names are file names inside the data directory (DBADMIN_DATA_DIR / config.yaml data_dir).
- Filters use the search-box syntax: `status:active name:%bob%`; `col:NULL` matches SQL NULL.
"""

import argparse
import datetime as dt
import os
import sys

import pandas as pd

from dbadmin.db import ensure_data_dir, get_settings
from dbadmin.logs import setup_logging
from dbadmin.services.insights_svc import get_overall_stats
from dbadmin.services.storage_svc import create_database, list_databases, store_uploaded_db
from dbadmin.services.table_svc import describe_table, fetch_page, list_tables
from dbadmin.services.utils import parse_search_filters, total_pages

EXPORT_PAGE_SIZE = 1000


def _fail(res: dict) -> int:
    print(f"[ERROR] {res.get('error')} ({res.get('code')})", file=sys.stderr)
    return 1


def cmd_init(args):
    path = ensure_data_dir()
    print("Data directory ready:", path)
    return 0


def cmd_upload(args):
    with open(args.file, "rb") as f:
        content = f.read()
    res = store_uploaded_db(content, args.name or os.path.basename(args.file))
    if not res["success"]:
        return _fail(res)
    print("Stored", res["file_name"], "->", res["path"])
    return 0


def cmd_create_db(args):
    res = create_database(args.name)
    if not res["success"]:
        return _fail(res)
    print(("Created " if res["created"] else "Already exists: ") + res["file_name"])
    return 0


def cmd_dbs(args):
    res = list_databases()
    if not res["success"]:
        return _fail(res)
    for name in res["databases"]:
        print(name)
    if not res["databases"]:
        print("(none)")
    return 0


def cmd_tables(args):
    res = list_tables(args.db)
    if not res["success"]:
        return _fail(res)
    for t in res["tables"]:
        print(t)
    if not res["tables"]:
        print("(empty)")
    return 0


def cmd_schema(args):
    res = describe_table(args.db, args.table)
    if not res["success"]:
        return _fail(res)
    df = pd.DataFrame(res["schema"], columns=["name", "type", "is_primary_key", "is_not_null"])
    print(df.to_string(index=False) if not df.empty else "(no columns)")
    pk = res["primary_key"] or "(none: row editing disabled)"
    print("\nprimary key:", pk)
    return 0


def cmd_rows(args):
    limit = args.limit or get_settings()["page_size_default"]
    res = fetch_page(
        args.db, args.table, page=args.page, limit=limit,
        sort_column=args.sort, sort_direction="DESC" if args.desc else "ASC",
        filters=parse_search_filters(args.q),
    )
    if not res["success"]:
        return _fail(res)
    df = pd.DataFrame(res["rows"])
    print(df.to_string(index=False) if not df.empty else "(empty)")
    total = res["total_row_count"]
    print(f"\npage {args.page}/{max(total_pages(total, limit), 1)} · {total} rows")
    return 0


def cmd_export(args):
    filters = parse_search_filters(args.q)
    rows: list[dict] = []
    page = 1
    while True:
        res = fetch_page(args.db, args.table, page=page, limit=EXPORT_PAGE_SIZE,
                         sort_column=args.sort, filters=filters)
        if not res["success"]:
            return _fail(res)
        rows.extend(res["rows"])
        if len(rows) >= res["total_row_count"] or not res["rows"]:
            break
        page += 1

    out_dir = args.out or "exports"
    os.makedirs(out_dir, exist_ok=True)
    stamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    db_stem = os.path.splitext(args.db)[0]
    path = os.path.join(out_dir, f"{db_stem}_{args.table}_{stamp}.csv")
    pd.DataFrame(rows).to_csv(path, index=False, encoding="utf-8-sig")
    print(f"{len(rows)} rows exported to {path}")
    return 0


def cmd_insights(args):
    names = args.dbs
    if not names:
        res = list_databases()
        if not res["success"]:
            return _fail(res)
        names = res["databases"]
    res = get_overall_stats(names)
    if not res["success"]:
        return _fail(res)
    stats = res["stats"]
    for d in stats["databases"]:
        print(f"\n=== {d['file_name']} ===")
        if d["error"]:
            print("[ERROR]", d["error"])
            continue
        df = pd.DataFrame(d["tables"], columns=["name", "row_count"])
        print(df.to_string(index=False) if not df.empty else "(no tables)")
    print(
        f"\n{stats['total_databases_successfully_processed']}/{stats['total_databases_processed']} databases, "
        f"{stats['total_tables']} tables, {stats['grand_total_rows']} rows"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SQLite admin (generic table browser)")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    parser.add_argument("--data-dir", default=None, help="override the database data directory")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create the data directory")
    p_init.set_defaults(func=cmd_init)

    p_up = sub.add_parser("upload", help="store a local SQLite file")
    p_up.add_argument("file")
    p_up.add_argument("--name", required=False, help="stored file name (default: source basename)")
    p_up.set_defaults(func=cmd_upload)

    p_new = sub.add_parser("create-db", help="create an empty database file")
    p_new.add_argument("name")
    p_new.set_defaults(func=cmd_create_db)

    p_dbs = sub.add_parser("dbs", help="list stored databases")
    p_dbs.set_defaults(func=cmd_dbs)

    p_tables = sub.add_parser("tables", help="list tables")
    p_tables.add_argument("db")
    p_tables.set_defaults(func=cmd_tables)

    p_schema = sub.add_parser("schema", help="show table columns")
    p_schema.add_argument("db")
    p_schema.add_argument("table")
    p_schema.set_defaults(func=cmd_schema)

    p_rows = sub.add_parser("rows", help="print one page of rows")
    p_rows.add_argument("db")
    p_rows.add_argument("table")
    p_rows.add_argument("--page", type=int, default=1)
    p_rows.add_argument("--limit", type=int, required=False)
    p_rows.add_argument("--sort", required=False, help="sort column")
    p_rows.add_argument("--desc", action="store_true")
    p_rows.add_argument("-q", required=False, help="filters, e.g. 'status:active name:%%bob%%'")
    p_rows.set_defaults(func=cmd_rows)

    p_exp = sub.add_parser("export", help="export a table to CSV")
    p_exp.add_argument("db")
    p_exp.add_argument("table")
    p_exp.add_argument("--sort", required=False)
    p_exp.add_argument("-q", required=False)
    p_exp.add_argument("--out", required=False, help="output directory (default ./exports)")
    p_exp.set_defaults(func=cmd_export)

    p_ins = sub.add_parser("insights", help="table/row counts across databases")
    p_ins.add_argument("dbs", nargs="*", help="database names (default: all stored)")
    p_ins.set_defaults(func=cmd_insights)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.config:
        os.environ["DBADMIN_CONFIG"] = args.config
    if args.data_dir:
        os.environ["DBADMIN_DATA_DIR"] = args.data_dir
    setup_logging(args.log_level)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
