#!/usr/bin/env python3
"""
Mostra, sem tocar no WordPress, como os links de cada post do export
ficariam depois da reescrita para o novo blog.

Uso:
  python scripts/preview_links.py \\
    --config config/migration_config.json \\
    --limit 5

Imprime para cada post os links originais e o destino reescrito, e
grava o mesmo conteúdo em data/links_preview.csv.
"""

from __future__ import annotations

import argparse
import csv
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from squarespace_migrator.extractors import discover_links, extract_post, iter_items, load_export  # noqa: E402
from squarespace_migrator.migration_tool import SquarespaceMigrationTool  # noqa: E402
from squarespace_migrator.parsers import rewrite_links  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pré-visualizar a reescrita de links dos posts do export."
    )
    parser.add_argument("--config", default="config/migration_config.json", help="Arquivo de configuração JSON")
    parser.add_argument("--xml", default=None, help="Export XML (padrão: migration.xml_file)")
    parser.add_argument("--limit", type=int, default=None, help="Número máximo de posts")
    parser.add_argument("--output", default="data/links_preview.csv", help="CSV de saída")
    return parser.parse_args(argv)


def preview(migration: dict, xml_path: str, limit: Optional[int] = None) -> Iterable[Tuple[str, str, str]]:
    """Gera (slug, link original, link reescrito) para cada link encontrado"""
    root = load_export(xml_path)
    seen = 0
    for item in iter_items(root):
        if not item.is_post:
            continue
        if limit is not None and seen >= limit:
            break
        seen += 1
        post = extract_post(item)
        for link in discover_links(post.raw_html):
            rewritten = rewrite_links(
                f'href="{link}"',
                legacy_origin=migration["legacy_domain"],
                legacy_blog_path=migration["legacy_blog_path"],
                site_url=migration["site_url"],
                blog_path=migration["blog_path"],
            )
            yield post.slug, link, rewritten[len('href="'):-1]


def main(argv=None) -> None:
    args = parse_args(argv)
    tool = SquarespaceMigrationTool(config_file=args.config)
    xml_path = args.xml or tool.migration["xml_file"]

    rows: List[Tuple[str, str, str]] = list(preview(tool.migration, xml_path, args.limit))
    for slug, old, new in rows:
        marker = "  " if old == new else "->"
        print(f"[{slug}] {old} {marker} {new}")

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["slug", "old_link", "new_link"])
        writer.writerows(rows)

    changed = sum(1 for _slug, old, new in rows if old != new)
    print(f"Links encontrados: {len(rows)} | reescritos: {changed}")
    print(f"Arquivo gerado: {out_path}")


if __name__ == "__main__":
    main()
