#!/usr/bin/env python3
"""
Mapeia todas as tags HTML presentes no conteúdo dos posts de um export
XML do Squarespace e exporta um resumo (tag, count) para a pasta "data/".
Quando encontra tags "script" ou "iframe", também gera um arquivo detalhado
com os títulos dos posts, já que esses elementos viram blocos wp:html.

Uso:
  python scripts/map_html_tags.py \\
    --input data/squarespace-export.xml \\
    --output data/html_tags_counts.csv

Se os argumentos não forem informados, os padrões acima serão usados.
"""

from __future__ import annotations

import argparse
import csv
import os
import sys
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Tuple

from bs4 import BeautifulSoup

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from squarespace_migrator.extractors import extract_post, iter_items, load_export  # noqa: E402
from squarespace_migrator.utils.errors import MigrationError  # noqa: E402

EMBED_TAGS = ("script", "iframe")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mapear tags HTML do conteúdo dos posts de um export XML."
    )
    parser.add_argument(
        "--input",
        default="data/squarespace-export.xml",
        help="Caminho do arquivo XML de entrada",
    )
    parser.add_argument(
        "--output",
        default="data/html_tags_counts.csv",
        help="Caminho do arquivo CSV de saída com (tag,count)",
    )
    return parser.parse_args(argv)


def iter_html_posts(xml_path: Path) -> Iterable[Tuple[str, str]]:
    """Itera sobre os posts do export, retornando (título, conteúdo HTML)"""
    root = load_export(str(xml_path))
    for item in iter_items(root):
        if not item.is_post:
            continue
        post = extract_post(item)
        if post.raw_html.strip():
            yield post.title or "Título não encontrado", post.raw_html


def count_html_tags(posts: Iterable[Tuple[str, str]]) -> Tuple[Counter, List[Tuple[str, str, str]]]:
    """Conta tags HTML e coleta informações sobre scripts e iframes"""
    counter: Counter[str] = Counter()
    embed_entries: List[Tuple[str, str, str]] = []  # [(title, tag, src), ...]

    for title, html in posts:
        soup = BeautifulSoup(html, "html.parser")
        for el in soup.find_all(True):
            counter[el.name] += 1
            if el.name in EMBED_TAGS:
                src = el.get("src", "")
                if src or (el.string and len(el.string.strip()) > 20):
                    embed_entries.append((title, el.name, src or "[inline]"))

    return counter, embed_entries


def write_counts_csv(counter: Counter, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["tag", "count"])
        for tag, count in sorted(counter.items(), key=lambda x: (-x[1], x[0])):
            writer.writerow([tag, count])


def write_embed_details_csv(embed_entries: List[Tuple[str, str, str]], out_path: Path) -> Path:
    """Escreve detalhes de scripts e iframes em um arquivo CSV"""
    details_path = out_path.with_name(out_path.stem + "_embed_details.csv")
    details_path.parent.mkdir(parents=True, exist_ok=True)

    with details_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["title", "tag", "src"])
        for title, tag, src in embed_entries:
            writer.writerow([title, tag, src])
    return details_path


def main(argv=None) -> None:
    args = parse_args(argv)
    in_path = Path(args.input)
    out_path = Path(args.output)

    try:
        counts, embed_entries = count_html_tags(iter_html_posts(in_path))
    except MigrationError as e:
        raise SystemExit(f"Não foi possível ler o export: {e}")
    write_counts_csv(counts, out_path)

    if embed_entries:
        details_path = write_embed_details_csv(embed_entries, out_path)
        print(f"Detalhes de embeds salvos em: {details_path}")

    print(f"Tags únicas: {len(counts)}")
    for tag in EMBED_TAGS:
        print(f"Tags '{tag}' encontradas: {counts.get(tag, 0)}")
    print(f"Arquivo gerado: {out_path}")


if __name__ == "__main__":
    main()
