#!/usr/bin/env python3
"""
Audit embedded media: images referenced but missing on disk, and files in
assets/ or images/ that no page references (orphans).

Usage:
    python3 scripts/check_assets.py
    python3 scripts/check_assets.py --strict  # orphans fail the run
"""

import argparse
import re
import sys
from pathlib import Path
from urllib.parse import unquote

from site_content import (
    INLINE_CODE_RE,
    MEDIA_SUFFIXES,
    SITE_ROOT,
    Document,
    display_path,
    list_asset_files,
    load_documents,
    print_issues,
    prose_lines,
    split_target,
)

IMG_TAG_RE = re.compile(r"<img\b[^>]*\bsrc=[\"']([^\"']+)[\"']", re.IGNORECASE)
# Front-matter keys some layouts use for a cover image
IMAGE_META_KEYS = ("image", "cover", "thumbnail")


def raw_references(doc: Document) -> list[tuple[int, str]]:
    """(line, target) of every media reference as written, line 0 for front matter."""
    refs = [(l.line, l.target) for l in doc.images]
    for l in doc.links:
        parts = split_target(l.target)
        if parts and Path(parts.path).suffix.lower() in MEDIA_SUFFIXES:
            refs.append((l.line, l.target))
    for lineno, line in prose_lines(doc.body):
        line = INLINE_CODE_RE.sub("", line)
        refs += [(lineno, m.group(1)) for m in IMG_TAG_RE.finditer(line)]
    for key in IMAGE_META_KEYS:
        value = doc.meta.get(key)
        if isinstance(value, str) and value.strip():
            refs.append((0, value.strip()))
    return refs


def media_references(doc: Document) -> list[tuple[int, str]]:
    """(line, path) of every local media reference in a document."""
    local = []
    for lineno, target in raw_references(doc):
        parts = split_target(target)
        if parts is None or parts.scheme or target.startswith(("//", "{{", "{%")):
            continue
        path = unquote(parts.path)
        # "#" or "?v=1" alone name no file
        if path:
            local.append((lineno, path))
    return local


def resolve_reference(target: str, doc_path: Path, root: Path) -> Path:
    base = Path(root) if target.startswith("/") else Path(doc_path).parent
    return (base / target.lstrip("/")).resolve()


def audit_assets(root: Path = SITE_ROOT) -> tuple[list[str], list[str]]:
    """Returns (errors, warnings): missing images are errors, orphans are warnings."""
    root = Path(root)
    docs, failures = load_documents(root)

    errors = [f"[{display_path(p, root)}] {msg}" for p, msg in failures]
    warnings = []
    referenced = set()

    for doc in docs:
        name = display_path(doc.path, root)
        for lineno, target in raw_references(doc):
            if split_target(target) is None:
                where = f"[{name}:{lineno}]" if lineno else f"[{name}]"
                errors.append(f"{where} Malformed link: {target}")
        for lineno, target in media_references(doc):
            path = resolve_reference(target, doc.path, root)
            referenced.add(path)
            if not path.is_file():
                where = f"[{name}:{lineno}]" if lineno else f"[{name}]"
                errors.append(f"{where} Missing image: {target}")

    for asset in list_asset_files(root):
        if asset.resolve() not in referenced:
            warnings.append(f"[{display_path(asset, root)}] Not referenced by any page")

    return errors, warnings


def main():
    parser = argparse.ArgumentParser(description="Audit embedded media")
    parser.add_argument("--root", type=Path, default=SITE_ROOT, help="Site root directory")
    parser.add_argument("--strict", action="store_true", help="Treat orphaned assets as errors")
    args = parser.parse_args()

    print(f"Auditing media under {args.root}...")
    errors, warnings = audit_assets(args.root)

    print(f"\nMedia files: {len(list_asset_files(args.root))}")
    print(f"Missing: {len(errors)}")
    print(f"Orphaned: {len(warnings)}")
    print_issues(errors, warnings)

    total_issues = len(errors) + (len(warnings) if args.strict else 0)
    if total_issues == 0:
        print("\n✓ All media accounted for")
        sys.exit(0)
    print(f"\n✗ AUDIT FAILED: {len(errors)} missing, {len(warnings)} orphaned")
    sys.exit(1)


if __name__ == "__main__":
    main()
