"""
Shared loaders for the site content: front matter, posts, the index page.

Layout of a site root:
    index.md                   landing page listing public repositories
    _posts/YYYY-MM-DD-name.md  dated blog posts
    assets/, images/           embedded media

Every document starts with a `---` delimited YAML front-matter block
(layout, title, slug, description, keywords) followed by Markdown.
"""

import os
import re
import yaml
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from urllib.parse import SplitResult, urlsplit

# --- CONFIG ---
SITE_ROOT = Path(os.getenv("SITE_ROOT", "."))
POSTS_DIR = "_posts"
INDEX_FILE = "index.md"
ASSET_DIRS = ("assets", "images")
POST_SUFFIXES = {".md", ".markdown"}
MEDIA_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"}

FRONT_MATTER_KEYS = ["layout", "title", "slug", "description", "keywords"]

POST_FILENAME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")

_TARGET = r"<?([^\s<>()]+)>?(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*"
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(\s*" + _TARGET + r"\)")
LINK_RE = re.compile(
    r"(?<!!)\[((?:[^\[\]]|!\[[^\]]*\]\([^)]*\))*)\]\(\s*" + _TARGET + r"\)"
)
AUTOLINK_RE = re.compile(r"<(https?://[^>\s]+)>")
INLINE_CODE_RE = re.compile(r"(`+).+?\1")
HEADING_RE = re.compile(r"^#{1,6}\s+(.*?)\s*#*\s*$")
EXPLICIT_ID_RE = re.compile(r"\s*\{#([\w\-]+)\}$")
INDEX_ENTRY_RE = re.compile(
    r"^\s*[-*+]\s+(?:\*\*)?\[([^\]]*)\]\(\s*([^)\s]*)\s*\)(?:\*\*)?\s*[-:–—]?\s*(.*)$"
)


class FrontMatterError(ValueError):
    """Raised when a document's front matter is missing or malformed."""


@dataclass
class Link:
    text: str
    target: str
    line: int
    is_image: bool = False


@dataclass
class IndexEntry:
    name: str
    url: str
    description: str = ""


@dataclass
class Document:
    path: Path
    meta: dict
    body: str

    @property
    def links(self) -> list[Link]:
        return [l for l in extract_links(self.body) if not l.is_image]

    @property
    def images(self) -> list[Link]:
        return [l for l in extract_links(self.body) if l.is_image]

    @property
    def anchors(self) -> set[str]:
        return heading_anchors(self.body)


@dataclass
class Post(Document):
    published: Optional[date] = None
    title: str = ""
    slug: str = ""
    layout: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)


def split_front_matter(text: str) -> tuple[dict, str]:
    """Split a document into (front matter mapping, Markdown body)."""
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        raise FrontMatterError("Missing front matter (first line must be '---')")

    for i in range(1, len(lines)):
        if lines[i].strip() in ("---", "..."):
            block = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            break
    else:
        raise FrontMatterError("Unterminated front matter (no closing '---')")

    try:
        meta = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML in front matter: {e}") from e

    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(meta).__name__}"
        )
    return meta, body


def parse_post_filename(name: str) -> Optional[tuple[date, str]]:
    """Return (date, stem) for `YYYY-MM-DD-stem.md`, or None."""
    m = POST_FILENAME_RE.match(Path(name).stem)
    if not m:
        return None
    try:
        day = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None
    return day, m.group(4)


def coerce_date(value) -> Optional[date]:
    """Front-matter dates come back from YAML as date, datetime or str."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def normalize_keywords(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = []
        for item in value:
            if item is None:
                continue
            if isinstance(item, (dict, list)):
                raise FrontMatterError(f"Keyword must be a scalar, got {type(item).__name__}")
            items.append(str(item))
    else:
        raise FrontMatterError(
            f"keywords must be a list or comma-separated string, got {type(value).__name__}"
        )
    return [k.strip() for k in items if k and k.strip()]


def split_target(target: str) -> Optional[SplitResult]:
    """urlsplit, or None for malformed targets such as `http://[::1/admin`."""
    try:
        return urlsplit(target)
    except ValueError:
        return None


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def prose_lines(body: str):
    """Yield (line number, line) for lines outside fenced code blocks."""
    fence = None
    for lineno, line in enumerate(body.splitlines(), 1):
        stripped = line.strip()
        if fence:
            if stripped.startswith(fence) and not stripped[len(fence):].strip(fence[0]).strip():
                fence = None
            continue
        m = re.match(r"^(`{3,}|~{3,})", stripped)
        if m:
            fence = m.group(1)
            continue
        yield lineno, line


def extract_links(body: str) -> list[Link]:
    """Inline links and images in the body, ignoring code blocks and spans."""
    links = []
    for lineno, line in prose_lines(body):
        line = INLINE_CODE_RE.sub("", line)
        for m in IMAGE_RE.finditer(line):
            links.append(Link(m.group(1), m.group(2), lineno, is_image=True))
        for m in LINK_RE.finditer(line):
            links.append(Link(m.group(1), m.group(2), lineno))
        for m in AUTOLINK_RE.finditer(line):
            links.append(Link(m.group(1), m.group(1), lineno))
    return links


def slugify_heading(text: str) -> str:
    """GitHub-style anchor id for a heading."""
    text = INLINE_CODE_RE.sub(lambda m: m.group(0).strip("`"), text)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = text.strip().lower()
    text = re.sub(r"[^\w\- ]", "", text)
    return text.replace(" ", "-")


def heading_anchors(body: str) -> set[str]:
    anchors = set()
    seen = {}
    for _, line in prose_lines(body):
        m = HEADING_RE.match(line)
        if not m:
            continue
        heading = m.group(1)
        explicit = EXPLICIT_ID_RE.search(heading)
        if explicit:
            anchors.add(explicit.group(1))
            heading = heading[:explicit.start()]
        base = slugify_heading(heading)
        count = seen.get(base, 0)
        seen[base] = count + 1
        anchors.add(base if count == 0 else f"{base}-{count}")
    return anchors


def parse_index_entries(body: str) -> list[IndexEntry]:
    """Repository listings written as `- [name](url) - description`."""
    entries = []
    for _, line in prose_lines(body):
        m = INDEX_ENTRY_RE.match(line)
        if m:
            entries.append(IndexEntry(m.group(1).strip(), m.group(2).strip(), m.group(3).strip()))
    return entries


def read_document(path: Path) -> Document:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FrontMatterError(f"Not valid UTF-8: {e}") from e
    meta, body = split_front_matter(text)
    return Document(Path(path), meta, body)


def load_post(path: Path) -> Post:
    """Load a post; raises FrontMatterError on malformed front matter."""
    doc = read_document(path)
    meta = doc.meta
    parsed = parse_post_filename(doc.path.name)
    post_date = coerce_date(meta.get("date")) or (parsed[0] if parsed else None)
    return Post(
        path=doc.path,
        meta=meta,
        body=doc.body,
        published=post_date,
        title=_text(meta.get("title")),
        slug=_text(meta.get("slug")) or (parsed[1] if parsed else doc.path.stem),
        layout=_text(meta.get("layout")),
        description=_text(meta.get("description")),
        keywords=normalize_keywords(meta.get("keywords")),
    )


def list_post_files(root: Path = SITE_ROOT) -> list[Path]:
    posts_dir = Path(root) / POSTS_DIR
    if not posts_dir.is_dir():
        return []
    return sorted(p for p in posts_dir.rglob("*") if p.is_file() and p.suffix in POST_SUFFIXES)


def load_posts(root: Path = SITE_ROOT) -> list[Post]:
    """All posts, oldest first."""
    posts = []
    for path in list_post_files(root):
        try:
            posts.append(load_post(path))
        except FrontMatterError as e:
            raise FrontMatterError(f"{path}: {e}") from e
    return sorted(posts, key=lambda p: (p.published or date.min, p.path.name))


def load_index(root: Path = SITE_ROOT) -> Optional[tuple[dict, list[IndexEntry], str]]:
    """Return (front matter, entries, body) of the landing page, or None."""
    path = Path(root) / INDEX_FILE
    if not path.exists():
        return None
    doc = read_document(path)
    return doc.meta, parse_index_entries(doc.body), doc.body


def load_documents(root: Path = SITE_ROOT) -> tuple[list[Document], list[tuple[Path, str]]]:
    """Index page plus every post. Malformed files are returned as failures."""
    root = Path(root)
    paths = list_post_files(root)
    index_path = root / INDEX_FILE
    if index_path.exists():
        paths.insert(0, index_path)

    docs = []
    failures = []
    for path in paths:
        try:
            docs.append(read_document(path))
        except FrontMatterError as e:
            failures.append((path, str(e)))
    return docs, failures


def list_asset_files(root: Path = SITE_ROOT) -> list[Path]:
    files = []
    for name in ASSET_DIRS:
        asset_dir = Path(root) / name
        if asset_dir.is_dir():
            files.extend(p for p in asset_dir.rglob("*") if p.is_file() and p.suffix.lower() in MEDIA_SUFFIXES)
    return sorted(files)


def display_path(path: Path, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return str(path)


def print_issues(errors: list[str], warnings: list[str], limit: int = 30):
    """Print warnings then errors, first `limit` of each."""
    if warnings:
        print(f"\n⚠ {len(warnings)} WARNINGS:")
        for w in warnings[:limit]:
            print(f"  {w}")
        if len(warnings) > limit:
            print(f"  ... and {len(warnings) - limit} more")

    if errors:
        print(f"\n✗ {len(errors)} ERRORS:")
        for e in errors[:limit]:
            print(f"  {e}")
        if len(errors) > limit:
            print(f"  ... and {len(errors) - limit} more")
