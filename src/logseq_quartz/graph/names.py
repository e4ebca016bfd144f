"""Page name normalization and slugs.

``normalize_name`` is the single normalization used for every name
comparison: the name index, the alias index, link resolution and stub
synthesis all key on its output.
"""

import re
from pathlib import Path
from urllib.parse import quote, unquote

WHITESPACE_RE = re.compile(r"\s+")
UNSAFE_PATH_CHARS_RE = re.compile(r'[\\:*?"<>|#%{}^~\[\]`]')
UNSAFE_FILENAME_RE = re.compile(r'[\\:*?"<>|]')

# Character rewrites the site renderer applies when slugging a file path
URL_SEGMENT_REWRITES = ((" ", "-"), ("&", "-and-"), ("%", "-percent"), ("?", ""), ("#", ""))

PAGES_DIR = "pages"

NAMESPACE_FILE_SEPARATOR = "___"


def normalize_name(name: str) -> str:
    """Normalize a page name or reference for matching.

    Case-folds, trims and collapses internal whitespace to single spaces.

    Examples:
        >>> normalize_name("  Project   Alpha ")
        'project alpha'
        >>> normalize_name("Straße")
        'strasse'
    """
    return WHITESPACE_RE.sub(" ", name.casefold()).strip()


def clean_reference(reference: str) -> str:
    """Strip wrapper syntax from a link target before resolution.

    Removes surrounding brackets, a leading ``#`` tag marker and the
    ``pages/`` folder prefix.
    """
    reference = reference.strip()
    if reference.startswith("[[") and reference.endswith("]]"):
        reference = reference[2:-2].strip()
    if reference.startswith("#"):
        reference = reference[1:].strip()
    if reference.lower().startswith("pages/"):
        reference = reference[len("pages/"):]
    return reference


def page_name_from_stem(stem: str) -> str:
    """Derive a page name from a file name stem.

    Logseq stores ``a/b`` as ``a___b.md`` and URL-escapes some characters.

    Examples:
        >>> page_name_from_stem("project___alpha")
        'project/alpha'
        >>> page_name_from_stem("what%3F")
        'what?'
    """
    return unquote(stem.replace(NAMESPACE_FILE_SEPARATOR, "/"))


def stub_slug(name: str) -> str:
    """Filesystem-safe, deterministic stub name for a missing page.

    The normalized name has whitespace turned into ``-`` and unsafe
    characters into ``_``. ``/`` is kept as the namespace separator and a
    literal ``$`` is preserved.

    Examples:
        >>> stub_slug("Ghost Page")
        'ghost-page'
        >>> stub_slug("$BOOT")
        '$boot'
    """
    normalized = normalize_name(clean_reference(name))
    slug = normalized.replace(" ", "-")
    slug = UNSAFE_PATH_CHARS_RE.sub("_", slug)
    parts = [part.strip(".") or "_" for part in slug.split("/") if part]
    return "/".join(parts) or "_"


def safe_relative_path(name: str) -> Path:
    """Relative file path for a page name; ``/`` becomes a directory."""
    parts = []
    for segment in name.split("/"):
        segment = UNSAFE_FILENAME_RE.sub("_", segment).strip()
        if segment in ("", ".", ".."):
            segment = "_"
        parts.append(segment)
    return Path(*parts[:-1], parts[-1] + ".md")


def output_relative_path(name: str, journal: bool = False) -> Path:
    """Path of a page's output file below the output directory.

    Journals keep their ``journals/YYYY-MM-DD`` name; every other page goes
    under ``pages/``.
    """
    path = safe_relative_path(name)
    return path if journal else Path(PAGES_DIR) / path


def url_slug(name: str, journal: bool = False) -> str:
    """Root-absolute URL of the file written for a page.

    Follows the output layout, then applies the site renderer's slug rules
    (case kept, spaces to ``-``). ``$`` is percent-encoded so no bare dollar
    ever reaches the renderer's math pass.

    Examples:
        >>> url_slug("Ops/$HOME Setup")
        '/pages/Ops/%24HOME-Setup'
        >>> url_slug("journals/2024-01-15", journal=True)
        '/journals/2024-01-15'
    """
    slug = output_relative_path(name, journal).with_suffix("").as_posix()
    for old, new in URL_SEGMENT_REWRITES:
        slug = slug.replace(old, new)
    return "/" + quote(slug, safe="/")


def namespace_of(name: str) -> str | None:
    """Namespace part of a page name (everything before the last ``/``)."""
    if "/" not in name:
        return None
    return name.rsplit("/", 1)[0]


def is_boundary(char: str) -> bool:
    """Whether char separates tokens for prefix matching."""
    return not char.isalnum()
