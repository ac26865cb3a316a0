"""Extension-based file categories used to colour treemap rectangles."""

from __future__ import annotations

import enum
import os


class FileCategory(enum.Enum):
    CODE = "code"
    MEDIA = "media"
    DOCUMENTS = "documents"
    ARCHIVES = "archives"
    SYSTEM = "system"
    DATA = "data"
    DIRECTORY = "directory"
    OTHER = "other"


_CODE = frozenset({
    "swift", "m", "h", "c", "cpp", "cc", "java", "kt", "py", "rb", "rs",
    "go", "js", "jsx", "ts", "tsx", "html", "css", "scss", "sass", "less",
    "vue", "svelte", "php", "pl", "sh", "bash", "zsh", "fish",
    "r", "scala", "clj", "hs", "ml", "ex", "exs", "erl",
    "toml", "yaml", "yml", "json", "xml", "plist", "xcconfig",
    "pbxproj", "storyboard", "xib", "entitlements",
    "cmake", "gradle", "podspec", "gemspec",
})

# Extensionless build files matched by their lowercased name
_CODE_NAMES = frozenset({"makefile", "gnumakefile", "dockerfile", "gemfile", "podfile", "rakefile", "brewfile"})

_MEDIA = frozenset({
    "jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp", "heic", "heif",
    "svg", "ico", "icns", "pdf",
    "mp3", "wav", "aac", "flac", "ogg", "m4a", "wma", "aiff",
    "mp4", "mov", "avi", "mkv", "wmv", "flv", "webm", "m4v", "3gp",
    "psd", "ai", "sketch", "fig", "xd",
})

_DOCUMENTS = frozenset({
    "doc", "docx", "txt", "rtf", "odt", "pages",
    "xls", "xlsx", "csv", "ods", "numbers",
    "ppt", "pptx", "odp", "keynote",
    "md", "rst", "tex", "org",
})

_ARCHIVES = frozenset({
    "zip", "tar", "gz", "bz2", "xz", "7z", "rar",
    "dmg", "iso", "pkg", "deb", "rpm",
    "jar", "war", "ear",
})

_SYSTEM = frozenset({
    "dylib", "so", "a", "o", "framework",
    "app", "kext", "plugin", "bundle",
    "log", "crash",
})

_DATA = frozenset({"db", "sqlite", "sqlite3", "realm", "core", "dat", "bin"})

# Checked in order; the first table containing the extension wins.
_TABLES = (
    (_CODE, FileCategory.CODE),
    (_MEDIA, FileCategory.MEDIA),
    (_DOCUMENTS, FileCategory.DOCUMENTS),
    (_ARCHIVES, FileCategory.ARCHIVES),
    (_SYSTEM, FileCategory.SYSTEM),
    (_DATA, FileCategory.DATA),
)


def classify(path: str, is_dir: bool = False) -> FileCategory:
    """Return the category for ``path`` based on its file name or extension."""
    if is_dir:
        return FileCategory.DIRECTORY
    name = os.path.basename(path).lower()
    if name in _CODE_NAMES:
        return FileCategory.CODE
    ext = os.path.splitext(name)[1][1:]
    if not ext:
        return FileCategory.OTHER
    for table, category in _TABLES:
        if ext in table:
            return category
    return FileCategory.OTHER
