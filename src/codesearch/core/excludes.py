"""Default include/exclude lists for codebase scanning.

These are the built-in defaults for the ``indexing`` config section. Users
override them wholesale through YAML or ``CODESEARCH__INDEXING__*`` env vars.

- DEFAULT_EXTENSIONS: allow-list of file extensions (compared lower-cased)
- DEFAULT_SKIP_DIRS: directory names pruned wherever they appear in a path
- DEFAULT_SKIP_FILES: fnmatch patterns tested against the file name only
"""

from __future__ import annotations

DEFAULT_EXTENSIONS: tuple[str, ...] = (
    # Systems / mainstream
    ".rs", ".py", ".js", ".jsx", ".ts", ".tsx", ".java", ".go",
    ".c", ".cpp", ".cc", ".cxx", ".h", ".hpp", ".cs", ".php", ".rb", ".swift",
    ".kt", ".kts", ".scala", ".sc", ".m", ".mm",
    # Shell and scripting
    ".sh", ".bash", ".zsh", ".fish", ".ps1", ".sql", ".pl", ".pm", ".lua",
    ".r", ".R", ".jl", ".dart", ".nim", ".cr", ".elm",
    # Functional
    ".erl", ".hrl", ".ex", ".exs", ".clj", ".cljs", ".cljc", ".hs", ".lhs",
    ".fs", ".fsi", ".fsx", ".ml", ".mli",
    # Hardware, legacy, assembly
    ".v", ".vh", ".vhd", ".sv", ".svh", ".cob", ".cbl", ".cpy",
    ".f", ".f90", ".f95", ".f03", ".f08", ".adb", ".ads", ".pas", ".pp", ".inc",
    ".asm", ".s", ".S", ".nasm", ".cmake",
    # Markup, styles, data, docs
    ".xml", ".html", ".htm", ".css", ".scss", ".sass", ".less",
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf",
    ".md", ".markdown", ".rst", ".tex", ".bib",
    # Schemas and frameworks
    ".proto", ".graphql", ".gql", ".prisma", ".vue", ".svelte", ".sol", ".vy",
    # Newer systems languages
    ".zig", ".odin", ".d", ".di", ".nims", ".ecr",
    # WebAssembly and shaders
    ".wat", ".wast", ".wit", ".glsl", ".vert", ".frag", ".hlsl", ".wgsl", ".metal",
)  # fmt: skip

DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    # VCS internals
    ".git",
    ".svn",
    ".hg",
    # JavaScript
    "node_modules",
    "bower_components",
    # Build outputs
    "target",
    "build",
    "dist",
    "bin",
    "obj",
    "pkg",
    # Python
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "venv",
    ".venv",
    "env",
    ".env",
    # Vendored dependencies
    "vendor",
    "Pods",
    # Editors
    ".idea",
    ".vscode",
    ".vs",
    # JVM
    ".gradle",
    ".mvn",
    ".cache",
)

DEFAULT_SKIP_FILES: tuple[str, ...] = (
    # OS metadata
    ".DS_Store",
    "Thumbs.db",
    # Compiled artifacts
    "*.pyc",
    "*.pyo",
    "*.pyd",
    "*.so",
    "*.dylib",
    "*.dll",
    "*.exe",
    "*.out",
    "*.app",
    # Logs, temp and editor swap files
    "*.lock",
    "*.log",
    "*.tmp",
    "*.temp",
    "*.bak",
    "*.swp",
    "*.swo",
    "*~",
    # Secrets
    ".env",
    ".env.local",
    # Lockfiles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "Cargo.lock",
    "composer.lock",
    "Gemfile.lock",
    "Podfile.lock",
    "poetry.lock",
    "go.sum",
)

# Never descended into when discovering .gitignore files
VCS_DIRS: frozenset[str] = frozenset((".git", ".svn", ".hg", ".bzr"))
