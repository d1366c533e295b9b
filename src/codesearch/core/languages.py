"""Static language lookup tables for chunk metadata.

Detection order (most specific wins):
1. Exact filename match (e.g., "Makefile", "Cargo.toml", ".eslintrc.json")
2. Compound suffix match (e.g., ".blade.php", ".d.ts")
3. Simple suffix match (e.g., ".py")

Anything else is tagged UNKNOWN_LANGUAGE. Lookups are case-insensitive.
"""

from __future__ import annotations

from pathlib import Path

UNKNOWN_LANGUAGE = "unknown"

# =============================================================================
# Exact filenames
# =============================================================================

FILENAME_TO_LANGUAGE: dict[str, str] = {
    # Build systems
    "makefile": "makefile",
    "cmakelists.txt": "cmake",
    "build.gradle": "gradle",
    "build.gradle.kts": "gradle",
    "settings.gradle": "gradle",
    "settings.gradle.kts": "gradle",
    "gradle.properties": "gradle",
    "pom.xml": "maven",
    "build.sbt": "scala",
    "dockerfile": "dockerfile",
    # Python packaging
    "setup.py": "python",
    "setup.cfg": "python",
    "pyproject.toml": "python",
    "requirements.txt": "python",
    "pipfile": "python",
    "poetry.lock": "python",
    # JavaScript packaging
    "package.json": "npm",
    "package-lock.json": "npm",
    "yarn.lock": "yarn",
    "pnpm-lock.yaml": "pnpm",
    # Other ecosystems
    "cargo.toml": "rust",
    "cargo.lock": "rust",
    "go.mod": "go",
    "go.sum": "go",
    "gopkg.toml": "go",
    "gopkg.lock": "go",
    "composer.json": "php",
    "composer.lock": "php",
    "gemfile": "ruby",
    "gemfile.lock": "ruby",
    "rakefile": "ruby",
    "podfile": "ruby",
    "podfile.lock": "ruby",
    "pubspec.yaml": "dart",
    "pubspec.lock": "dart",
    "mix.exs": "elixir",
    "mix.lock": "elixir",
    "rebar.config": "erlang",
    "project.clj": "clojure",
    # CI
    ".gitlab-ci.yml": "gitlab-ci",
    ".travis.yml": "travis",
    "appveyor.yml": "appveyor",
    "azure-pipelines.yml": "azure-pipelines",
    "jenkinsfile": "jenkins",
    # Dotfiles
    ".dockerignore": "dockerignore",
    ".gitignore": "gitignore",
    ".gitattributes": "gitattributes",
    ".gitmodules": "gitmodules",
    ".gitconfig": "gitconfig",
    ".editorconfig": "editorconfig",
    ".npmignore": "npm",
    ".yarnignore": "yarn",
    ".eslintrc": "eslint",
    ".eslintrc.js": "eslint",
    ".eslintrc.json": "eslint",
    ".eslintrc.yaml": "eslint",
    ".eslintrc.yml": "eslint",
    ".prettierrc": "prettier",
    ".prettierrc.js": "prettier",
    ".prettierrc.json": "prettier",
    ".prettierrc.yaml": "prettier",
    ".prettierrc.yml": "prettier",
    ".babelrc": "babel",
    ".babelrc.js": "babel",
    ".babelrc.json": "babel",
    "tsconfig.json": "tsconfig",
    ".pylintrc": "pylint",
    ".flake8": "flake8",
    ".mypy.ini": "mypy",
    ".isort.cfg": "isort",
}

# =============================================================================
# Compound suffixes (checked before the last suffix)
# =============================================================================

COMPOUND_SUFFIX_TO_LANGUAGE: dict[str, str] = {
    ".blade.php": "blade",
    ".d.ts": "typescript",
}

# =============================================================================
# Simple suffixes
# =============================================================================

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    # Mainstream
    ".rs": "rust",
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".go": "go",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".gemspec": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".sc": "scala",
    ".m": "objective-c",
    ".mm": "objective-c",
    # Shell and scripting
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".fish": "shell",
    ".ps1": "powershell",
    ".sql": "sql",
    ".pl": "perl",
    ".pm": "perl",
    ".lua": "lua",
    ".r": "r",
    ".jl": "julia",
    ".dart": "dart",
    # Functional
    ".erl": "erlang",
    ".hrl": "erlang",
    ".ex": "elixir",
    ".exs": "elixir",
    ".clj": "clojure",
    ".cljs": "clojure",
    ".cljc": "clojure",
    ".hs": "haskell",
    ".lhs": "haskell",
    ".fs": "fsharp",
    ".fsi": "fsharp",
    ".fsx": "fsharp",
    ".ml": "ocaml",
    ".mli": "ocaml",
    ".elm": "elm",
    ".purs": "purescript",
    ".idr": "idris",
    ".lidr": "idris",
    ".agda": "agda",
    ".lean": "lean",
    ".coq": "coq",
    ".dfy": "dafny",
    ".tla": "tla+",
    # Hardware and legacy
    ".v": "verilog",
    ".vh": "verilog",
    ".vhd": "vhdl",
    ".sv": "systemverilog",
    ".svh": "systemverilog",
    ".cob": "cobol",
    ".cbl": "cobol",
    ".cpy": "cobol",
    ".f": "fortran",
    ".f90": "fortran",
    ".f95": "fortran",
    ".f03": "fortran",
    ".f08": "fortran",
    ".adb": "ada",
    ".ads": "ada",
    ".pas": "pascal",
    ".pp": "pascal",
    ".inc": "pascal",
    ".asm": "assembly",
    ".s": "assembly",
    ".nasm": "assembly",
    # Build files
    ".makefile": "makefile",
    ".mk": "makefile",
    ".cmake": "cmake",
    ".gradle": "gradle",
    ".dockerfile": "dockerfile",
    # Markup, styles, data, docs
    ".xml": "xml",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".sass": "sass",
    ".less": "less",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".cfg": "config",
    ".conf": "config",
    ".md": "markdown",
    ".markdown": "markdown",
    ".rst": "rst",
    ".tex": "tex",
    ".bib": "bibtex",
    # Templates
    ".pug": "pug",
    ".jade": "pug",
    ".hbs": "handlebars",
    ".handlebars": "handlebars",
    ".mustache": "mustache",
    ".ejs": "ejs",
    ".liquid": "liquid",
    ".twig": "twig",
    ".erb": "erb",
    ".rhtml": "erb",
    ".haml": "haml",
    ".slim": "slim",
    ".razor": "razor",
    ".aspx": "aspx",
    ".ascx": "aspx",
    ".vue": "vue",
    ".svelte": "svelte",
    # Infrastructure
    ".tf": "terraform",
    ".tfvars": "terraform",
    ".hcl": "hcl",
    ".nomad": "nomad",
    # Schemas and IDLs
    ".proto": "protobuf",
    ".proto3": "protobuf",
    ".graphql": "graphql",
    ".gql": "graphql",
    ".prisma": "prisma",
    ".thrift": "thrift",
    ".avsc": "avro",
    ".avdl": "avro",
    ".fbs": "flatbuffers",
    ".capnp": "capnproto",
    ".webidl": "webidl",
    ".idl": "idl",
    # Smart contracts
    ".sol": "solidity",
    ".vy": "vyper",
    ".cairo": "cairo",
    ".move": "move",
    # Newer systems languages
    ".zig": "zig",
    ".zon": "zig",
    ".odin": "odin",
    ".d": "d",
    ".di": "d",
    ".nim": "nim",
    ".nims": "nim",
    ".cr": "crystal",
    ".ecr": "crystal",
    ".gleam": "gleam",
    ".mojo": "mojo",
    ".pony": "pony",
    ".jai": "jai",
    # WebAssembly and shaders
    ".wasm": "wasm",
    ".wat": "wat",
    ".wast": "wast",
    ".wit": "wit",
    ".glsl": "glsl",
    ".vert": "glsl",
    ".frag": "glsl",
    ".hlsl": "hlsl",
    ".wgsl": "wgsl",
    ".metal": "metal",
    ".slang": "slang",
}


def detect_language(path: str | Path) -> str:
    """Detect the language tag for a file path.

    Args:
        path: File path (string or Path); only the final component is used.

    Returns:
        Language tag, or UNKNOWN_LANGUAGE when nothing matches.
    """
    p = Path(path) if isinstance(path, str) else path
    name_lower = p.name.lower()

    if language := FILENAME_TO_LANGUAGE.get(name_lower):
        return language

    suffixes = p.suffixes
    if len(suffixes) >= 2:
        compound = "".join(suffixes[-2:]).lower()
        if language := COMPOUND_SUFFIX_TO_LANGUAGE.get(compound):
            return language

    return EXTENSION_TO_LANGUAGE.get(p.suffix.lower(), UNKNOWN_LANGUAGE)
