"""Archive exclusion rules.

Static deny lists for development and metadata files, plus the
runtime-conditional rule that strips compiled extension modules built for
a different interpreter version than the target runtime.
"""

import fnmatch
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from lambdactl.models.package import MODULES_DIR

DEFAULT_FILES: frozenset[str] = frozenset(
    {
        "Jenkinsfile",
        "Makefile",
        "Gulpfile.js",
        "Gruntfile.js",
        "gulpfile.js",
        ".DS_Store",
        ".tern-project",
        ".gitattributes",
        ".editorconfig",
        ".eslintrc",
        "eslint",
        ".eslintrc.js",
        ".eslintrc.json",
        ".eslintrc.yml",
        ".eslintignore",
        ".stylelintrc",
        "stylelint.config.js",
        ".stylelintrc.json",
        ".stylelintrc.yaml",
        ".stylelintrc.yml",
        ".stylelintrc.js",
        ".htmllintrc",
        "htmllint.js",
        ".lint",
        ".npmrc",
        ".npmignore",
        ".jshintrc",
        ".flowconfig",
        ".documentup.json",
        ".yarn-metadata.json",
        ".travis.yml",
        "appveyor.yml",
        ".gitlab-ci.yml",
        "circle.yml",
        ".coveralls.yml",
        "CHANGES",
        "changelog",
        "LICENSE.txt",
        "LICENSE",
        "LICENSE-MIT",
        "LICENSE.BSD",
        "license",
        "LICENCE.txt",
        "LICENCE",
        "LICENCE-MIT",
        "LICENCE.BSD",
        "licence",
        "AUTHORS",
        "CONTRIBUTORS",
        ".yarn-integrity",
        ".yarnclean",
        "_config.yml",
        ".babelrc",
        ".yo-rc.json",
        "jest.config.js",
        "karma.conf.js",
        "wallaby.js",
        "wallaby.conf.js",
        ".prettierrc",
        ".prettierrc.yml",
        ".prettierrc.toml",
        ".prettierrc.js",
        ".prettierrc.json",
        "prettier.config.js",
        ".appveyor.yml",
        "tsconfig.json",
        "tslint.json",
    }
)

DEFAULT_DIRECTORIES: tuple[str, ...] = (
    "__tests__",
    "test",
    "tests",
    "powered-test",
    "docs",
    "doc",
    ".idea",
    ".vscode",
    "website",
    "images",
    "assets",
    "example",
    "examples",
    "coverage",
    ".nyc_output",
    ".circleci",
    ".github",
)

DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".markdown",
    ".md",
    ".mkd",
    ".ts",
    ".jst",
    ".coffee",
    ".tgz",
    ".swp",
    ".html",
    ".txt",
    ".lock",
)

DEFAULT_GLOBS: tuple[str, ...] = ("*.d.ts.map",)

# Only excluded inside the installed dependency tree
DEFAULT_MODULES_FILES: tuple[str, ...] = ("package-lock.json",)

# foo.cpython-312-x86_64-linux-gnu.so, foo.cp311-win_amd64.pyd
_EXTENSION_TAG = re.compile(r"\.(?:cpython-|cp)(\d{2,3})[^/]*\.(?:so|pyd|dylib)$")
_PYTHON_RUNTIME = re.compile(r"^python(\d)\.(\d+)$")


def python_abi_tag(runtime: str | None) -> str | None:
    """Interpreter tag of a Python runtime identifier.

    Args:
        runtime: Runtime identifier such as "python3.12" or "nodejs20.x".

    Returns:
        The tag ("312"), or None if the runtime is not a Python runtime.
    """
    if not runtime:
        return None
    match = _PYTHON_RUNTIME.match(runtime.strip().lower())
    if match is None:
        return None
    return f"{match.group(1)}{match.group(2)}"


def extension_abi_tag(filename: str) -> str | None:
    """Interpreter tag embedded in a compiled extension file name, if any."""
    match = _EXTENSION_TAG.search(filename)
    return match.group(1) if match else None


@dataclass(frozen=True, slots=True)
class ExclusionRuleset:
    """Ordered deny list applied to every archived file.

    Attributes:
        files: Exact file names excluded at any depth.
        directories: Directory names whose whole subtree is excluded.
        extensions: File name suffixes excluded at any depth.
        globs: File name glob patterns excluded at any depth.
        modules_files: File names excluded only inside node_modules.
        runtime: Target runtime identifier enabling the ABI rule.
    """

    files: frozenset[str] = DEFAULT_FILES
    directories: tuple[str, ...] = DEFAULT_DIRECTORIES
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    globs: tuple[str, ...] = DEFAULT_GLOBS
    modules_files: tuple[str, ...] = DEFAULT_MODULES_FILES
    runtime: str | None = field(default=None)

    @property
    def abi_tag(self) -> str | None:
        """Interpreter tag compiled extensions must carry, if the rule is active."""
        return python_abi_tag(self.runtime)

    def excludes(self, relative: str) -> bool:
        """Check if a path relative to the archive root is excluded.

        Args:
            relative: POSIX-style relative path.

        Returns:
            True if any static rule or the ABI rule matches.
        """
        parts = PurePosixPath(relative).parts
        if not parts:
            return False
        name = parts[-1]
        parents = parts[:-1]

        if name in self.files:
            return True
        if any(part in self.directories for part in parents):
            return True
        if name.endswith(self.extensions):
            return True
        if any(fnmatch.fnmatchcase(name, pattern) for pattern in self.globs):
            return True
        if MODULES_DIR in parents and name in self.modules_files:
            return True
        return self.excludes_extension(name)

    def excludes_extension(self, name: str) -> bool:
        """Check if a compiled extension targets a different interpreter.

        Untagged and stable-ABI (abi3) extensions are always kept, and
        nothing is excluded without a Python target runtime.
        """
        target = self.abi_tag
        if target is None:
            return False
        tag = extension_abi_tag(name)
        return tag is not None and tag != target
