"""
Template engine for generated artifacts.

Templates are plain text files with <key> placeholders. The engine only
resolves a template name to its body and substitutes bindings; every
structural decision (which fragments to include, how often to repeat them)
is made by the caller before rendering.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path

import jinja2

from .errors import TemplateNotFoundError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
TEMPLATE_EXTENSION = ".template"

PLACEHOLDER_PATTERN = re.compile(r"<([A-Za-z_][A-Za-z0-9_]*)>")

DEFAULT_TEMPLATE_CATEGORIES: dict[str, str] = {
    # Application layer
    "application-interface-content": "application",
    "application-interfaces": "application",
    "application-service": "application",
    "dto": "application",
    # Interactor layer
    "interactor-adapter": "interactor",
    "interactor-interface-content": "interactor",
    "interactor-interfaces": "interactor",
    # Domain layer
    "domain-model": "domain",
    "meta-field": "domain",
    # Repository layer
    "postgres-repository": "repository",
    # REST layer
    "rest-api-main": "rest",
    "rest-func-create": "rest",
    "rest-func-delete": "rest",
    "rest-func-get-all": "rest",
    "rest-func-get-by-id": "rest",
    "rest-func-update": "rest",
    "rest-handler-header": "rest",
    "rest-parameter-header": "rest",
    "rest-parameter": "rest",
    "rest-query": "rest",
    # Base files
    "go-mod": "base",
    "main-go": "base",
    "readme": "base",
    "config": "base",
    "db-connection": "base",
    # Migrations
    "goose-migration": "migration",
    # Docker and build files
    "dockerfile": "docker",
    "docker-compose": "docker",
    "build-script": "docker",
    "build-script-cross-platform": "docker",
    "makefile": "docker",
}


class TemplateRegistry:
    """Maps template names to the category (subdirectory) holding them.

    Names without a category are looked up at the root of the template
    directory.
    """

    def __init__(self, categories: Mapping[str, str] | None = None):
        self._categories: dict[str, str] = dict(categories or {})

    def register(self, name: str, category: str) -> None:
        self._categories[name] = category

    def category_of(self, name: str) -> str | None:
        return self._categories.get(name)

    def path_for(self, name: str) -> str:
        """Loader path of a template, e.g. "domain/domain-model.template"."""
        category = self.category_of(name)
        if category:
            return f"{category}/{name}{TEMPLATE_EXTENSION}"
        return f"{name}{TEMPLATE_EXTENSION}"

    def __contains__(self, name: str) -> bool:
        return name in self._categories

    def names(self) -> list[str]:
        return sorted(self._categories)


def default_registry() -> TemplateRegistry:
    """Registry of the templates shipped with the package."""
    return TemplateRegistry(DEFAULT_TEMPLATE_CATEGORIES)


def substitute(body: str, bindings: Mapping[str, str]) -> str:
    """Replace every <key> whose key is bound, in one pass.

    Substituted values are not scanned again, and unbound placeholders are
    left as they are.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in bindings:
            return str(bindings[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, body)


class TemplateEngine:
    """Loads named templates and substitutes placeholder bindings."""

    def __init__(
        self,
        registry: TemplateRegistry,
        template_dir: Path | None = None,
        loader: jinja2.BaseLoader | None = None,
    ):
        """
        Initialize the template engine.

        Args:
            registry: Template name to category lookup
            template_dir: Directory of template files (defaults to the packaged templates)
            loader: Explicit jinja2 loader, takes precedence over template_dir
        """
        self.registry = registry
        self.template_dir = template_dir or TEMPLATE_DIR
        self._env = jinja2.Environment(
            loader=loader or jinja2.FileSystemLoader(str(self.template_dir)),
            keep_trailing_newline=True,
        )
        self._cache: dict[str, str] = {}

    def load(self, name: str) -> str:
        """
        Return the body of a template.

        Raises:
            TemplateNotFoundError: If the template cannot be found
        """
        if name in self._cache:
            return self._cache[name]

        path = self.registry.path_for(name)
        try:
            body, _, _ = self._env.loader.get_source(self._env, path)
        except jinja2.TemplateNotFound as e:
            raise TemplateNotFoundError(name, path) from e

        self._cache[name] = body
        return body

    def render(self, name: str, bindings: Mapping[str, str]) -> str:
        """
        Render a template with the given bindings.

        Args:
            name: Template name
            bindings: Placeholder key to literal replacement

        Returns:
            Rendered text
        """
        body = self.load(name)
        rendered = substitute(body, bindings)
        unresolved = sorted(set(PLACEHOLDER_PATTERN.findall(rendered)) - set(bindings))
        if unresolved:
            logger.debug("Template '%s' left placeholders unresolved: %s", name, ", ".join(unresolved))
        return rendered
