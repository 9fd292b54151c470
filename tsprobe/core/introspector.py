"""Introspector that coordinates resolution, extraction, caching and filtering."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from tsprobe.core.exceptions import ParseError, ResolutionError
from tsprobe.core.extractor import ExportExtractor, SignatureStyle, merge_records
from tsprobe.core.filters import compile_search_term, filter_records
from tsprobe.core.models import ExportRecord, IntrospectionOptions, ProjectOptions
from tsprobe.core.project import locate_project, project_source_files
from tsprobe.core.resolver import PackageResolver
from tsprobe.core.storage import ResultCache, project_cache_key
from tsprobe.languages import SourceAnalyzer, TypeScriptAnalyzer

AnalyzerFactory = Callable[[], SourceAnalyzer]


class Introspector:
    """Entry points for listing the exports of packages, projects and snippets."""

    def __init__(
        self,
        analyzer_factory: AnalyzerFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize with an analyzer factory.

        A new analyzer is created for every call, so parse state is never
        shared between introspection runs.
        """
        self._log = logger or logging.getLogger(__name__)
        self._analyzer_factory = analyzer_factory or (
            lambda: TypeScriptAnalyzer(logger=self._log.getChild("analyzer"))
        )

    def introspect_package(
        self,
        package_name: str,
        options: IntrospectionOptions | None = None,
    ) -> list[ExportRecord]:
        """List the exports of an installed package.

        Cached results are used when caching is enabled. A package that cannot
        be resolved yields an empty list; declaration files that fail to parse
        contribute nothing while the others still count.

        Args:
            package_name: npm package name, e.g. "zod" or "@scope/name"
            options: Search roots, filter and cache settings

        Returns:
            Filtered export records

        Raises:
            InvalidSearchPatternError: If the search term is not a valid regex
        """
        options = options or IntrospectionOptions()
        if options.search_term:
            compile_search_term(options.search_term)
        self._log.debug("Introspecting package: %s", package_name)

        cache = self._cache(options.cache_dir) if options.cache else None
        if cache is not None:
            cached = cache.load(package_name)
            if cached is not None:
                self._log.debug("Using cached exports for %s", package_name)
                return filter_records(cached, options.search_term, options.limit)

        resolver = PackageResolver(
            search_paths=options.search_paths,
            logger=self._log.getChild("resolver"),
        )
        try:
            location = resolver.resolve(package_name)
            self._log.debug(
                "Resolved %s@%s at %s",
                location.name or package_name,
                location.version or "unknown",
                location.package_dir,
            )
            files = resolver.find_declaration_files(location)
        except ResolutionError as e:
            self._log.warning("Failed to load declarations for package %s: %s", package_name, e)
            return []

        records = self._extract_files(files)
        if cache is not None:
            cache.save(package_name, records)
        return filter_records(records, options.search_term, options.limit)

    def introspect_source(self, source: str) -> list[ExportRecord]:
        """List the exports of a TypeScript snippet.

        No resolution, caching or filtering takes place. Functions render as
        ``(a: T) => R`` and classes as ``typeof Name``.
        """
        analyzer = self._analyzer_factory()
        module = analyzer.parse_source(source)
        extractor = ExportExtractor(
            style=SignatureStyle.SYNTHESIZED, logger=self._log.getChild("extractor")
        )
        return extractor.extract(module)

    def introspect_project(self, options: ProjectOptions | None = None) -> list[ExportRecord]:
        """List the exports of every source file in a TypeScript project.

        Raises:
            ProjectConfigError: If the project root or tsconfig.json cannot be
                determined
            InvalidSearchPatternError: If the search term is not a valid regex
        """
        options = options or ProjectOptions()
        if options.search_term:
            compile_search_term(options.search_term)

        root, config = locate_project(options.project_path, options.config_path)
        self._log.debug("Project path: %s", root)
        self._log.debug("tsconfig.json: %s", config)

        key = project_cache_key(root, config)
        cache = self._cache(options.cache_dir) if options.cache else None
        if cache is not None:
            cached = cache.load(key)
            if cached is not None:
                self._log.debug("Using cached exports for project: %s", root)
                return filter_records(cached, options.search_term, options.limit)

        analyzer = self._analyzer_factory()
        files = project_source_files(root, config, supports=analyzer.supports)
        self._log.debug("Found %d source files", len(files))

        records = self._extract_files(files, analyzer)
        if cache is not None:
            cache.save(key, records)
        return filter_records(records, options.search_term, options.limit)

    def _extract_files(
        self, files: list[Path], analyzer: SourceAnalyzer | None = None
    ) -> list[ExportRecord]:
        """Extract every file on its own; a failing file contributes nothing."""
        analyzer = analyzer or self._analyzer_factory()
        extractor = ExportExtractor(logger=self._log.getChild("extractor"))
        groups: list[list[ExportRecord]] = []

        for file in files:
            try:
                module = analyzer.parse(file)
                groups.append(extractor.extract(module))
            except ParseError as e:
                self._log.warning("Error extracting exports from %s: %s", file, e)

        return merge_records(groups)

    def _cache(self, cache_dir: str) -> ResultCache:
        return ResultCache(cache_dir, logger=self._log.getChild("cache"))


def introspect_package(
    package_name: str, options: IntrospectionOptions | None = None
) -> list[ExportRecord]:
    """List the exports of an installed package."""
    return Introspector().introspect_package(package_name, options)


def introspect_source(source: str) -> list[ExportRecord]:
    """List the exports of a TypeScript snippet."""
    return Introspector().introspect_source(source)


def introspect_project(options: ProjectOptions | None = None) -> list[ExportRecord]:
    """List the exports of a TypeScript project."""
    return Introspector().introspect_project(options)
