#!/usr/bin/env python3

"""End-to-end pipeline: clang AST dump, resolution, code generation, file write."""

from pathlib import Path

from ..domain.models.c_types import TypeGraph
from ..domain.repositories.cache import LayoutCache
from ..domain.services.generation import DEFAULT_LIB_PATH, GenerationResult, GeneratorOptions, LayoutCodeGen
from ..domain.services.parsing import AstResolver
from ..infrastructure.clang import ClangDriver, DwarfLayoutOracle, ProbeLayoutOracle
from ..infrastructure.config import Config, get_cache_file_path, get_config
from ..infrastructure.logging import ProgressTracker, get_logger, log_timing

logger = get_logger(__name__)


class BindingsGenerator:
    """Generates a bindings module for one header.

    Use as a context manager: entering loads the layout cache and sets up
    clang, leaving saves the cache and removes probe artifacts.
    """

    def __init__(self, config: Config):
        """Initialize the pipeline.

        Args:
            config: Run configuration
        """
        self.config = config
        self.cache: LayoutCache | None = None
        self.driver: ClangDriver | None = None
        self.oracle: ProbeLayoutOracle | DwarfLayoutOracle | None = None
        self.progress = ProgressTracker(logger)

    def __enter__(self) -> "BindingsGenerator":
        tool_config = get_config()

        cache_path = self.config.cache_path
        if cache_path is None and tool_config["ENABLE_PERSISTENT_CACHE"]:
            cache_path = get_cache_file_path(self.config.header_path)
        self.cache = LayoutCache(cache_path)

        self.driver = ClangDriver(self.config.include_dirs)
        self.oracle = self._create_oracle()
        logger.debug(f"Using {self.config.layout_backend} layout backend")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object | None) -> None:
        if self.cache is not None:
            self.cache.save()
            logger.debug(f"Layout cache: {self.cache.get_statistics()}")
        if self.driver is not None:
            self.driver.clean()

    def _create_oracle(self) -> ProbeLayoutOracle | DwarfLayoutOracle:
        assert self.driver is not None and self.cache is not None
        header = self.config.header_path
        if self.config.layout_backend == "dwarf":
            return DwarfLayoutOracle(header, self.driver, self.cache)
        return ProbeLayoutOracle(header, self.driver, self.cache)

    def default_options(self) -> GeneratorOptions:
        return GeneratorOptions(lib_path=self.config.lib_path or DEFAULT_LIB_PATH)

    @log_timing
    def resolve(self) -> TypeGraph:
        """Dump the header's AST and resolve it into a type graph."""
        assert self.driver is not None and self.oracle is not None and self.cache is not None

        with self.progress.track_operation("resolve"):
            nodes = self.driver.dump_ast(self.config.header_path)
            graph = AstResolver(self.config.header_path, self.oracle).resolve(nodes)

        # Checkpoint: layout queries are the expensive part of a run
        self.cache.save()

        self.progress.count_declarations(len(graph))
        self.progress.count_layout_queries(self.oracle.query_count)
        return graph

    def generate(self, options: GeneratorOptions | None = None) -> GenerationResult:
        """Resolve the header and generate its bindings.

        Args:
            options: Generator options; defaults use the configured library path

        Returns:
            Generated fragments and the names of symbols that failed
        """
        graph = self.resolve()

        with self.progress.track_operation("generate"):
            result = LayoutCodeGen(options or self.default_options()).generate_all(graph)

        self.progress.count_fragments(len(result.fragments))
        self.progress.count_failures(len(result.failed_symbols))
        self.progress.report_summary()
        return result

    def write(self, result: GenerationResult, path: Path | None = None) -> Path:
        """Write the generated fragments verbatim, in order."""
        output_path = path or self.config.output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            for fragment in result.fragments:
                f.write(fragment)
        logger.info(f"Wrote {output_path} ({len(result.text)} bytes)")
        return output_path
