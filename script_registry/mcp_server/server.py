from mcp.server.fastmcp import FastMCP
import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from script_registry.core.models import SearchFilters, SearchableElement
from script_registry.core.search_index import search
from script_registry.mcp_server.analyzer import AnalysisState, RegistryAnalyzer


class MCPError(Exception):
    """Custom MCP error with code and hint."""

    def __init__(self, code: int, message: str, hint: str = ""):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = {"hint": hint} if hint else {}


class PingResponse(BaseModel):
    status: str
    echoed: str
    analysis_status: Optional[str] = None
    indexed_elements: Optional[int] = None
    last_error: Optional[str] = None


class SearchResponse(BaseModel):
    results: list[dict] | str
    total: int
    available_filters: Dict[str, Dict[str, int]] = {}
    analysis_status: Optional[str] = None


class ElementResponse(BaseModel):
    element: dict
    analysis_status: Optional[str] = None


class CompletionResponse(BaseModel):
    completions: list[dict]
    analysis_status: Optional[str] = None


class MembersResponse(BaseModel):
    type_id: str
    members: list[dict]
    analysis_status: Optional[str] = None


class CoverageResponse(BaseModel):
    report: dict
    analysis_status: Optional[str] = None


# Global logger for MCP
logger = logging.getLogger("mcp")
logger.addHandler(logging.StreamHandler(sys.stderr))
logger.setLevel(logging.INFO)


@dataclass
class AppContext:
    analyzer: Optional[RegistryAnalyzer] = None


async def on_shutdown():
    logger.info("Server shutdown")
    if hasattr(server, 'analyzer') and server.analyzer:
        server.analyzer.shutdown()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    # Startup
    config = getattr(server, 'config', None)
    if config:
        server.analyzer = RegistryAnalyzer(config)
        # Build in background instead of blocking
        await server.analyzer.start_analysis()
        logger.info("Server started, registry build running in background")
    else:
        server.analyzer = None
        logger.warning("No config provided to server, skipping registry build")

    try:
        yield AppContext(analyzer=server.analyzer)
    finally:
        await on_shutdown()

server = FastMCP("ScriptRegistryMCP", lifespan=lifespan)


def _analysis_status() -> Optional[str]:
    analyzer = getattr(server, 'analyzer', None)
    return analyzer.analysis_state.value if analyzer else None


def _require_analyzer() -> RegistryAnalyzer:
    analyzer = getattr(server, 'analyzer', None)
    if not analyzer:
        raise MCPError(5001, "Registry unavailable", "Start the server with --config pointing at a source_file")
    if analyzer.analysis_state == AnalysisState.FAILED:
        raise MCPError(5003, f"Registry build failed: {analyzer.analysis_error}", "Check the server log and the source file")
    if not analyzer.is_ready():
        raise MCPError(5002, "Registry is still building", "Use the ping tool to check analysis_status and retry")
    return analyzer


def format_search_results_as_markdown(elements: List[SearchableElement], total: int) -> str:
    """
    Helper function to format search results as a markdown string optimized for LLM ingestion.
    """
    if not elements:
        return "No results found."

    markdown = f"# API Search Results ({len(elements)} of {total})\n\n"
    for i, element in enumerate(elements, 1):
        markdown += f"## {i}. {element.name}\n"
        markdown += f"- **ID**: {element.id}\n"
        markdown += f"- **Type**: {element.kind}\n"
        markdown += f"- **Module**: {element.module}\n"
        markdown += f"- **Signature**: `{element.signature}`\n" if element.signature else ""
        markdown += f"- **Categories**: {', '.join(element.categories)}\n" if element.categories else ""
        markdown += f"- **Tags**: {', '.join(element.tags)}\n" if element.tags else ""
        markdown += "- **Deprecated**: yes\n" if element.deprecated else ""
        markdown += "- **Experimental**: yes\n" if element.experimental else ""
        markdown += f"- **Description**: {element.description}\n" if element.description else ""
        markdown += "\n"
    return markdown


# Tool functions with decorators
@server.tool(name="ping")
async def ping_tool(message: str = Field(description="Message to echo")) -> PingResponse:
    """
    Simple ping tool to echo a message and report registry build status.
    """
    analysis_status = None
    indexed_elements = None
    last_error = None

    analyzer = getattr(server, 'analyzer', None)
    if analyzer:
        analysis_status = analyzer.analysis_state.value
        indexed_elements = analyzer.result.registry.metadata.total_elements if analyzer.result else 0
        if analyzer.analysis_error:
            last_error = str(analyzer.analysis_error)

    return PingResponse(
        status="ok",
        echoed=message,
        analysis_status=analysis_status,
        indexed_elements=indexed_elements,
        last_error=last_error,
    )


@server.tool(name="search_api")
async def search_api(query: str = Field(default="", description="Case-insensitive text matched against name, description, module and keywords"),
                     types: list[str] = Field(default=[], description="Element kinds to include (enum, class, interface, function, type, constant)"),
                     modules: list[str] = Field(default=[], description="Modules to include, e.g. '@minecraft/server'"),
                     categories: list[str] = Field(default=[], description="Categories to include, e.g. 'Classes' or 'UI'"),
                     tags: list[str] = Field(default=[], description="Tags to include (preview, deprecated, experimental, beta, readonly-restricted)"),
                     include_deprecated: bool = Field(default=True, description="Include deprecated elements"),
                     include_experimental: bool = Field(default=True, description="Include experimental elements"),
                     limit: int = Field(default=10, description="Number of results to return"),
                     offset: int = Field(default=0, description="Number of results to skip"),
                     format: str = Field(default="markdown", description="Output format: 'markdown' or 'json'")
                     ) -> SearchResponse:
    """
    Search the API registry with a text query and facet filters.
    """
    if limit < 1:
        raise MCPError(4001, "Invalid parameters", "limit must be positive")
    if offset < 0:
        raise MCPError(4001, "Invalid parameters", "offset must not be negative")

    analyzer = _require_analyzer()
    filters = SearchFilters(
        query=query,
        types=types,
        modules=modules,
        categories=categories,
        tags=tags,
        include_deprecated=include_deprecated,
        include_experimental=include_experimental,
    )
    result = search(analyzer.result.search_index, filters, limit=limit, offset=offset)
    if format == "markdown":
        results = format_search_results_as_markdown(result.elements, result.total)
    else:
        results = [e.to_dict() for e in result.elements]
    return SearchResponse(
        results=results,
        total=result.total,
        available_filters=result.available_filters,
        analysis_status=_analysis_status(),
    )


@server.tool(name="get_element")
async def get_element(element_id: str = Field(description="Element id in the form '<module>.<name>'")) -> ElementResponse:
    """
    Retrieve the full registry entry for one element.
    """
    analyzer = _require_analyzer()
    element = analyzer.query.get(element_id)
    if not element:
        raise MCPError(4001, f"Element not found: {element_id}", "Use search_api or complete_name to find valid ids")
    return ElementResponse(element=element.to_dict(), analysis_status=_analysis_status())


@server.tool(name="complete_name")
async def complete_name(prefix: str = Field(description="Name prefix to complete (case-insensitive)"),
                        kinds: list[str] = Field(default=[], description="Restrict to these element kinds"),
                        module: Optional[str] = Field(default=None, description="Restrict to one module"),
                        limit: int = Field(default=20, description="Maximum number of completions")
                        ) -> CompletionResponse:
    """
    Complete an element name from a prefix, exact match first, then shorter names.
    """
    if limit < 1:
        raise MCPError(4001, "Invalid parameters", "limit must be positive")
    analyzer = _require_analyzer()
    elements = analyzer.query.complete(prefix, kinds=kinds or None, module=module, limit=limit)
    completions = [
        {"id": e.id, "name": e.name, "type": e.kind, "module": e.module, "signature": e.signature()}
        for e in elements
    ]
    return CompletionResponse(completions=completions, analysis_status=_analysis_status())


@server.tool(name="list_members")
async def list_members(type_name: str = Field(description="Class or interface name, or its full id"),
                       include_inherited: bool = Field(default=True, description="Include members inherited through 'extends'")
                       ) -> MembersResponse:
    """
    List the properties and methods of a class or interface.
    """
    analyzer = _require_analyzer()
    members = analyzer.query.members_of(type_name, include_inherited=include_inherited)
    if members is None:
        raise MCPError(4001, f"Type not found: {type_name}", "Only classes and interfaces have members")
    type_id = analyzer.query.find_type(type_name).id
    return MembersResponse(
        type_id=type_id,
        members=[m.to_dict() for m in members],
        analysis_status=_analysis_status(),
    )


@server.tool(name="coverage_report")
async def coverage_report() -> CoverageResponse:
    """
    Report how many top-level declarations in the source were parsed, by kind.
    """
    analyzer = _require_analyzer()
    report: Dict[str, Any] = analyzer.result.coverage.to_dict()
    report["totalElements"] = analyzer.result.registry.metadata.total_elements
    return CoverageResponse(report=report, analysis_status=_analysis_status())
