import pytest
import logging
from unittest.mock import MagicMock

from script_registry.core.config import RegistryConfig
from script_registry.core.registry_query import RegistryQuery
from script_registry.core.report import generate
from script_registry.mcp_server.analyzer import AnalysisState, RegistryAnalyzer
from script_registry.mcp_server.server import (
    MCPError,
    PingResponse,
    SearchResponse,
    complete_name,
    coverage_report,
    get_element,
    list_members,
    on_shutdown,
    ping_tool,
    search_api,
    server,
)


@pytest.fixture
def ready_analyzer(sample_file):
    """Attach an analyzer with a completed build to the server."""
    analyzer = RegistryAnalyzer(RegistryConfig(source_file=str(sample_file)), watch=False)
    analyzer.result = generate(analyzer.source_path, analyzer.config)
    analyzer.query = RegistryQuery(analyzer.result.registry)
    analyzer.analysis_state = AnalysisState.COMPLETED
    server.analyzer = analyzer

    yield analyzer

    if hasattr(server, 'analyzer'):
        delattr(server, 'analyzer')


@pytest.fixture
def no_analyzer():
    server.analyzer = None
    yield
    delattr(server, 'analyzer')


async def _search(**overrides):
    """Call search_api with every argument given, as the MCP runtime does."""
    args = dict(
        query="",
        types=[],
        modules=[],
        categories=[],
        tags=[],
        include_deprecated=True,
        include_experimental=True,
        limit=10,
        offset=0,
        format="json",
    )
    args.update(overrides)
    return await search_api(**args)


def test_server_initialization():
    assert server.name == "ScriptRegistryMCP"
    assert callable(server.run_stdio_async)


def test_ping_response_schema():
    schema = PingResponse.model_json_schema()
    assert "status" in schema["properties"]
    assert "echoed" in schema["properties"]
    assert schema["properties"]["status"]["type"] == "string"


@pytest.mark.asyncio
async def test_ping_tool_without_analyzer(no_analyzer):
    response = await ping_tool(message="hi")

    assert isinstance(response, PingResponse)
    assert response.status == "ok"
    assert response.echoed == "hi"
    assert response.analysis_status is None


@pytest.mark.asyncio
async def test_ping_tool_reports_build(ready_analyzer):
    response = await ping_tool(message="hi")

    assert response.analysis_status == "completed"
    assert response.indexed_elements == 13


@pytest.mark.asyncio
async def test_ping_tool_reports_failed_rebuild(ready_analyzer):
    ready_analyzer.source_path = ready_analyzer.source_path.parent / "gone.d.ts"
    await ready_analyzer.refresh()

    response = await ping_tool(message="hi")

    assert response.analysis_status == "completed"
    assert response.indexed_elements == 13
    assert "gone.d.ts" in response.last_error


@pytest.mark.asyncio
async def test_shutdown(caplog, no_analyzer):
    caplog.set_level(logging.INFO)
    await on_shutdown()
    assert "Server shutdown" in caplog.text


@pytest.mark.asyncio
async def test_search_api_json(ready_analyzer):
    response = await _search(query="player")

    assert isinstance(response, SearchResponse)
    assert response.results[0]["name"] == "Player"
    assert response.total == len(response.results)
    assert response.analysis_status == "completed"


@pytest.mark.asyncio
async def test_search_api_markdown(ready_analyzer):
    response = await _search(query="scoreboard", format="markdown")

    assert isinstance(response.results, str)
    assert "# API Search Results (1 of 1)" in response.results
    assert "## 1. DisplaySlotId" in response.results
    assert "- **Module**: @minecraft/server" in response.results


@pytest.mark.asyncio
async def test_search_api_filters_and_paging(ready_analyzer):
    response = await _search(types=["enum"], limit=2, offset=1)

    assert response.total == 4
    assert len(response.results) == 2
    assert response.available_filters["types"] == {"enum": 4}


@pytest.mark.asyncio
async def test_search_api_no_results_markdown(ready_analyzer):
    response = await _search(query="nothing-like-this", format="markdown")

    assert response.results == "No results found."
    assert response.total == 0


@pytest.mark.asyncio
async def test_search_api_invalid_limit(ready_analyzer):
    with pytest.raises(MCPError) as exc_info:
        await _search(limit=0)
    assert exc_info.value.code == 4001
    assert exc_info.value.data["hint"] == "limit must be positive"


@pytest.mark.asyncio
async def test_search_api_no_analyzer(no_analyzer):
    with pytest.raises(MCPError) as exc_info:
        await _search()
    assert exc_info.value.code == 5001
    assert "Registry unavailable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_tools_while_building():
    analyzer = MagicMock()
    analyzer.analysis_state = AnalysisState.IN_PROGRESS
    analyzer.is_ready.return_value = False
    server.analyzer = analyzer

    try:
        with pytest.raises(MCPError) as exc_info:
            await get_element(element_id="@minecraft/server.Entity")
        assert exc_info.value.code == 5002
    finally:
        delattr(server, 'analyzer')


@pytest.mark.asyncio
async def test_tools_after_failed_build():
    analyzer = MagicMock()
    analyzer.analysis_state = AnalysisState.FAILED
    analyzer.analysis_error = FileNotFoundError("index.d.ts")
    server.analyzer = analyzer

    try:
        with pytest.raises(MCPError) as exc_info:
            await coverage_report()
        assert exc_info.value.code == 5003
        assert "index.d.ts" in str(exc_info.value)
    finally:
        delattr(server, 'analyzer')


@pytest.mark.asyncio
async def test_get_element(ready_analyzer):
    response = await get_element(element_id="@minecraft/server.Entity")

    assert response.element["name"] == "Entity"
    assert response.element["type"] == "class"
    assert [m["name"] for m in response.element["methods"]] == ["addTag", "teleport"]


@pytest.mark.asyncio
async def test_get_element_not_found(ready_analyzer):
    with pytest.raises(MCPError) as exc_info:
        await get_element(element_id="@minecraft/server.Missing")
    assert exc_info.value.code == 4001
    assert "Element not found" in str(exc_info.value)


@pytest.mark.asyncio
async def test_complete_name(ready_analyzer):
    response = await complete_name(prefix="world", kinds=[], module=None, limit=20)

    assert [c["name"] for c in response.completions] == ["world", "WorldEvents"]
    assert response.completions[0]["signature"] == "world: World"


@pytest.mark.asyncio
async def test_complete_name_with_kind(ready_analyzer):
    response = await complete_name(prefix="", kinds=["interface"], module="@minecraft/server", limit=20)

    assert [c["name"] for c in response.completions] == ["Vector3", "TeleportOptions"]


@pytest.mark.asyncio
async def test_list_members_inherited(ready_analyzer):
    response = await list_members(type_name="Player", include_inherited=True)

    assert response.type_id == "@minecraft/server.Player"
    names = [m["name"] for m in response.members]
    assert names[:2] == ["name", "sendMessage"]
    assert "addTag" in names
    add_tag = next(m for m in response.members if m["name"] == "addTag")
    assert add_tag["declaredIn"] == "@minecraft/server.Entity"
    assert add_tag["kind"] == "method"


@pytest.mark.asyncio
async def test_list_members_own_only(ready_analyzer):
    response = await list_members(type_name="Player", include_inherited=False)

    assert [m["name"] for m in response.members] == ["name", "sendMessage"]


@pytest.mark.asyncio
async def test_list_members_unknown_type(ready_analyzer):
    with pytest.raises(MCPError) as exc_info:
        await list_members(type_name="Direction", include_inherited=True)
    assert exc_info.value.code == 4001


@pytest.mark.asyncio
async def test_coverage_report(ready_analyzer):
    response = await coverage_report()

    assert response.report["overall"] == 100.0
    assert response.report["totalElements"] == 13
    assert response.report["expected"]["class"] == 4
