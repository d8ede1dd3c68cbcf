import httpx
import pytest
from conftest import BEAM_PAGE, HTML_DIR, StubFallback

from tekla_api_docs.config import Settings
from tekla_api_docs.retrieval.remote_fallback import (
    DisabledFallback,
    OnlineApiFallback,
    create_fallback,
    infer_namespace,
    is_low_quality,
    should_use_fallback,
    slugify,
)
from tekla_api_docs.schemas import RemoteApiResult, remote_to_api_record

BASE_URL = "https://developer.tekla.com/doc/tekla-structures/2025"

SEARCH_PAGE = """
<html><body><ul class="results">
  <li><a href="/doc/tekla-structures/2025/beam">Beam Class</a> Represents a beam.</li>
  <li><a href="/doc/tekla-structures/2025">Home</a></li>
  <li><a href="grid">Grid Class</a> Represents a grid.</li>
  <li><a href="/doc/tekla-structures/2025/beam">Beam Class</a> Duplicate hit.</li>
  <li><a href="modelobjectenumerator">ModelObjectEnumerator Interface</a> Enumerates objects.</li>
</ul></body></html>
"""


def test_should_use_fallback():
    assert should_use_fallback([]) is True
    assert should_use_fallback([{"namespace": "N/A"}]) is True
    assert should_use_fallback([{"namespace": "Tekla.Structures.Model"}]) is False
    # exactly half poor is not enough
    assert should_use_fallback([{"namespace": ""}, {"namespace": "Tekla.Structures.Model"}]) is False
    assert should_use_fallback([{"namespace": "Unknown"}, {"namespace": ""}, {"namespace": "Tekla"}]) is True


def test_is_low_quality_detects_copyright_boilerplate():
    assert is_low_quality({"namespace": "Tekla.Structures.Model", "summary": "Copyright © 2025 Trimble"})
    assert is_low_quality(RemoteApiResult(title="Beam", namespace="Tekla", description="Copyright © Trimble"))
    assert not is_low_quality({"namespace": "Tekla.Structures.Model", "summary": "Represents a beam."})
    assert is_low_quality({})


def test_infer_namespace_and_slugify():
    assert infer_namespace("Beam") == "Tekla.Structures.Model"
    assert infer_namespace("StraightDimensionSet") == "Tekla.Structures.Drawing"
    assert infer_namespace("Vector") == "Tekla.Structures.Geometry3d"
    assert infer_namespace("PluginBase") == "Tekla.Structures.Plugins"
    assert infer_namespace("Operation") == "Tekla.Structures"
    assert slugify("Tekla.Structures.Model Beam") == "tekla-structures-model-beam"


@pytest.mark.asyncio
async def test_successful_answers_are_cached():
    stub = StubFallback(
        search_results=[RemoteApiResult(title="Beam Class", namespace="Tekla.Structures.Model", kind="class")],
        class_result=None,
    )

    first = await stub.search_online("Beam", "all", 10)
    second = await stub.search_online("Beam", "all", 10)
    await stub.search_online("Beam", "class", 10)
    assert await stub.get_class_details_online("Nope") is None
    assert await stub.get_class_details_online("Nope") is None

    assert first == second
    assert [call[0] for call in stub.calls] == ["search", "search", "class"]
    assert stub.cache_size == 3


@pytest.mark.asyncio
async def test_failures_are_swallowed_and_not_cached():
    stub = StubFallback(fail=True)

    assert await stub.search_online("Beam") == []
    assert await stub.search_online("Beam") == []
    assert await stub.get_class_details_online("Beam") is None
    assert await stub.get_method_details_online("Insert", "Beam") is None

    assert len(stub.calls) == 4
    assert stub.cache_size == 0


@pytest.mark.asyncio
async def test_disabled_fallback_answers_nothing():
    fallback = DisabledFallback()

    assert await fallback.search_online("Beam") == []
    assert await fallback.get_class_details_online("Beam") is None
    assert await fallback.get_method_details_online("Insert", "Beam") is None


def test_create_fallback_follows_settings():
    assert isinstance(create_fallback(Settings(fallback_enabled=False)), DisabledFallback)
    assert isinstance(create_fallback(Settings()), OnlineApiFallback)


def _online(handler) -> OnlineApiFallback:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OnlineApiFallback(Settings(fallback_base_url=BASE_URL), client=client)


def test_construct_search_query():
    fallback = OnlineApiFallback(Settings())

    assert fallback.construct_search_query("Beam") == "Beam Tekla Structures Open API"
    assert fallback.construct_search_query("Beam", "class") == "Beam class Tekla Structures Open API"


@pytest.mark.asyncio
async def test_online_search_parses_result_links():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text=SEARCH_PAGE)

    results = await _online(handler).search_online("Beam", "all", 10)

    assert requests[0].url.params["q"] == "Beam Tekla Structures Open API"
    assert [r.title for r in results] == ["Beam Class", "Grid Class", "ModelObjectEnumerator Interface"]
    assert results[0].url == f"{BASE_URL}/beam"
    assert results[0].description == "Represents a beam."
    assert results[0].namespace == "Tekla.Structures.Model"
    assert results[0].kind == "class"
    assert results[1].url == f"{BASE_URL}/grid"
    assert results[2].kind == "interface"


@pytest.mark.asyncio
async def test_online_search_applies_kind_filter_and_limit():
    fallback = _online(lambda request: httpx.Response(200, text=SEARCH_PAGE))

    interfaces = await fallback.search_online("Enumerator", "interface", 10)
    classes = await fallback.search_online("Beam", "class", 1)

    assert [r.title for r in interfaces] == ["ModelObjectEnumerator Interface"]
    assert [r.title for r in classes] == ["Beam Class"]


@pytest.mark.asyncio
async def test_online_class_details_parse_the_page():
    page = (HTML_DIR / BEAM_PAGE).read_text(encoding="utf-8")
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, text=page)

    result = await _online(handler).get_class_details_online("Beam")

    assert requested == [f"{BASE_URL}/beam"]
    assert result.title == "Beam Class"
    assert result.namespace == "Tekla.Structures.Model"
    assert result.description == "Represents a beam."
    assert result.kind == "class"


@pytest.mark.asyncio
async def test_online_method_details_use_class_scoped_url():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, text="<html><head><title>Insert Method</title></head></html>")

    result = await _online(handler).get_method_details_online("Insert", "Beam")

    assert requested == [f"{BASE_URL}/beam/insert"]
    assert result.kind == "method"
    assert result.namespace == "Tekla.Structures.Model"


@pytest.mark.asyncio
async def test_online_missing_page_is_cached_as_no_answer():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    fallback = _online(handler)

    assert await fallback.get_class_details_online("Nope") is None
    assert await fallback.get_class_details_online("Nope") is None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_online_server_errors_are_not_cached():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    fallback = _online(handler)

    assert await fallback.search_online("Beam") == []
    assert await fallback.search_online("Beam") == []
    assert len(calls) == 2
    assert fallback.cache_size == 0


def test_remote_answer_becomes_record_with_canonical_namespace():
    remote = RemoteApiResult(title="Beam Class", description="Represents a beam.",
                             namespace=" Tekla.Structures.Model  Namespace", kind="class", url=f"{BASE_URL}/beam")

    record = remote_to_api_record(remote)

    assert record.normalized_namespace == "Tekla.Structures.Model"
    assert record.summary == "Represents a beam."
    assert record.kind == "class"
    assert record.source_page == f"{BASE_URL}/beam"
